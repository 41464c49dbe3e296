import pytest

from budget_forecast.domain.errors import InvalidSettingsError
from budget_forecast.domain.models import ForecastModelType, ForecastSettings, ScenarioType
from budget_forecast.services.engine import BudgetForecastEngine
from budget_forecast.services.scenario import ScenarioStore, create_default_scenarios


def test_create_assigns_unique_ids_and_timestamps():
    store = ScenarioStore()
    a = store.create("b1", name="A", settings=ForecastSettings())
    b = store.create("b1", name="B", settings=ForecastSettings(), type="optimistic")

    assert a.id != b.id
    assert a.id.startswith("scenario_")
    assert a.created_at.tzinfo is not None
    assert a.type is ScenarioType.CUSTOM
    assert b.type is ScenarioType.OPTIMISTIC
    assert [s.name for s in store.list("b1")] == ["A", "B"]
    assert store.list("other") == []


def test_scenarios_are_scoped_to_their_budget():
    store = ScenarioStore()
    scenario = store.create("b1", name="A", settings=ForecastSettings())
    assert store.get("b2", scenario.id) is None
    assert store.update("b2", scenario.id, name="X") is None
    assert store.delete("b2", scenario.id) is False
    assert store.get("b1", scenario.id) == scenario


def test_list_returns_a_copy():
    store = ScenarioStore()
    store.create("b1", name="A", settings=ForecastSettings())
    store.list("b1").clear()
    assert len(store.list("b1")) == 1


def test_update_replaces_fields_but_keeps_identity():
    store = ScenarioStore()
    scenario = store.create("b1", name="A", settings=ForecastSettings(), adjustment_factors={"growth": 1.1})
    updated = store.update(
        "b1",
        scenario.id,
        settings=ForecastSettings(model_type=ForecastModelType.LINEAR_REGRESSION),
        type="pessimistic",
    )

    assert updated.id == scenario.id
    assert updated.created_at == scenario.created_at
    assert updated.adjustment_factors == {"growth": 1.1}
    assert updated.type is ScenarioType.PESSIMISTIC
    assert store.get("b1", scenario.id).settings.model_type is ForecastModelType.LINEAR_REGRESSION


def test_update_rejects_identity_and_unknown_fields():
    store = ScenarioStore()
    scenario = store.create("b1", name="A", settings=ForecastSettings())
    with pytest.raises(InvalidSettingsError):
        store.update("b1", scenario.id, id="scenario_other")
    with pytest.raises(InvalidSettingsError):
        store.update("b1", scenario.id, colour="red")


def test_default_scenarios_follow_budget_settings(source):
    engine = BudgetForecastEngine(source)
    engine.update_forecast_settings("b1", model_type=ForecastModelType.WEIGHTED_MOVING_AVERAGE)

    baseline, optimistic, pessimistic = create_default_scenarios(engine, "b1")

    assert [s.type for s in (baseline, optimistic, pessimistic)] == [
        ScenarioType.BASELINE,
        ScenarioType.OPTIMISTIC,
        ScenarioType.PESSIMISTIC,
    ]
    assert baseline.adjustment_factors == {}
    assert optimistic.adjustment_factors == {"growth": 1.1, "efficiency": 0.95}
    assert pessimistic.settings.adjust_for_inflation is True
    assert pessimistic.settings.inflation_rate == 0.05
    assert all(s.settings.model_type is ForecastModelType.WEIGHTED_MOVING_AVERAGE for s in (baseline, pessimistic))
    assert all(s.created_by == "system" for s in engine.get_scenarios("b1"))
    assert len(engine.get_scenarios("b1")) == 3


@pytest.mark.asyncio
async def test_adjustment_factors_do_not_change_the_forecast(source):
    engine = BudgetForecastEngine(source)
    baseline, optimistic, _ = create_default_scenarios(engine, "b1")

    plain = await engine.generate_forecast("b1", baseline.id)
    adjusted = await engine.generate_forecast("b1", optimistic.id)
    assert plain.to_timeseries() == adjusted.to_timeseries()
