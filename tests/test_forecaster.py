import pytest

from budget_forecast.domain.errors import InsufficientHistoryError, InvalidSettingsError
from budget_forecast.domain.models import BudgetPerformance, ForecastModelType, ForecastSettings
from budget_forecast.services import forecaster
from budget_forecast.services.periods import add_months


def _history(values, start="2023-01"):
    return [BudgetPerformance(period=add_months(start, i), actual_amount=v) for i, v in enumerate(values)]


def _settings(model=ForecastModelType.EXPONENTIAL_SMOOTHING, **kwargs):
    kwargs.setdefault("history_months", 24)
    return ForecastSettings(model_type=model, **kwargs)


ALL_MODELS = list(forecaster.STRATEGIES)


@pytest.mark.parametrize("model", ALL_MODELS)
def test_horizon_is_contiguous_after_last_period(model):
    history = _history([100, 120, 90, 130, 110, 140], start="2023-09")
    points = forecaster.STRATEGIES[model](history, _settings(model, forecast_months=5))

    assert [p.period for p in points] == ["2024-03", "2024-04", "2024-05", "2024-06", "2024-07"]
    for p in points:
        assert p.lower_bound <= p.forecast_amount <= p.upper_bound
        assert p.confidence == 0.9


@pytest.mark.parametrize("model", ALL_MODELS)
def test_empty_history_is_rejected(model):
    with pytest.raises(InsufficientHistoryError):
        forecaster.STRATEGIES[model]([], _settings(model))


@pytest.mark.parametrize(
    "model",
    [
        ForecastModelType.SIMPLE_MOVING_AVERAGE,
        ForecastModelType.WEIGHTED_MOVING_AVERAGE,
        ForecastModelType.EXPONENTIAL_SMOOTHING,
    ],
)
def test_level_models_forecast_flat_series(model):
    history = _history([100, 180, 90, 130, 160])
    points = forecaster.STRATEGIES[model](history, _settings(model, forecast_months=6))
    assert len({p.forecast_amount for p in points}) == 1


def test_simple_moving_average_end_to_end():
    history = _history([100, 110, 120])
    settings = _settings(
        ForecastModelType.SIMPLE_MOVING_AVERAGE, history_months=3, forecast_months=2, confidence_interval=0.9
    )
    points = forecaster.apply_forecast_model(history, settings)

    assert [p.period for p in points] == ["2023-04", "2023-05"]
    assert [p.forecast_amount for p in points] == [110, 110]
    # 1.645 * population std / sqrt(n) = 7.755
    assert [(p.lower_bound, p.upper_bound) for p in points] == [(102, 118), (102, 118)]


def test_weighted_moving_average_favours_recent_months():
    points = forecaster.weighted_moving_average(_history([100, 200]), _settings(forecast_months=1))
    # weights 1/3 and 2/3
    assert points[0].forecast_amount == 167
    assert points[0].lower_bound < 167 < points[0].upper_bound


def test_exponential_smoothing_interval_widens_with_horizon():
    points = forecaster.exponential_smoothing(_history([100, 200]), _settings(forecast_months=4))

    assert points[0].forecast_amount == 130
    assert (points[0].lower_bound, points[0].upper_bound) == (19, 241)
    widths = [p.upper_bound - p.lower_bound for p in points]
    assert widths == sorted(widths)
    assert widths[-1] > widths[0]


def test_linear_regression_extends_a_perfect_trend():
    points = forecaster.linear_regression(_history([100, 110, 120, 130]), _settings(forecast_months=2))
    assert [p.forecast_amount for p in points] == [140, 150]
    assert all(p.lower_bound == p.upper_bound == p.forecast_amount for p in points)


def test_linear_regression_handles_single_point():
    points = forecaster.linear_regression(_history([500]), _settings(forecast_months=3))
    assert [p.forecast_amount for p in points] == [500, 500, 500]


def test_linear_regression_interval_non_decreasing():
    history = _history([100_000, 300_000, 150_000, 400_000, 200_000, 500_000])
    points = forecaster.linear_regression(history, _settings(forecast_months=8))
    widths = [p.upper_bound - p.lower_bound for p in points]
    assert widths == sorted(widths)


def test_seasonal_interval_non_decreasing_for_neutral_months():
    # Jan-Jun over two years; the Jul-Dec horizon has neutral indices
    first = _history([100_000, 120_000, 140_000, 160_000, 180_000, 200_000], start="2022-01")
    second = _history([150_000, 160_000, 210_000, 200_000, 260_000, 250_000], start="2023-01")
    points = forecaster.seasonal_adjusted(first + second, _settings(forecast_months=6))

    assert [p.period for p in points][0] == "2023-07"
    widths = [p.upper_bound - p.lower_bound for p in points]
    assert widths == sorted(widths)
    assert widths[-1] > widths[0]


def test_seasonal_indices_relative_to_mean_of_month_means():
    history = [
        BudgetPerformance(period="2022-01", actual_amount=100),
        BudgetPerformance(period="2022-02", actual_amount=300),
        BudgetPerformance(period="2023-01", actual_amount=100),
    ]
    indices = forecaster.seasonal_indices(history)
    assert indices[1] == pytest.approx(0.5)
    assert indices[2] == pytest.approx(1.5)
    assert all(indices[m] == 1.0 for m in range(3, 13))


def test_seasonal_adjusted_flat_when_each_month_seen_once():
    points = forecaster.seasonal_adjusted(_history([100, 200, 300]), _settings(forecast_months=2))
    assert [p.period for p in points] == ["2023-04", "2023-05"]
    assert [p.forecast_amount for p in points] == [200, 200]


@pytest.mark.parametrize("model", ALL_MODELS)
def test_inflation_compounds_monthly(model):
    history = _history([1000, 1200, 1400])
    plain = forecaster.STRATEGIES[model](history, _settings(model, forecast_months=12))
    adjusted = forecaster.STRATEGIES[model](
        history, _settings(model, forecast_months=12, adjust_for_inflation=True, inflation_rate=0.12)
    )

    for i, (base, adj) in enumerate(zip(plain, adjusted), start=1):
        multiplier = (1.12 ** (1 / 12)) ** i
        assert adj.forecast_amount == pytest.approx(base.forecast_amount * multiplier, abs=0.5 * multiplier + 0.5)
        # the band keeps its width, only the centre moves
        assert abs((adj.upper_bound - adj.lower_bound) - (base.upper_bound - base.lower_bound)) <= 2


def test_inflation_needs_a_rate():
    history = _history([1000, 1200, 1400])
    plain = forecaster.simple_moving_average(history, _settings(forecast_months=3))
    no_rate = forecaster.simple_moving_average(history, _settings(forecast_months=3, adjust_for_inflation=True))
    assert plain == no_rate


def test_unknown_model_falls_back_to_exponential_smoothing():
    history = _history([100, 180, 90, 130])
    settings = _settings("holt_winters", forecast_months=3)
    assert settings.model_type == "holt_winters"
    assert forecaster.apply_forecast_model(history, settings) == forecaster.exponential_smoothing(history, settings)


def test_history_is_sorted_then_trimmed():
    history = list(reversed(_history([10, 20, 30, 40, 50])))
    trimmed = forecaster.prepare_history(history, 3)
    assert [h.period for h in trimmed] == ["2023-03", "2023-04", "2023-05"]


def test_apply_forecast_model_rejects_empty_performance():
    with pytest.raises(InsufficientHistoryError):
        forecaster.apply_forecast_model([], _settings())


def test_settings_validation():
    with pytest.raises(InvalidSettingsError):
        ForecastSettings(history_months=0)
    with pytest.raises(InvalidSettingsError):
        ForecastSettings(forecast_months=0)
    with pytest.raises(InvalidSettingsError):
        ForecastSettings(confidence_interval=1.0)
    with pytest.raises(InvalidSettingsError):
        ForecastSettings().merge(horizon=3)

    assert ForecastSettings(model_type="linear_regression").model_type is ForecastModelType.LINEAR_REGRESSION
