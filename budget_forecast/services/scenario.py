from __future__ import annotations

import dataclasses
import datetime as dt
import time
import uuid
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from budget_forecast.domain.errors import InvalidSettingsError
from budget_forecast.domain.models import ForecastScenario, ForecastSettings, ScenarioType

if TYPE_CHECKING:
    from budget_forecast.services.engine import BudgetForecastEngine

IMMUTABLE_FIELDS = {"id", "created_at"}


def new_scenario_id() -> str:
    return f"scenario_{int(time.time() * 1000)}_{uuid.uuid4().hex[:7]}"


class ScenarioStore:
    """Named settings variants owned by a budget, in creation order."""

    def __init__(self):
        self._scenarios: Dict[str, List[ForecastScenario]] = {}

    def list(self, budget_id: str) -> List[ForecastScenario]:
        return list(self._scenarios.get(budget_id, []))

    def get(self, budget_id: str, scenario_id: str) -> Optional[ForecastScenario]:
        for scenario in self._scenarios.get(budget_id, []):
            if scenario.id == scenario_id:
                return scenario
        return None

    def create(
        self,
        budget_id: str,
        *,
        name: str,
        settings: ForecastSettings,
        type: Union[ScenarioType, str] = ScenarioType.CUSTOM,
        adjustment_factors: Optional[Mapping[str, float]] = None,
        description: Optional[str] = None,
        created_by: str = "system",
    ) -> ForecastScenario:
        scenario = ForecastScenario(
            id=new_scenario_id(),
            name=name,
            type=ScenarioType(type),
            settings=settings,
            adjustment_factors=dict(adjustment_factors or {}),
            description=description,
            created_at=dt.datetime.now(dt.timezone.utc),
            created_by=created_by,
        )
        self._scenarios.setdefault(budget_id, []).append(scenario)
        return scenario

    def update(self, budget_id: str, scenario_id: str, **changes: Any) -> Optional[ForecastScenario]:
        blocked = IMMUTABLE_FIELDS & set(changes)
        if blocked:
            raise InvalidSettingsError(f"Scenario fields cannot be changed: {sorted(blocked)}")
        unknown = set(changes) - {f.name for f in dataclasses.fields(ForecastScenario)}
        if unknown:
            raise InvalidSettingsError(f"Unknown scenario fields: {sorted(unknown)}")

        scenarios = self._scenarios.get(budget_id, [])
        for index, scenario in enumerate(scenarios):
            if scenario.id == scenario_id:
                if "type" in changes:
                    changes["type"] = ScenarioType(changes["type"])
                updated = dataclasses.replace(scenario, **changes)
                scenarios[index] = updated
                return updated
        return None

    def delete(self, budget_id: str, scenario_id: str) -> bool:
        scenarios = self._scenarios.get(budget_id, [])
        remaining = [s for s in scenarios if s.id != scenario_id]
        if len(remaining) == len(scenarios):
            return False
        self._scenarios[budget_id] = remaining
        return True


def create_default_scenarios(
    engine: "BudgetForecastEngine", budget_id: str, created_by: str = "system"
) -> List[ForecastScenario]:
    """
    Baseline, optimistic and pessimistic scenarios seeded from the budget's
    current settings. The pessimistic one also turns on 5% inflation.
    """
    settings = engine.get_forecast_settings(budget_id)
    return [
        engine.create_scenario(
            budget_id,
            name="Baseline",
            type=ScenarioType.BASELINE,
            description="Current settings without adjustments",
            settings=settings,
            adjustment_factors={},
            created_by=created_by,
        ),
        engine.create_scenario(
            budget_id,
            name="Optimistic",
            type=ScenarioType.OPTIMISTIC,
            description="Higher growth with improved efficiency",
            settings=settings,
            adjustment_factors={"growth": 1.1, "efficiency": 0.95},
            created_by=created_by,
        ),
        engine.create_scenario(
            budget_id,
            name="Pessimistic",
            type=ScenarioType.PESSIMISTIC,
            description="Lower growth, reduced efficiency and 5% inflation",
            settings=settings.merge(adjust_for_inflation=True, inflation_rate=0.05),
            adjustment_factors={"growth": 0.9, "efficiency": 1.05},
            created_by=created_by,
        ),
    ]
