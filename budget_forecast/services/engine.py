from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from budget_forecast.domain.errors import InsufficientHistoryError, ScenarioNotFoundError
from budget_forecast.domain.models import (
    DEFAULT_FORECAST_SETTINGS,
    BudgetPerformance,
    ComparisonResult,
    ForecastMetadata,
    ForecastResult,
    ForecastScenario,
    ForecastSettings,
)
from budget_forecast.services.cache import DEFAULT_SCENARIO_KEY, ForecastCache
from budget_forecast.services.events import BUDGET_CHANGED
from budget_forecast.services.forecaster import apply_forecast_model
from budget_forecast.services.pipeline import build_comparison
from budget_forecast.services.scenario import ScenarioStore
from budget_forecast.services.settings import SettingsStore

logger = logging.getLogger(__name__)

PerformanceFetcher = Callable[[str], Awaitable[Sequence[BudgetPerformance]]]
Subscriber = Callable[[str, Callable[[Any], None]], Callable[[], None]]


class BudgetForecastEngine:
    """
    Per-budget forecasting service.

    Holds the settings, scenarios and forecast cache for every budget it is
    asked about. Historical performance comes from `fetch_performance`; when a
    `subscribe` callable is given the engine listens for BUDGET_CHANGED and
    drops that budget's cached forecasts. Call `close()` (or use the engine as
    a context manager) to release the subscription.

    Two concurrent requests for the same uncached forecast both fetch and
    compute, and the last one to finish owns the cache slot. Pass
    `dedupe_inflight=True` to share a single computation instead.
    """

    def __init__(
        self,
        fetch_performance: PerformanceFetcher,
        subscribe: Optional[Subscriber] = None,
        *,
        defaults: ForecastSettings = DEFAULT_FORECAST_SETTINGS,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        dedupe_inflight: bool = False,
    ):
        self._fetch_performance = fetch_performance
        self._settings = SettingsStore(defaults)
        self._scenarios = ScenarioStore()
        self._cache = ForecastCache()
        self._rng = rng if rng is not None else np.random.default_rng(seed)
        self._dedupe_inflight = dedupe_inflight
        self._inflight: Dict[Tuple[str, str, Tuple[int, int]], "asyncio.Future[ForecastResult]"] = {}
        self._unsubscribe: Optional[Callable[[], None]] = None
        if subscribe is not None:
            self._unsubscribe = subscribe(BUDGET_CHANGED, self._handle_budget_changed)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "BudgetForecastEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def cache(self) -> ForecastCache:
        return self._cache

    # -------------------------------
    # Settings
    # -------------------------------

    def get_forecast_settings(self, budget_id: str) -> ForecastSettings:
        return self._settings.get(budget_id)

    def update_forecast_settings(self, budget_id: str, **changes: Any) -> ForecastSettings:
        updated = self._settings.update(budget_id, **changes)
        # scenarios without their own override depend on these too
        self._cache.invalidate_budget(budget_id)
        return updated

    # -------------------------------
    # Scenarios
    # -------------------------------

    def get_scenarios(self, budget_id: str) -> List[ForecastScenario]:
        return self._scenarios.list(budget_id)

    def create_scenario(self, budget_id: str, **scenario: Any) -> ForecastScenario:
        return self._scenarios.create(budget_id, **scenario)

    def update_scenario(self, budget_id: str, scenario_id: str, **changes: Any) -> Optional[ForecastScenario]:
        updated = self._scenarios.update(budget_id, scenario_id, **changes)
        if updated is not None:
            self._cache.invalidate_scenario(budget_id, scenario_id)
        return updated

    def delete_scenario(self, budget_id: str, scenario_id: str) -> bool:
        deleted = self._scenarios.delete(budget_id, scenario_id)
        if deleted:
            self._cache.invalidate_scenario(budget_id, scenario_id)
        return deleted

    # -------------------------------
    # Forecasting
    # -------------------------------

    def invalidate_forecasts(self, budget_id: str) -> int:
        return self._cache.invalidate_budget(budget_id)

    async def generate_forecast(self, budget_id: str, scenario_id: Optional[str] = None) -> ForecastResult:
        cached = self._cache.get(budget_id, scenario_id)
        if cached is not None:
            logger.debug("Forecast cache hit for %s/%s", budget_id, scenario_id or DEFAULT_SCENARIO_KEY)
            return cached

        if not self._dedupe_inflight:
            return await self._compute_forecast(budget_id, scenario_id)

        # an in-flight computation is only shared while nothing has been invalidated since it started
        key = (budget_id, scenario_id or DEFAULT_SCENARIO_KEY, self._cache.generation(budget_id, scenario_id))
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute_forecast(budget_id, scenario_id))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _compute_forecast(self, budget_id: str, scenario_id: Optional[str]) -> ForecastResult:
        generation = self._cache.generation(budget_id, scenario_id)
        try:
            scenario = None
            settings = self._settings.get(budget_id)
            if scenario_id:
                scenario = self._scenarios.get(budget_id, scenario_id)
                if scenario is None:
                    raise ScenarioNotFoundError(budget_id, scenario_id)
                settings = scenario.settings

            performance = await self._fetch_performance(budget_id)
            if not performance:
                raise InsufficientHistoryError(
                    "No historical performance data available for forecasting", budget_id=budget_id
                )

            points = apply_forecast_model(performance, settings)
            result = ForecastResult(
                budget_id=budget_id,
                scenario_id=scenario_id,
                scenario_name=scenario.name if scenario else None,
                forecast_data=tuple(points),
                metadata=ForecastMetadata(
                    model_type=settings.model_type,
                    generated_at=dt.datetime.now(dt.timezone.utc),
                    advisory_accuracy=self._advisory_accuracy(),
                ),
            )
        except Exception:
            logger.exception("Error generating forecast for budget %s", budget_id)
            raise

        logger.info(
            "Generated %d-month %s forecast for %s/%s",
            len(points),
            getattr(settings.model_type, "value", settings.model_type),
            budget_id,
            scenario_id or DEFAULT_SCENARIO_KEY,
        )
        self._cache.put(budget_id, scenario_id, result, generation)
        return result

    async def compare_scenarios(self, budget_id: str, scenario_ids: Sequence[str]) -> ComparisonResult:
        try:
            wanted = set(scenario_ids)
            scenarios = [s for s in self._scenarios.list(budget_id) if s.id in wanted]
            if not scenarios:
                raise ScenarioNotFoundError(budget_id, message="No valid scenarios found for comparison")

            forecasts = await asyncio.gather(
                *(self.generate_forecast(budget_id, s.id) for s in scenarios)
            )
        except Exception:
            logger.exception("Error comparing scenarios for budget %s", budget_id)
            raise

        return ComparisonResult(
            scenarios=tuple(scenarios),
            forecasts=tuple(forecasts),
            comparison_data=tuple(build_comparison(scenarios, forecasts)),
        )

    def _advisory_accuracy(self) -> float:
        # Not a real error metric; kept in [0.7, 0.95) until one is agreed.
        return float(0.7 + self._rng.random() * 0.25)

    def _handle_budget_changed(self, event: Any) -> None:
        budget_id = _budget_id_from_event(event)
        if budget_id:
            self.invalidate_forecasts(budget_id)


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        value = obj.get(name) if isinstance(obj, Mapping) else getattr(obj, name, None)
        if value is not None:
            return value
    return None


def _budget_id_from_event(event: Any) -> Optional[str]:
    """Accepts flat events and `{type, payload: {budgetId}}` envelopes."""
    budget_id = _field(event, "budget_id", "budgetId")
    if budget_id is None:
        payload = _field(event, "payload")
        if payload is not None:
            budget_id = _field(payload, "budget_id", "budgetId")
    return budget_id
