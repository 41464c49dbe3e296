from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from budget_forecast.domain.models import ForecastResult

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO_KEY = "default"

Generation = Tuple[int, int]


def _scenario_key(scenario_id: Optional[str]) -> str:
    return scenario_id or DEFAULT_SCENARIO_KEY


class ForecastCache:
    """
    Memoized forecasts indexed by budget, then by scenario (or "default").
    No expiry: an entry lives until it is invalidated.

    Every invalidation bumps a generation counter for the budget or the
    scenario. A result computed under an older generation is not stored.
    """

    def __init__(self):
        self._entries: Dict[str, Dict[str, ForecastResult]] = {}
        self._budget_generations: Dict[str, int] = {}
        self._scenario_generations: Dict[Tuple[str, str], int] = {}

    def get(self, budget_id: str, scenario_id: Optional[str] = None) -> Optional[ForecastResult]:
        return self._entries.get(budget_id, {}).get(_scenario_key(scenario_id))

    def generation(self, budget_id: str, scenario_id: Optional[str] = None) -> Generation:
        return (
            self._budget_generations.get(budget_id, 0),
            self._scenario_generations.get((budget_id, _scenario_key(scenario_id)), 0),
        )

    def put(
        self,
        budget_id: str,
        scenario_id: Optional[str],
        result: ForecastResult,
        generation: Optional[Generation] = None,
    ) -> bool:
        if generation is not None and generation != self.generation(budget_id, scenario_id):
            logger.debug(
                "Not caching %s/%s: invalidated while it was computed", budget_id, _scenario_key(scenario_id)
            )
            return False
        self._entries.setdefault(budget_id, {})[_scenario_key(scenario_id)] = result
        return True

    def invalidate_budget(self, budget_id: str) -> int:
        self._budget_generations[budget_id] = self._budget_generations.get(budget_id, 0) + 1
        removed = self._entries.pop(budget_id, {})
        if removed:
            logger.debug("Dropped %d cached forecasts for budget %s", len(removed), budget_id)
        return len(removed)

    def invalidate_scenario(self, budget_id: str, scenario_id: Optional[str]) -> bool:
        key = (budget_id, _scenario_key(scenario_id))
        self._scenario_generations[key] = self._scenario_generations.get(key, 0) + 1
        inner = self._entries.get(budget_id)
        if not inner or inner.pop(_scenario_key(scenario_id), None) is None:
            return False
        if not inner:
            del self._entries[budget_id]
        logger.debug("Dropped cached forecast %s/%s", budget_id, _scenario_key(scenario_id))
        return True

    def __contains__(self, key) -> bool:
        budget_id, scenario_id = key
        return self.get(budget_id, scenario_id) is not None

    def __len__(self) -> int:
        return sum(len(inner) for inner in self._entries.values())
