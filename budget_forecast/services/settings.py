from __future__ import annotations

from typing import Any, Dict

from budget_forecast.domain.models import DEFAULT_FORECAST_SETTINGS, ForecastSettings


class SettingsStore:
    """One ForecastSettings per budget; unset budgets read the defaults."""

    def __init__(self, defaults: ForecastSettings = DEFAULT_FORECAST_SETTINGS):
        self._defaults = defaults
        self._settings: Dict[str, ForecastSettings] = {}

    def get(self, budget_id: str) -> ForecastSettings:
        return self._settings.get(budget_id, self._defaults)

    def update(self, budget_id: str, **changes: Any) -> ForecastSettings:
        updated = self.get(budget_id).merge(**changes)
        self._settings[budget_id] = updated
        return updated
