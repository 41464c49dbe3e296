from __future__ import annotations

from typing import Optional


class BudgetForecastError(Exception):
    """Base class for every error raised by the forecasting engine."""


class InsufficientHistoryError(BudgetForecastError, ValueError):
    def __init__(self, message: str = "Insufficient historical data for forecasting", budget_id: Optional[str] = None):
        super().__init__(message)
        self.budget_id = budget_id


class ScenarioNotFoundError(BudgetForecastError, LookupError):
    def __init__(self, budget_id: str, scenario_id: Optional[str] = None, message: Optional[str] = None):
        if message is None:
            message = f"Scenario with ID {scenario_id} not found"
        super().__init__(message)
        self.budget_id = budget_id
        self.scenario_id = scenario_id


class InvalidSettingsError(BudgetForecastError, ValueError):
    pass


class UpstreamFetchError(BudgetForecastError):
    """Raised by performance providers; the engine passes it through untouched."""

    def __init__(self, message: str, budget_id: Optional[str] = None):
        super().__init__(message)
        self.budget_id = budget_id
