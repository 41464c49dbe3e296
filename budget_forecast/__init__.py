from budget_forecast.domain import (  # noqa: F401
    BudgetForecastError,
    BudgetPerformance,
    ForecastModelType,
    ForecastResult,
    ForecastScenario,
    ForecastSettings,
    InsufficientHistoryError,
    ScenarioNotFoundError,
    ScenarioType,
    UpstreamFetchError,
)
from budget_forecast.services import BudgetForecastEngine, NotificationBus  # noqa: F401

__all__ = [
    "BudgetForecastEngine",
    "NotificationBus",
    "BudgetForecastError",
    "BudgetPerformance",
    "ForecastModelType",
    "ForecastResult",
    "ForecastScenario",
    "ForecastSettings",
    "InsufficientHistoryError",
    "ScenarioNotFoundError",
    "ScenarioType",
    "UpstreamFetchError",
]
