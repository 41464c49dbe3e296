from budget_forecast.domain.errors import (  # noqa: F401
    BudgetForecastError,
    InsufficientHistoryError,
    InvalidSettingsError,
    ScenarioNotFoundError,
    UpstreamFetchError,
)
from budget_forecast.domain.models import (  # noqa: F401
    DEFAULT_FORECAST_SETTINGS,
    BudgetPerformance,
    ComparisonResult,
    ComparisonRow,
    ForecastMetadata,
    ForecastModelType,
    ForecastPoint,
    ForecastResult,
    ForecastScenario,
    ForecastSettings,
    ScenarioType,
)

__all__ = [
    "BudgetForecastError",
    "InsufficientHistoryError",
    "InvalidSettingsError",
    "ScenarioNotFoundError",
    "UpstreamFetchError",
    "DEFAULT_FORECAST_SETTINGS",
    "BudgetPerformance",
    "ComparisonResult",
    "ComparisonRow",
    "ForecastMetadata",
    "ForecastModelType",
    "ForecastPoint",
    "ForecastResult",
    "ForecastScenario",
    "ForecastSettings",
    "ScenarioType",
]
