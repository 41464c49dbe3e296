from budget_forecast.services.engine import BudgetForecastEngine  # noqa: F401
from budget_forecast.services.events import BUDGET_CHANGED, BudgetChangedEvent, NotificationBus  # noqa: F401
from budget_forecast.services.forecaster import apply_forecast_model  # noqa: F401
from budget_forecast.services.periods import add_months  # noqa: F401
from budget_forecast.services.pipeline import build_comparison  # noqa: F401
from budget_forecast.services.scenario import create_default_scenarios  # noqa: F401

__all__ = [
    "BudgetForecastEngine",
    "BUDGET_CHANGED",
    "BudgetChangedEvent",
    "NotificationBus",
    "apply_forecast_model",
    "add_months",
    "build_comparison",
    "create_default_scenarios",
]
