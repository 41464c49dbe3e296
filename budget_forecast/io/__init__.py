from budget_forecast.io.performance import (  # noqa: F401
    CsvPerformanceSource,
    InMemoryPerformanceSource,
    load_performance_csv,
)
from budget_forecast.io.config import load_forecast_settings, load_scenarios  # noqa: F401
from budget_forecast.io.export import forecast_to_csv, forecast_to_dict, comparison_to_dict  # noqa: F401

__all__ = [
    "CsvPerformanceSource",
    "InMemoryPerformanceSource",
    "load_performance_csv",
    "load_forecast_settings",
    "load_scenarios",
    "forecast_to_csv",
    "forecast_to_dict",
    "comparison_to_dict",
]
