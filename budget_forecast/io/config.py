from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from budget_forecast.domain.errors import InvalidSettingsError
from budget_forecast.domain.models import DEFAULT_FORECAST_SETTINGS, ForecastSettings, ScenarioType

# camelCase keys as exported by the budgeting UI
_SETTINGS_ALIASES = {
    "modelType": "model_type",
    "historyMonths": "history_months",
    "forecastMonths": "forecast_months",
    "confidenceInterval": "confidence_interval",
    "seasonalityPattern": "seasonality_pattern",
    "includeOutliers": "include_outliers",
    "adjustForInflation": "adjust_for_inflation",
    "inflationRate": "inflation_rate",
    "customFactors": "custom_factors",
}


def settings_from_dict(data: Dict[str, Any], base: ForecastSettings = DEFAULT_FORECAST_SETTINGS) -> ForecastSettings:
    changes = {_SETTINGS_ALIASES.get(k, k): v for k, v in (data or {}).items()}
    for key in ("history_months", "forecast_months"):
        if key in changes:
            changes[key] = int(changes[key])
    for key in ("confidence_interval", "inflation_rate"):
        if changes.get(key) is not None:
            changes[key] = float(changes[key])
    return base.merge(**changes)


def load_forecast_settings(path: str | Path) -> ForecastSettings:
    return settings_from_dict(_read_json(path))


def load_scenarios(path: str | Path, base: ForecastSettings = DEFAULT_FORECAST_SETTINGS) -> List[Dict[str, Any]]:
    """
    Scenario definitions ready for `BudgetForecastEngine.create_scenario(**definition)`.
    """
    data = _read_json(path)
    if isinstance(data, dict):
        data = data.get("scenarios", [])

    definitions = []
    for position, item in enumerate(data):
        if not item.get("name"):
            raise InvalidSettingsError(f"Scenario #{position + 1} has no name")
        try:
            scenario_type = ScenarioType(item.get("type", ScenarioType.CUSTOM.value))
        except ValueError:
            raise InvalidSettingsError(f"Scenario {item['name']!r} has unknown type {item.get('type')!r}") from None
        definitions.append(
            {
                "name": str(item["name"]),
                "type": scenario_type,
                "description": item.get("description"),
                "settings": settings_from_dict(item.get("settings", {}), base),
                "adjustment_factors": item.get("adjustmentFactors", item.get("adjustment_factors", {})) or {},
                "created_by": item.get("createdBy", item.get("created_by", "system")),
            }
        )
    return definitions


def _read_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
