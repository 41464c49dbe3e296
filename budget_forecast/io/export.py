from __future__ import annotations

import csv
import datetime as dt
import io
from typing import Any, Dict, Optional

from budget_forecast.domain.models import ComparisonResult, ForecastResult

CSV_HEADERS = ["Period", "Forecast Amount", "Lower Bound", "Upper Bound"]


def export_filename(budget_id: str, today: Optional[dt.date] = None) -> str:
    today = today or dt.date.today()
    return f"budget_forecast_{budget_id}_{today.isoformat()}.csv"


def forecast_to_csv(result: ForecastResult) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for p in result.forecast_data:
        writer.writerow([p.period, p.forecast_amount, p.lower_bound, p.upper_bound])
    return buffer.getvalue()


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def forecast_to_dict(result: ForecastResult) -> Dict[str, Any]:
    return {
        "budgetId": result.budget_id,
        "scenarioId": result.scenario_id,
        "scenarioName": result.scenario_name,
        "forecastData": [
            {
                "period": p.period,
                "forecastAmount": p.forecast_amount,
                "lowerBound": p.lower_bound,
                "upperBound": p.upper_bound,
                "confidence": p.confidence,
            }
            for p in result.forecast_data
        ],
        "metadata": {
            "modelType": _enum_value(result.metadata.model_type),
            "generatedAt": result.metadata.generated_at.isoformat(),
            "advisoryAccuracy": result.metadata.advisory_accuracy,
        },
    }


def comparison_to_dict(comparison: ComparisonResult) -> Dict[str, Any]:
    return {
        "scenarios": [
            {"id": s.id, "name": s.name, "type": _enum_value(s.type)} for s in comparison.scenarios
        ],
        "forecasts": [forecast_to_dict(f) for f in comparison.forecasts],
        "comparisonData": [
            {"period": row.period, "scenarios": dict(row.scenarios)} for row in comparison.comparison_data
        ],
    }
