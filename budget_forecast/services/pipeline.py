from __future__ import annotations

from typing import Dict, List, Sequence

from budget_forecast.domain.models import ComparisonRow, ForecastResult, ForecastScenario


def build_comparison(
    scenarios: Sequence[ForecastScenario], forecasts: Sequence[ForecastResult]
) -> List[ComparisonRow]:
    """
    Aligns forecasts on the sorted union of their periods. A scenario with no
    point for a period is left out of that row rather than zero-filled.
    Scenarios sharing a name collapse to the last one listed.
    """
    lookups: List[Dict[str, int]] = [
        {p.period: p.forecast_amount for p in f.forecast_data} for f in forecasts
    ]
    periods = sorted({period for lookup in lookups for period in lookup})

    rows = []
    for period in periods:
        values: Dict[str, int] = {}
        for scenario, lookup in zip(scenarios, lookups):
            if period in lookup:
                values[scenario.name] = lookup[period]
        rows.append(ComparisonRow(period=period, scenarios=values))
    return rows
