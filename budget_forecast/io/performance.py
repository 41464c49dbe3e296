from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd

from budget_forecast.domain.errors import UpstreamFetchError
from budget_forecast.domain.models import BudgetPerformance


REQUIRED_COLUMNS = {"budget_id", "period", "actual_amount"}
OPTIONAL_COLUMNS = ("planned_amount", "variance", "variance_percentage")


def _optional_float(row: pd.Series, column: str) -> Optional[float]:
    if column not in row or pd.isna(row[column]):
        return None
    return float(row[column])


def load_performance_csv(csv_path: str | Path) -> Dict[str, List[BudgetPerformance]]:
    """Reads per-period budget performance, grouped by budget id."""
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(path)

    df = pd.read_csv(path, dtype={"budget_id": str, "period": str})
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Missing columns in performance CSV: {missing}")

    df["actual_amount"] = pd.to_numeric(df["actual_amount"], errors="coerce")
    blank = df[df["actual_amount"].isna()]
    if not blank.empty:
        rows = [f"{b}/{p}" for b, p in zip(blank["budget_id"], blank["period"])]
        raise ValueError(f"Missing or non-numeric actual_amount in performance CSV: {rows}")

    # normalise "2023-1" / "2023-01-31" style values to "YYYY-MM"
    df["period"] = pd.to_datetime(df["period"]).dt.to_period("M").astype(str)
    df = df.sort_values(["budget_id", "period"])

    grouped: Dict[str, List[BudgetPerformance]] = {}
    for _, row in df.iterrows():
        budget_id = str(row["budget_id"])
        grouped.setdefault(budget_id, []).append(
            BudgetPerformance(
                budget_id=budget_id,
                period=str(row["period"]),
                actual_amount=float(row["actual_amount"]),
                planned_amount=_optional_float(row, "planned_amount"),
                variance=_optional_float(row, "variance"),
                variance_percentage=_optional_float(row, "variance_percentage"),
            )
        )
    return grouped


class InMemoryPerformanceSource:
    """
    Async performance provider over a mutable dict. Unknown budgets raise
    UpstreamFetchError, matching a remote provider rejecting the request.
    """

    def __init__(self, data: Optional[Dict[str, Iterable[BudgetPerformance]]] = None):
        self._data: Dict[str, List[BudgetPerformance]] = {k: list(v) for k, v in (data or {}).items()}
        self.calls = 0

    def set_history(self, budget_id: str, history: Iterable[BudgetPerformance]) -> None:
        self._data[budget_id] = list(history)

    async def fetch(self, budget_id: str) -> List[BudgetPerformance]:
        self.calls += 1
        if budget_id not in self._data:
            raise UpstreamFetchError(f"No performance data for budget {budget_id}", budget_id=budget_id)
        return list(self._data[budget_id])

    __call__ = fetch


class CsvPerformanceSource(InMemoryPerformanceSource):
    def __init__(self, csv_path: str | Path):
        super().__init__(load_performance_csv(csv_path))
