from __future__ import annotations

import pandas as pd


def add_months(period: str, offset: int) -> str:
    """
    Shift a "YYYY-MM" period by `offset` months, rolling over the year.
    Malformed periods are not validated here; pandas raises on them.
    """
    return str(pd.Period(period, freq="M") + offset)


def month_of(period: str) -> int:
    return int(period.split("-")[1])
