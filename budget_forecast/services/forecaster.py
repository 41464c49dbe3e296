from __future__ import annotations

import logging
import math
from typing import Callable, Dict, List, Sequence

import numpy as np

from budget_forecast.domain.errors import InsufficientHistoryError
from budget_forecast.domain.models import (
    BudgetPerformance,
    ForecastModelType,
    ForecastPoint,
    ForecastSettings,
)
from budget_forecast.services.periods import add_months, month_of

logger = logging.getLogger(__name__)

Z_90 = 1.645
Z_95 = 1.96
T_REGRESSION = 2.0
SMOOTHING_ALPHA = 0.3

Strategy = Callable[[Sequence[BudgetPerformance], ForecastSettings], List[ForecastPoint]]


def _round(value: float) -> int:
    # half-up, so 2.5 -> 3 and -2.5 -> -2
    return int(math.floor(value + 0.5))


def _actuals(history: Sequence[BudgetPerformance]) -> np.ndarray:
    if not history:
        raise InsufficientHistoryError()
    return np.array([h.actual_amount for h in history], dtype=float)


def inflation_multiplier(settings: ForecastSettings, step: int) -> float:
    if not (settings.adjust_for_inflation and settings.inflation_rate):
        return 1.0
    inflation_monthly = math.pow(1 + settings.inflation_rate, 1 / 12) - 1
    return math.pow(1 + inflation_monthly, step)


def _point(period: str, amount: float, half_width: float, settings: ForecastSettings) -> ForecastPoint:
    return ForecastPoint(
        period=period,
        forecast_amount=_round(amount),
        lower_bound=_round(amount - half_width),
        upper_bound=_round(amount + half_width),
        confidence=settings.confidence_interval,
    )


def _rmse(residuals: np.ndarray) -> float:
    return float(np.sqrt(np.mean(residuals ** 2)))


def _ols(y: np.ndarray):
    """Least squares of y against 0..n-1. A single point gives a flat line."""
    n = len(y)
    x = np.arange(n, dtype=float)
    sxx = float(np.sum((x - x.mean()) ** 2))
    if sxx == 0:
        slope = 0.0
    else:
        slope = float(np.sum((x - x.mean()) * (y - y.mean())) / sxx)
    intercept = float(y.mean() - slope * x.mean())
    residuals = y - (intercept + slope * x)
    return intercept, slope, float(x.mean()), sxx, _rmse(residuals)


def _flat_forecast(
    history: Sequence[BudgetPerformance], settings: ForecastSettings, level: float, half_width: float
) -> List[ForecastPoint]:
    last_period = history[-1].period
    return [
        _point(add_months(last_period, i), level * inflation_multiplier(settings, i), half_width, settings)
        for i in range(1, settings.forecast_months + 1)
    ]


def simple_moving_average(history: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    """Mean of the window, held flat; constant 90% band from the standard error."""
    y = _actuals(history)
    average = float(y.mean())
    margin = Z_90 * (float(y.std()) / math.sqrt(len(y)))
    return _flat_forecast(history, settings, average, margin)


def weighted_moving_average(history: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    """Linear weights 1..n favouring recent months, normalised to sum to one."""
    y = _actuals(history)
    n = len(y)
    weights = np.arange(1, n + 1, dtype=float) / (n * (n + 1) / 2)
    weighted = float(np.dot(y, weights))
    std = math.sqrt(float(np.mean((y - weighted) ** 2)))
    margin = Z_90 * (std / math.sqrt(n))
    return _flat_forecast(history, settings, weighted, margin)


def exponential_smoothing(history: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    y = _actuals(history)
    smoothed = y[0]
    for value in y[1:]:
        smoothed = SMOOTHING_ALPHA * value + (1 - SMOOTHING_ALPHA) * smoothed
    rmse = _rmse(y - smoothed)

    last_period = history[-1].period
    points = []
    for i in range(1, settings.forecast_months + 1):
        amount = float(smoothed) * inflation_multiplier(settings, i)
        half_width = Z_95 * rmse * math.sqrt(1 + 0.1 * i)
        points.append(_point(add_months(last_period, i), amount, half_width, settings))
    return points


def linear_regression(history: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    """
    OLS trend on the month index. The prediction interval grows with the
    horizon and with the distance from the historical mean index.
    """
    y = _actuals(history)
    n = len(y)
    intercept, slope, x_mean, sxx, rmse = _ols(y)

    last_period = history[-1].period
    points = []
    for i in range(1, settings.forecast_months + 1):
        x = n + i - 1
        amount = (intercept + slope * x) * inflation_multiplier(settings, i)
        leverage = (x - x_mean) ** 2 / sxx if sxx else 0.0
        half_width = T_REGRESSION * rmse * math.sqrt(1 + 1 / n + leverage)
        points.append(_point(add_months(last_period, i), amount, half_width, settings))
    return points


def seasonal_indices(history: Sequence[BudgetPerformance]) -> Dict[int, float]:
    """
    Per-calendar-month index: month mean over the mean of the month means.
    Months never observed, or with a zero index, are neutral (1.0).
    """
    by_month: Dict[int, List[float]] = {}
    for h in history:
        by_month.setdefault(month_of(h.period), []).append(h.actual_amount)
    monthly_averages = {m: float(np.mean(v)) for m, v in by_month.items()}
    overall = float(np.mean(list(monthly_averages.values())))

    indices = {m: 1.0 for m in range(1, 13)}
    if overall:
        for m, avg in monthly_averages.items():
            if avg:
                indices[m] = avg / overall
    return indices


def seasonal_adjusted(history: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    y = _actuals(history)
    n = len(y)
    indices = seasonal_indices(history)
    deseasonalized = np.array([v / indices[month_of(h.period)] for v, h in zip(y, history)])
    intercept, slope, _, _, rmse = _ols(deseasonalized)

    last_period = history[-1].period
    points = []
    for i in range(1, settings.forecast_months + 1):
        period = add_months(last_period, i)
        index = indices[month_of(period)]
        x = n + i - 1
        amount = (intercept + slope * x) * index * inflation_multiplier(settings, i)
        # abs() keeps lower <= upper when a month index comes out negative
        half_width = Z_95 * rmse * abs(index) * math.sqrt(1 + 0.1 * i)
        points.append(_point(period, amount, half_width, settings))
    return points


STRATEGIES: Dict[ForecastModelType, Strategy] = {
    ForecastModelType.SIMPLE_MOVING_AVERAGE: simple_moving_average,
    ForecastModelType.WEIGHTED_MOVING_AVERAGE: weighted_moving_average,
    ForecastModelType.EXPONENTIAL_SMOOTHING: exponential_smoothing,
    ForecastModelType.LINEAR_REGRESSION: linear_regression,
    ForecastModelType.SEASONAL_ADJUSTED: seasonal_adjusted,
}


def prepare_history(performance: Sequence[BudgetPerformance], history_months: int) -> List[BudgetPerformance]:
    """Most recent `history_months` entries, oldest first."""
    ordered = sorted(performance, key=lambda p: p.period)
    return ordered[-history_months:]


def apply_forecast_model(performance: Sequence[BudgetPerformance], settings: ForecastSettings) -> List[ForecastPoint]:
    history = prepare_history(performance, settings.history_months)
    if not history:
        raise InsufficientHistoryError()

    strategy = STRATEGIES.get(settings.model_type)
    if strategy is None:
        logger.warning("Unknown model type %r, using exponential smoothing", settings.model_type)
        strategy = exponential_smoothing
    return strategy(history, settings)
