from __future__ import annotations

import dataclasses
import datetime as dt
import enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from budget_forecast.domain.errors import InvalidSettingsError


class ForecastModelType(str, enum.Enum):
    SIMPLE_MOVING_AVERAGE = "simple_moving_average"
    WEIGHTED_MOVING_AVERAGE = "weighted_moving_average"
    EXPONENTIAL_SMOOTHING = "exponential_smoothing"
    LINEAR_REGRESSION = "linear_regression"
    SEASONAL_ADJUSTED = "seasonal_adjusted"


class ScenarioType(str, enum.Enum):
    BASELINE = "baseline"
    OPTIMISTIC = "optimistic"
    PESSIMISTIC = "pessimistic"
    CUSTOM = "custom"


@dataclasses.dataclass(frozen=True)
class ForecastSettings:
    model_type: Union[ForecastModelType, str] = ForecastModelType.EXPONENTIAL_SMOOTHING
    history_months: int = 6
    forecast_months: int = 6
    confidence_interval: float = 0.9
    seasonality_pattern: Optional[str] = None  # "monthly" | "quarterly" | "annual"
    include_outliers: bool = False  # advisory, not read by any model
    adjust_for_inflation: bool = False
    inflation_rate: Optional[float] = None  # annual fraction
    custom_factors: Optional[Dict[str, float]] = None

    def __post_init__(self) -> None:
        if isinstance(self.model_type, str) and not isinstance(self.model_type, ForecastModelType):
            try:
                object.__setattr__(self, "model_type", ForecastModelType(self.model_type))
            except ValueError:
                pass  # unknown names fall back to exponential smoothing at dispatch time
        if self.history_months < 1:
            raise InvalidSettingsError(f"history_months must be positive, got {self.history_months}")
        if self.forecast_months < 1:
            raise InvalidSettingsError(f"forecast_months must be positive, got {self.forecast_months}")
        if not 0 < self.confidence_interval < 1:
            raise InvalidSettingsError(
                f"confidence_interval must lie in (0, 1), got {self.confidence_interval}"
            )

    def merge(self, **changes: Any) -> "ForecastSettings":
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise InvalidSettingsError(f"Unknown forecast settings: {sorted(unknown)}")
        return dataclasses.replace(self, **changes)


DEFAULT_FORECAST_SETTINGS = ForecastSettings()


@dataclasses.dataclass(frozen=True)
class BudgetPerformance:
    period: str  # "YYYY-MM"
    actual_amount: float
    budget_id: Optional[str] = None
    planned_amount: Optional[float] = None
    variance: Optional[float] = None
    variance_percentage: Optional[float] = None


@dataclasses.dataclass(frozen=True)
class ForecastScenario:
    id: str
    name: str
    type: ScenarioType
    settings: ForecastSettings
    created_at: dt.datetime
    created_by: str
    description: Optional[str] = None
    # Reserved for multiplicative adjustments; no model reads them yet.
    adjustment_factors: Mapping[str, float] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ForecastPoint:
    period: str
    forecast_amount: int
    lower_bound: int
    upper_bound: int
    confidence: float


@dataclasses.dataclass(frozen=True)
class ForecastMetadata:
    model_type: Union[ForecastModelType, str]
    generated_at: dt.datetime
    # Placeholder in [0.7, 0.95); not derived from the series.
    advisory_accuracy: float


@dataclasses.dataclass(frozen=True)
class ForecastResult:
    budget_id: str
    forecast_data: Tuple[ForecastPoint, ...]
    metadata: ForecastMetadata
    scenario_id: Optional[str] = None
    scenario_name: Optional[str] = None

    @property
    def periods(self) -> Tuple[str, ...]:
        return tuple(p.period for p in self.forecast_data)

    def to_timeseries(self) -> Tuple[Tuple[str, int], ...]:
        return tuple((p.period, p.forecast_amount) for p in self.forecast_data)


@dataclasses.dataclass(frozen=True)
class ComparisonRow:
    period: str
    scenarios: Dict[str, int]  # scenario name -> forecast amount, absent when missing


@dataclasses.dataclass(frozen=True)
class ComparisonResult:
    scenarios: Tuple[ForecastScenario, ...]
    forecasts: Tuple[ForecastResult, ...]
    comparison_data: Tuple[ComparisonRow, ...]
