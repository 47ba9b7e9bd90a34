import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FillPolicy(str, Enum):
    OMIT_EMPTY = "omit-empty"
    ZERO_FILL = "zero-fill"


class Granularity(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"


class CategoryHint(str, Enum):
    """Selects the parameter-selector branch for a series."""
    CASES = "cases"          # disease case counts, sparse and bursty
    TRENDING = "trending"    # case counts with a strong monotonic drift
    ISSUANCE = "issuance"    # administrative counts (health cards, appointments)

    @classmethod
    def from_value(cls, value) -> "CategoryHint":
        """Accept an enum member, a hint name, or a known category label."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.CASES
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            pass
        if key in _HINT_ALIASES:
            return _HINT_ALIASES[key]
        # Any other label is treated as a disease type.
        return cls.CASES


_HINT_ALIASES = {
    "generic": CategoryHint.CASES,
    "disease": CategoryHint.CASES,
    "trend": CategoryHint.TRENDING,
    "pregnancy_complications": CategoryHint.TRENDING,
    "seasonal": CategoryHint.ISSUANCE,
    "healthcard": CategoryHint.ISSUANCE,
    "food_handler": CategoryHint.ISSUANCE,
    "non_food": CategoryHint.ISSUANCE,
    "service": CategoryHint.ISSUANCE,
    "appointments": CategoryHint.ISSUANCE,
}


class OrderKind(str, Enum):
    SEASONAL = "seasonal"
    NON_SEASONAL = "non_seasonal"
    TREND_DIFFERENCED = "trend_differenced"
    FALLBACK = "fallback"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class DataQuality(str, Enum):
    HIGH = "high"
    MODERATE = "moderate"
    INSUFFICIENT = "insufficient"


class FallbackReason(str, Enum):
    SENTINEL_ORDER = "sentinel_order"
    TRAINING_FAILURE = "training_failure"
    UNSTABLE_FIT = "unstable_fit"
    SEVERE_OVERPREDICTION = "severe_overprediction"


# ===========================
# DATA RECORDS
# ===========================

@dataclass(frozen=True)
class Observation:
    date: dt.date
    value: float

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"Observation value must be non-negative, got {self.value} on {self.date}")


@dataclass(frozen=True)
class MonthlyBucket:
    period: dt.date   # first day of the month
    value: float


@dataclass(frozen=True)
class ModelOrder:
    p: int
    d: int
    q: int
    P: int
    D: int
    Q: int
    s: int
    kind: OrderKind

    def __post_init__(self):
        if self.s < 1:
            raise ValueError(f"Seasonal period must be >= 1, got {self.s}")

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    @property
    def seasonal_order(self) -> Tuple[int, int, int, int]:
        """statsmodels seasonal tuple; s == 1 means no seasonal component."""
        if self.s == 1:
            return (0, 0, 0, 0)
        return (self.P, self.D, self.Q, self.s)

    @property
    def is_seasonal(self) -> bool:
        return self.s > 1

    @property
    def label(self) -> str:
        if self.kind is OrderKind.FALLBACK:
            return "Fallback"
        if self.is_seasonal:
            return f"SARIMA({self.p},{self.d},{self.q})({self.P},{self.D},{self.Q})[{self.s}]"
        return f"ARIMA({self.p},{self.d},{self.q})"

    def as_tuple(self) -> Tuple[int, int, int, int, int, int, int]:
        return (self.p, self.d, self.q, self.P, self.D, self.Q, self.s)


@dataclass(frozen=True)
class ForecastPoint:
    date: dt.date
    predicted_value: float
    lower_bound: float
    upper_bound: float
    confidence_level: float = 0.95

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "predicted_value": self.predicted_value,
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "confidence_level": self.confidence_level,
        }


@dataclass(frozen=True)
class AccuracyMetrics:
    mse: float
    rmse: float
    mae: float
    r_squared: float
    mape: float
    test_variance: float
    directional_accuracy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mse": self.mse,
            "rmse": self.rmse,
            "mae": self.mae,
            "r_squared": self.r_squared,
            "mape": self.mape,
            "test_variance": self.test_variance,
            "directional_accuracy": self.directional_accuracy,
        }


# ===========================
# DIAGNOSTICS
# ===========================

@dataclass(frozen=True)
class TraceEvent:
    stage: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Diagnostics:
    """Ordered trace of the decisions taken during one forecast call."""
    events: List[TraceEvent] = field(default_factory=list)

    def record(self, stage: str, message: str, level: int = logging.DEBUG,
               logger: Optional[logging.Logger] = None, **data) -> TraceEvent:
        event = TraceEvent(stage=stage, message=message, data=dict(data))
        self.events.append(event)
        if logger is not None:
            logger.log(level, "[%s] %s", stage, message)
        return event

    def for_stage(self, stage: str) -> List[TraceEvent]:
        return [e for e in self.events if e.stage == stage]

    def messages(self) -> List[str]:
        return [f"[{e.stage}] {e.message}" for e in self.events]

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class ForecastResult:
    predictions: List[ForecastPoint]
    model_version: str
    accuracy_metrics: AccuracyMetrics
    trend: Trend
    seasonality_detected: bool
    data_quality: DataQuality
    test_variance: float
    order: ModelOrder
    used_fallback: bool = False
    diagnostics: Diagnostics = field(default_factory=Diagnostics, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready view of the result (dates as ISO strings)."""
        metrics = self.accuracy_metrics.to_dict()
        metrics.pop("test_variance")
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "model_version": self.model_version,
            "accuracy_metrics": metrics,
            "trend": self.trend.value,
            "seasonality_detected": self.seasonality_detected,
            "data_quality": self.data_quality.value,
            "test_variance": self.test_variance,
            "order": self.order.label,
            "used_fallback": self.used_fallback,
        }
