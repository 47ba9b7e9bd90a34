"""Local SARIMA forecasting for disease surveillance and health-card issuance counts."""

from .config import DEFAULT_CONFIG, ForecastConfig
from .engine import forecast
from .errors import ForecastError, InsufficientDataError
from .gaps import GapReport, analyze_gaps
from .orders import select_order
from .patterns import detect_seasonality
from .regularize import aggregate_to_monthly, format_observations
from .trainer import fallback_forecast, train_and_forecast, validate_predictions
from .types import (
    AccuracyMetrics,
    CategoryHint,
    DataQuality,
    FillPolicy,
    ForecastPoint,
    ForecastResult,
    Granularity,
    ModelOrder,
    MonthlyBucket,
    Observation,
    OrderKind,
    Trend,
)

__version__ = "0.1.0"
