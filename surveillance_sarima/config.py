from dataclasses import dataclass


# ===========================
# CONFIG
# ===========================

# Seasonality detection (variance decomposition)
SEASONAL_PERIOD = 12          # monthly data with yearly seasonality
DAILY_SEASONAL_PERIOD = 7     # weekly pattern for daily issuance data
SEASONAL_THRESHOLD = 0.15     # share of total variance explained by phase means
MIN_SEASONAL_LENGTH = 24      # two full cycles before the test is attempted

# Prediction validation
EXPLOSION_FACTOR = 10.0       # max forecast may not exceed 10x historical max
GROWTH_RATE_THRESHOLD = 1.5   # mean step-over-step ratio (50% compounding growth)
GROWTH_RATE_EPS = 0.001
CLAMP_FACTOR = 5.0            # accepted forecasts are clipped to 5x historical max

# Confidence bounds
CONFIDENCE_Z = 1.96
CONFIDENCE_LEVEL = 0.95

# Fallback forecaster
FALLBACK_WINDOW = 7           # trailing points used for the least-squares trend

# Back-testing
BACKTEST_MIN_SAMPLE = 10
BACKTEST_MIN_TEST = 5
BACKTEST_TEST_SHARE = 0.2
MAPE_OVERPREDICTION_THRESHOLD = 100.0
NEAR_CONSTANT_VARIANCE = 0.1

# Input handling
MIN_OBSERVATIONS = 3
MIN_AGGREGATION_POINTS = 7    # monthly granularity aggregates from 7 points up

# Gap analysis
IRREGULAR_GAP_RATIO = 1.5
AGGREGATION_AVG_GAP_DAYS = 20
AGGREGATION_MAX_GAP_DAYS = 45
AGGREGATION_MIN_POINTS = 6

# Conservative metrics when the held-out sample is too small
DEFAULT_METRICS = {
    "mse": 10.0,
    "rmse": 10.0 ** 0.5,
    "mae": 2.5,
    "r_squared": 0.5,
    "mape": 50.0,
    "test_variance": 1.0,
}
# Metrics reported when scoring the holdout itself fails
FAILED_BACKTEST_METRICS = {
    "mse": 8.0,
    "rmse": 8.0 ** 0.5,
    "mae": 2.0,
    "r_squared": 0.5,
    "mape": 25.0,
    "test_variance": 5.0,
}

# model_version tags
SARIMA_VERSION = "Local-SARIMA-{granularity}-v2.0"
ISSUANCE_VERSION = "HealthCard-SARIMA-v3.0-{granularity}"
FALLBACK_VERSION = "Fallback-Trend-{granularity}-v1.0"


@dataclass(frozen=True)
class ForecastConfig:
    """
    Tunable knobs for one forecast call.

    The explosion, growth-rate and MAPE thresholds are empirical and should be
    calibrated against real surveillance data before being tightened.
    """
    seasonal_threshold: float = SEASONAL_THRESHOLD
    seasonal_period: int = SEASONAL_PERIOD
    explosion_factor: float = EXPLOSION_FACTOR
    growth_rate_threshold: float = GROWTH_RATE_THRESHOLD
    clamp_factor: float = CLAMP_FACTOR
    confidence_z: float = CONFIDENCE_Z
    confidence_level: float = CONFIDENCE_LEVEL
    fallback_window: int = FALLBACK_WINDOW
    backtest_min_sample: int = BACKTEST_MIN_SAMPLE
    mape_overprediction_threshold: float = MAPE_OVERPREDICTION_THRESHOLD
    min_observations: int = MIN_OBSERVATIONS
    min_aggregation_points: int = MIN_AGGREGATION_POINTS

    def __post_init__(self):
        if self.seasonal_period < 1:
            raise ValueError(f"seasonal_period must be >= 1, got {self.seasonal_period}")
        if self.min_observations < 1:
            raise ValueError(f"min_observations must be >= 1, got {self.min_observations}")


DEFAULT_CONFIG = ForecastConfig()
