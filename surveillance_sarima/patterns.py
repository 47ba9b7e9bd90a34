from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .config import SEASONAL_PERIOD, SEASONAL_THRESHOLD
from .types import DataQuality, Trend


MIN_TOTAL_VARIANCE = 1e-4
TREND_CHANGE_PCT = 10.0


@dataclass(frozen=True)
class SeasonalityResult:
    detected: bool
    strength: float


def detect_seasonality(
    values: Sequence[float],
    period: int = SEASONAL_PERIOD,
    threshold: float = SEASONAL_THRESHOLD,
) -> SeasonalityResult:
    """
    Variance-decomposition seasonality test.

    Seasonal strength is the share of total variance explained by the phase
    means (the average of every value at the same position in the cycle),
    weighted by how many observations fall in each phase. Needs two full cycles.
    """
    y = np.asarray(values, dtype=float)
    n = len(y)
    if period < 2 or n < 2 * period:
        return SeasonalityResult(False, 0.0)

    overall_mean = y.mean()
    total_variance = np.mean((y - overall_mean) ** 2)
    if total_variance < MIN_TOTAL_VARIANCE:
        return SeasonalityResult(False, 0.0)

    phases = np.arange(n) % period
    seasonal_variance = 0.0
    for phase in range(period):
        phase_values = y[phases == phase]
        seasonal_variance += len(phase_values) * (phase_values.mean() - overall_mean) ** 2
    seasonal_variance /= n

    strength = float(seasonal_variance / total_variance)
    return SeasonalityResult(strength > threshold, strength)


def detect_trend(values: Sequence[float]) -> Trend:
    """Compare first-half and second-half means; +/-10% marks a trend."""
    y = np.asarray(values, dtype=float)
    if len(y) < 3:
        return Trend.STABLE

    half = len(y) // 2
    first_avg = y[:half].mean()
    second_avg = y[half:].mean()
    if first_avg == 0:
        return Trend.INCREASING if second_avg > 0 else Trend.STABLE

    pct_change = (second_avg - first_avg) / abs(first_avg) * 100.0
    if pct_change > TREND_CHANGE_PCT:
        return Trend.INCREASING
    if pct_change < -TREND_CHANGE_PCT:
        return Trend.DECREASING
    return Trend.STABLE


def assess_data_quality(n_points: int) -> DataQuality:
    if n_points >= 14:
        return DataQuality.HIGH
    if n_points >= 7:
        return DataQuality.MODERATE
    return DataQuality.INSUFFICIENT
