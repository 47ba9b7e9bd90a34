import logging
import warnings
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .config import (
    CLAMP_FACTOR,
    CONFIDENCE_Z,
    DEFAULT_CONFIG,
    EXPLOSION_FACTOR,
    FALLBACK_WINDOW,
    GROWTH_RATE_EPS,
    GROWTH_RATE_THRESHOLD,
    ForecastConfig,
)
from .types import Diagnostics, FallbackReason, ModelOrder, OrderKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class ForecastBundle:
    """Point forecasts and bounds for one horizon, plus how they were produced."""
    predictions: List[float]
    lower: List[float]
    upper: List[float]
    used_fallback: bool = False
    fallback_reason: Optional[FallbackReason] = None
    residual_std: float = 0.0


# ===========================
# VALIDATION
# ===========================

def validate_predictions(
    predictions: Sequence[float],
    history: Sequence[float],
    explosion_factor: float = EXPLOSION_FACTOR,
    growth_rate_threshold: float = GROWTH_RATE_THRESHOLD,
) -> ValidationResult:
    """
    Reject numerically unstable forecasts.

    Checks, in order: non-finite values, a maximum above explosion_factor x the
    historical maximum, and compounding growth (mean step-over-step ratio).
    """
    preds = np.asarray(predictions, dtype=float)
    if len(preds) == 0:
        return ValidationResult(True)
    if not np.all(np.isfinite(preds)):
        return ValidationResult(False, "non-finite prediction")

    hist = np.asarray(history, dtype=float)
    hist_max = float(hist.max()) if len(hist) else 0.0
    pred_max = float(preds.max())
    if pred_max > explosion_factor * hist_max:
        return ValidationResult(
            False, f"max prediction {pred_max:.1f} exceeds {explosion_factor:g}x historical max {hist_max:.1f}"
        )

    if len(preds) > 1:
        ratios = preds[1:] / np.maximum(preds[:-1], GROWTH_RATE_EPS)
        avg_growth = float(np.mean(ratios))
        if avg_growth > growth_rate_threshold:
            return ValidationResult(
                False, f"average growth rate {avg_growth:.2f} exceeds {growth_rate_threshold:g}"
            )
    return ValidationResult(True)


# ===========================
# FALLBACK FORECASTER
# ===========================

def _trailing_slope(values: np.ndarray, window: int) -> float:
    """Least-squares slope over the last `window` points; 0 when undefined."""
    tail = values[-window:]
    if len(tail) < 2:
        return 0.0
    x = np.arange(len(tail), dtype=float)
    slope, _intercept = np.polyfit(x, tail, 1)
    return float(slope) if np.isfinite(slope) else 0.0


def fallback_forecast(
    series: Sequence[float],
    horizon: int,
    window: int = FALLBACK_WINDOW,
    z: float = CONFIDENCE_Z,
    clamp_factor: float = CLAMP_FACTOR,
) -> Tuple[List[float], List[float], List[float]]:
    """
    Linear-trend extrapolation from the last observed value.

    Returns (predictions, lower, upper). Bounds are +/- z standard deviations of
    the whole history; everything is rounded, floored at 0 and capped at
    clamp_factor x the historical maximum.
    """
    y = np.asarray(series, dtype=float)
    baseline = float(y[-1]) if len(y) else 0.0
    slope = _trailing_slope(y, window)
    std = float(np.std(y)) if len(y) else 0.0
    # Whole-number cap keeps lower <= prediction <= upper after rounding.
    cap = float(np.floor(clamp_factor * y.max())) if len(y) else 0.0
    margin = z * std

    steps = np.arange(1, horizon + 1, dtype=float)
    preds = np.clip(np.round(baseline + slope * steps), 0.0, cap)
    lower = np.maximum(np.round(preds - margin), 0.0)
    upper = np.minimum(np.round(preds + margin), cap)
    return preds.tolist(), lower.tolist(), upper.tolist()


# ===========================
# SARIMA FIT
# ===========================

def _fit_sarimax(y: np.ndarray, order: ModelOrder, horizon: int) -> Tuple[np.ndarray, np.ndarray]:
    """Fit one SARIMA variant; return the raw mean forecast and post-burn-in residuals."""
    with warnings.catch_warnings(), np.errstate(all="ignore"):
        warnings.simplefilter("ignore")
        model = SARIMAX(
            y,
            order=order.order,
            seasonal_order=order.seasonal_order,
            enforce_stationarity=False,
            enforce_invertibility=False,
        )
        res = model.fit(disp=False)
        forecast = res.get_forecast(steps=horizon)
    mean = np.asarray(forecast.predicted_mean, dtype=float)
    resid = np.asarray(res.resid, dtype=float)[res.loglikelihood_burn:]
    return mean, resid


def _fallback_bundle(y: np.ndarray, horizon: int, reason: FallbackReason,
                     config: ForecastConfig) -> ForecastBundle:
    preds, lower, upper = fallback_forecast(
        y, horizon,
        window=config.fallback_window,
        z=config.confidence_z,
        clamp_factor=config.clamp_factor,
    )
    std = float(np.std(y)) if len(y) else 0.0
    return ForecastBundle(preds, lower, upper, used_fallback=True,
                          fallback_reason=reason, residual_std=std)


def train_and_forecast(
    series: Sequence[float],
    order: ModelOrder,
    horizon: int,
    config: Optional[ForecastConfig] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> ForecastBundle:
    """
    Fit the chosen order on `series` and forecast `horizon` steps.

    Never raises for a non-empty series: a fallback order, a fitting exception
    or an unstable forecast all route to the linear-trend fallback.
    """
    config = config or DEFAULT_CONFIG
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    y = np.asarray(series, dtype=float)

    if order.kind is OrderKind.FALLBACK:
        diagnostics.record("trainer", "fallback order selected; skipping model fit",
                           level=logging.INFO, logger=logger,
                           reason=FallbackReason.SENTINEL_ORDER.value)
        return _fallback_bundle(y, horizon, FallbackReason.SENTINEL_ORDER, config)

    try:
        raw, resid = _fit_sarimax(y, order, horizon)
    except Exception as exc:
        diagnostics.record("trainer", f"{order.label} fit failed: {exc}",
                           level=logging.WARNING, logger=logger,
                           reason=FallbackReason.TRAINING_FAILURE.value)
        return _fallback_bundle(y, horizon, FallbackReason.TRAINING_FAILURE, config)

    check = validate_predictions(raw, y, config.explosion_factor, config.growth_rate_threshold)
    if not check.valid:
        diagnostics.record("trainer", f"{order.label} forecast rejected: {check.reason}",
                           level=logging.WARNING, logger=logger,
                           reason=FallbackReason.UNSTABLE_FIT.value)
        return _fallback_bundle(y, horizon, FallbackReason.UNSTABLE_FIT, config)

    cap = float(np.floor(config.clamp_factor * y.max()))
    preds = np.clip(np.round(raw), 0.0, cap)

    resid = resid[np.isfinite(resid)]
    sigma = float(np.std(resid)) if len(resid) else 0.0
    margin = config.confidence_z * sigma
    lower = np.clip(np.round(preds - margin), 0.0, cap)
    upper = np.clip(np.round(preds + margin), 0.0, cap)

    diagnostics.record("trainer", f"{order.label} fitted; residual std={sigma:.3f}",
                       logger=logger, residual_std=sigma)
    return ForecastBundle(preds.tolist(), lower.tolist(), upper.tolist(),
                          used_fallback=False, residual_std=sigma)
