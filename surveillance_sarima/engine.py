import datetime as dt
import logging
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd

from .backtest import backtest
from .config import (
    DAILY_SEASONAL_PERIOD,
    DEFAULT_CONFIG,
    FALLBACK_VERSION,
    ISSUANCE_VERSION,
    SARIMA_VERSION,
    ForecastConfig,
)
from .errors import InsufficientDataError
from .gaps import GapReport, analyze_gaps
from .orders import ar1_order, select_order
from .patterns import assess_data_quality, detect_seasonality, detect_trend
from .regularize import aggregate_to_monthly, default_fill_policy, format_observations
from .trainer import ForecastBundle, fallback_forecast, train_and_forecast
from .types import (
    CategoryHint,
    Diagnostics,
    FallbackReason,
    FillPolicy,
    ForecastPoint,
    ForecastResult,
    Granularity,
)

logger = logging.getLogger(__name__)


# ===========================
# SERIES PREPARATION
# ===========================

def _prepare_series(
    observations: Iterable,
    hint: CategoryHint,
    granularity: Granularity,
    config: ForecastConfig,
    diagnostics: Diagnostics,
) -> Tuple[List[dt.date], List[float], bool, bool, GapReport]:
    """
    Turn raw observations into the series the model is trained on.

    Returns (dates, values, aggregated, monthly_steps, gap_report).
    """
    formatted = format_observations(observations)
    if len(formatted) < config.min_observations:
        raise InsufficientDataError(len(formatted), config.min_observations)

    gap_report = analyze_gaps([o.date for o in formatted])
    diagnostics.record(
        "gaps",
        f"{gap_report.n_dates} dates, avg gap={gap_report.average_gap:.1f}d, "
        f"max gap={gap_report.maximum_gap:.1f}d, irregular={gap_report.irregular}, "
        f"aggregation eligible={gap_report.aggregation_eligible}",
        logger=logger,
        irregular=gap_report.irregular, aggregation_eligible=gap_report.aggregation_eligible,
    )

    # Issuance counts are always bucketed at monthly granularity; case counts
    # only once there are enough observations.
    if granularity is Granularity.MONTHLY and (
            hint is CategoryHint.ISSUANCE or len(formatted) >= config.min_aggregation_points):
        policy = default_fill_policy(hint)
        buckets = aggregate_to_monthly(formatted, policy)
        diagnostics.record(
            "regularize", f"{len(formatted)} observations -> {len(buckets)} monthly buckets ({policy.value})",
            level=logging.INFO, logger=logger, fill_policy=policy.value,
        )
        return [b.period for b in buckets], [b.value for b in buckets], True, True, gap_report

    if (hint is not CategoryHint.ISSUANCE
            and gap_report.irregular and gap_report.aggregation_eligible):
        buckets = aggregate_to_monthly(formatted, FillPolicy.OMIT_EMPTY)
        diagnostics.record(
            "regularize", f"irregular daily series regularized into {len(buckets)} monthly buckets",
            level=logging.INFO, logger=logger, fill_policy=FillPolicy.OMIT_EMPTY.value,
        )
        return [b.period for b in buckets], [b.value for b in buckets], False, True, gap_report

    dates = [o.date for o in formatted]
    values = [o.value for o in formatted]
    return dates, values, False, granularity is Granularity.MONTHLY, gap_report


def _future_dates(last: dt.date, horizon: int, monthly: bool) -> List[dt.date]:
    if monthly:
        start = pd.Timestamp(last)
        return [(start + pd.DateOffset(months=step)).date() for step in range(1, horizon + 1)]
    return [last + dt.timedelta(days=step) for step in range(1, horizon + 1)]


def _model_version(hint: CategoryHint, granularity: Granularity, used_fallback: bool) -> str:
    if used_fallback:
        return FALLBACK_VERSION.format(granularity=granularity.value)
    if hint is CategoryHint.ISSUANCE:
        return ISSUANCE_VERSION.format(granularity=granularity.value)
    return SARIMA_VERSION.format(granularity=granularity.value)


# ===========================
# PUBLIC ENTRY POINT
# ===========================

def forecast(
    observations: Iterable,
    category_hint: Union[CategoryHint, str, None] = CategoryHint.CASES,
    horizon: int = 12,
    granularity: Union[Granularity, str] = Granularity.MONTHLY,
    config: Optional[ForecastConfig] = None,
) -> ForecastResult:
    """
    Forecast a non-negative count series `horizon` steps ahead.

    Observations may be Observation objects, (date, value) pairs or mappings
    with date/value keys. Raises InsufficientDataError below the minimum
    observation count; every modelling failure past that point is recovered
    through the linear-trend fallback.
    """
    if horizon < 1:
        raise ValueError(f"horizon must be >= 1, got {horizon}")
    config = config or DEFAULT_CONFIG
    hint = CategoryHint.from_value(category_hint)
    granularity = Granularity(granularity)
    diagnostics = Diagnostics()

    dates, values, aggregated, monthly_steps, gap_report = _prepare_series(
        observations, hint, granularity, config, diagnostics
    )

    order = select_order(
        len(values),
        category_hint=hint,
        granularity=granularity,
        aggregated=aggregated,
        gap_report=gap_report,
        values=values,
        seasonal_period=config.seasonal_period,
        seasonal_threshold=config.seasonal_threshold,
        diagnostics=diagnostics,
    )

    bundle = train_and_forecast(values, order, horizon, config=config, diagnostics=diagnostics)
    accuracy = backtest(values, order, config=config, diagnostics=diagnostics)

    if accuracy.mape > config.mape_overprediction_threshold:
        diagnostics.record(
            "engine",
            f"backtest MAPE {accuracy.mape:.1f}% > {config.mape_overprediction_threshold:g}%; "
            "switching to trend fallback",
            level=logging.WARNING, logger=logger,
            reason=FallbackReason.SEVERE_OVERPREDICTION.value,
        )
        preds, lower, upper = fallback_forecast(
            values, horizon,
            window=config.fallback_window,
            z=config.confidence_z,
            clamp_factor=config.clamp_factor,
        )
        bundle = ForecastBundle(preds, lower, upper, used_fallback=True,
                                fallback_reason=FallbackReason.SEVERE_OVERPREDICTION)
        order = ar1_order()
        accuracy = backtest(values, order, config=config, diagnostics=diagnostics)

    period = config.seasonal_period if monthly_steps else DAILY_SEASONAL_PERIOD
    seasonality = detect_seasonality(values, period, config.seasonal_threshold)

    future = _future_dates(dates[-1], horizon, monthly_steps)
    points = [
        ForecastPoint(
            date=day,
            predicted_value=float(pred),
            lower_bound=float(lo),
            upper_bound=float(hi),
            confidence_level=config.confidence_level,
        )
        for day, pred, lo, hi in zip(future, bundle.predictions, bundle.lower, bundle.upper)
    ]

    result = ForecastResult(
        predictions=points,
        model_version=_model_version(hint, granularity, bundle.used_fallback),
        accuracy_metrics=accuracy,
        trend=detect_trend(values),
        seasonality_detected=seasonality.detected,
        data_quality=assess_data_quality(len(values)),
        test_variance=accuracy.test_variance,
        order=order,
        used_fallback=bundle.used_fallback,
        diagnostics=diagnostics,
    )
    logger.info(
        "%s forecast: %d points, %s, MAPE=%.1f%%",
        hint.value, horizon, result.model_version, accuracy.mape,
    )
    return result
