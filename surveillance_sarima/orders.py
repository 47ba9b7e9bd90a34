import logging
from typing import Optional, Sequence, Union

from .config import (
    DAILY_SEASONAL_PERIOD,
    MIN_SEASONAL_LENGTH,
    SEASONAL_PERIOD,
    SEASONAL_THRESHOLD,
)
from .gaps import GapReport
from .patterns import detect_seasonality
from .types import CategoryHint, Diagnostics, Granularity, ModelOrder, OrderKind

logger = logging.getLogger(__name__)


# ===========================
# ORDER CONSTRUCTORS
# ===========================

def seasonal_order(period: int = SEASONAL_PERIOD) -> ModelOrder:
    """SARIMA(1,0,1)(1,0,0)[s]; no seasonal MA term, it is unstable on short monthly series."""
    return ModelOrder(1, 0, 1, 1, 0, 0, period, OrderKind.SEASONAL)


def arma_order() -> ModelOrder:
    return ModelOrder(1, 0, 1, 0, 0, 0, 1, OrderKind.NON_SEASONAL)


def ar1_order() -> ModelOrder:
    return ModelOrder(1, 0, 0, 0, 0, 0, 1, OrderKind.NON_SEASONAL)


def differenced_order(with_ma: bool = True) -> ModelOrder:
    return ModelOrder(1, 1, 1 if with_ma else 0, 0, 0, 0, 1, OrderKind.TREND_DIFFERENCED)


def fallback_order() -> ModelOrder:
    """Bypass model fitting entirely and go straight to the fallback forecaster."""
    return ModelOrder(0, 0, 0, 0, 0, 0, 1, OrderKind.FALLBACK)


# ===========================
# DECISION TREE
# ===========================

def _select_case_order(
    n: int,
    hint: CategoryHint,
    aggregated: bool,
    gap_report: Optional[GapReport],
    values: Optional[Sequence[float]],
    seasonal_period: int,
    seasonal_threshold: float,
    diagnostics: Diagnostics,
) -> ModelOrder:
    """Decision tree for disease case counts."""
    if aggregated:
        # Monthly buckets are already stationary enough: d = D = 0.
        detected = False
        if values is not None and n >= MIN_SEASONAL_LENGTH:
            result = detect_seasonality(values, seasonal_period, seasonal_threshold)
            detected = result.detected
            diagnostics.record(
                "seasonality",
                f"strength={result.strength:.1%}, threshold={seasonal_threshold:.0%}, detected={detected}",
                logger=logger, strength=result.strength, detected=detected,
            )
        else:
            diagnostics.record(
                "seasonality",
                f"insufficient data ({n} < {MIN_SEASONAL_LENGTH} points)",
                logger=logger, strength=0.0, detected=False,
            )
        if detected and n >= MIN_SEASONAL_LENGTH:
            return seasonal_order(seasonal_period)
        if n >= 12:
            return arma_order()
        return ar1_order()

    if gap_report is not None and gap_report.irregular:
        if not gap_report.aggregation_eligible:
            diagnostics.record(
                "orders", "irregular gaps and not suitable for monthly aggregation; routing to fallback",
                level=logging.INFO, logger=logger,
            )
            return fallback_order()
        diagnostics.record(
            "orders", "irregular gaps but suitable for monthly aggregation; using non-seasonal ARIMA",
            logger=logger,
        )
        if n >= 24:
            return arma_order()
        return ar1_order()

    if hint is CategoryHint.TRENDING:
        # Remove the drift by differencing rather than relying on a seasonal component.
        return differenced_order(with_ma=n >= 24)

    if n >= 14:
        return differenced_order(with_ma=True)
    return differenced_order(with_ma=False)


def _select_issuance_order(n: int, granularity: Granularity) -> ModelOrder:
    """Administrative issuance counts always attempt a seasonal order when long enough."""
    if granularity is Granularity.MONTHLY:
        if n >= 24:
            return seasonal_order(SEASONAL_PERIOD)
        if n >= 12:
            return arma_order()
        return ar1_order()

    if n >= 14:
        return seasonal_order(DAILY_SEASONAL_PERIOD)
    return ar1_order()


def select_order(
    n: int,
    category_hint: Union[CategoryHint, str, None] = CategoryHint.CASES,
    granularity: Union[Granularity, str] = Granularity.MONTHLY,
    aggregated: bool = False,
    gap_report: Optional[GapReport] = None,
    values: Optional[Sequence[float]] = None,
    seasonal_period: int = SEASONAL_PERIOD,
    seasonal_threshold: float = SEASONAL_THRESHOLD,
    diagnostics: Optional[Diagnostics] = None,
) -> ModelOrder:
    """
    Pick a fixed SARIMA order for a series.

    Case counts are evaluated in priority order: monthly-aggregated series,
    irregular series (fallback or aggregated-style orders), the trending
    override, then the default differenced path. Issuance counts use a
    length-only tree.
    """
    hint = CategoryHint.from_value(category_hint)
    granularity = Granularity(granularity)
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    if hint is CategoryHint.ISSUANCE:
        chosen = _select_issuance_order(n, granularity)
    else:
        chosen = _select_case_order(
            n, hint, aggregated, gap_report, values,
            seasonal_period, seasonal_threshold, diagnostics,
        )

    diagnostics.record(
        "orders", f"{hint.value} series of {n} points -> {chosen.label}",
        level=logging.INFO, logger=logger,
        order=chosen.as_tuple(), kind=chosen.kind.value,
    )
    return chosen
