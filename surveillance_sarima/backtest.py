import logging
from typing import Optional, Sequence

import numpy as np

from . import metrics
from .config import (
    BACKTEST_MIN_TEST,
    BACKTEST_TEST_SHARE,
    DEFAULT_CONFIG,
    DEFAULT_METRICS,
    FAILED_BACKTEST_METRICS,
    NEAR_CONSTANT_VARIANCE,
    ForecastConfig,
)
from .trainer import train_and_forecast
from .types import AccuracyMetrics, Diagnostics, ModelOrder

logger = logging.getLogger(__name__)


def compute_test_window(n_points: int) -> int:
    """Held-out length: 20% of the history, at least 5 points."""
    return max(BACKTEST_MIN_TEST, int(np.floor(BACKTEST_TEST_SHARE * n_points)))


def _metrics_from_defaults(values: dict) -> AccuracyMetrics:
    return AccuracyMetrics(**values)


def score_holdout(actual: Sequence[float], predicted: Sequence[float]) -> AccuracyMetrics:
    return AccuracyMetrics(
        mse=metrics.mse(actual, predicted),
        rmse=metrics.rmse(actual, predicted),
        mae=metrics.mae(actual, predicted),
        r_squared=metrics.r_squared(actual, predicted),
        mape=metrics.mape(actual, predicted),
        test_variance=metrics.variance(actual),
        directional_accuracy=metrics.directional_accuracy(actual, predicted),
    )


def backtest(
    series: Sequence[float],
    order: ModelOrder,
    config: Optional[ForecastConfig] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> AccuracyMetrics:
    """
    Hold out the tail of the series, train on the rest with the same order and
    score the forecast against the held-out actuals.
    """
    config = config or DEFAULT_CONFIG
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()
    y = np.asarray(series, dtype=float)

    if len(y) < config.backtest_min_sample:
        diagnostics.record(
            "backtest", f"only {len(y)} points (< {config.backtest_min_sample}); using default metrics",
            logger=logger,
        )
        return _metrics_from_defaults(DEFAULT_METRICS)

    test_window = compute_test_window(len(y))
    y_train = y[:-test_window]
    y_test = y[-test_window:]

    bundle = train_and_forecast(y_train, order, test_window, config=config, diagnostics=diagnostics)
    preds = np.asarray(bundle.predictions, dtype=float)

    if metrics.variance(preds) < NEAR_CONSTANT_VARIANCE:
        diagnostics.record("backtest", "held-out predictions are nearly constant", logger=logger,
                           prediction_variance=metrics.variance(preds))

    try:
        scored = score_holdout(y_test, preds)
    except Exception as exc:
        diagnostics.record("backtest", f"scoring failed: {exc}", level=logging.WARNING, logger=logger)
        return _metrics_from_defaults(FAILED_BACKTEST_METRICS)

    diagnostics.record(
        "backtest",
        f"train={len(y_train)}, test={test_window}, MAPE={scored.mape:.1f}% "
        f"({metrics.interpret_mape(scored.mape)}), R2={scored.r_squared:.3f} "
        f"({metrics.interpret_r_squared(scored.r_squared)})",
        level=logging.INFO, logger=logger,
        mape=scored.mape, r_squared=scored.r_squared,
    )
    return scored
