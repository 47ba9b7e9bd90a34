import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np
import pandas as pd

from .config import (
    AGGREGATION_AVG_GAP_DAYS,
    AGGREGATION_MAX_GAP_DAYS,
    AGGREGATION_MIN_POINTS,
    IRREGULAR_GAP_RATIO,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GapReport:
    n_dates: int
    average_gap: float
    maximum_gap: float
    minimum_gap: float
    irregular: bool
    aggregation_eligible: bool


def _gap_days(dates: Iterable) -> np.ndarray:
    """Day gaps between consecutive dates after sorting."""
    idx = pd.to_datetime(pd.Series(list(dates))).sort_values()
    return idx.diff().dropna().dt.total_seconds().to_numpy() / 86400.0


def analyze_gaps(dates: Iterable) -> GapReport:
    """
    Classify the spacing of an observation series.

    irregular: max gap > 1.5x the average gap.
    aggregation_eligible: (avg gap > 20 days or max gap > 45 days) and >= 6 dates.
    The two tests are independent.
    """
    dates = list(dates)
    gaps = _gap_days(dates)
    if len(gaps) == 0:
        return GapReport(len(dates), 0.0, 0.0, 0.0, irregular=False, aggregation_eligible=False)

    avg_gap = float(np.mean(gaps))
    max_gap = float(np.max(gaps))
    min_gap = float(np.min(gaps))

    irregular = max_gap > avg_gap * IRREGULAR_GAP_RATIO
    eligible = (
        (avg_gap > AGGREGATION_AVG_GAP_DAYS or max_gap > AGGREGATION_MAX_GAP_DAYS)
        and len(dates) >= AGGREGATION_MIN_POINTS
    )
    if irregular:
        logger.debug(
            "Irregular spacing: avg gap=%.1f days, max gap=%.1f days (%.1fx)",
            avg_gap, max_gap, max_gap / avg_gap if avg_gap else float("inf"),
        )
    return GapReport(len(dates), avg_gap, max_gap, min_gap, irregular, eligible)
