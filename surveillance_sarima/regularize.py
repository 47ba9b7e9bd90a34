import datetime as dt
import logging
from typing import Iterable, List, Mapping, Union

import pandas as pd

from .types import CategoryHint, FillPolicy, MonthlyBucket, Observation

logger = logging.getLogger(__name__)

DATE_KEYS = ("date", "record_date", "completed_at")
VALUE_KEYS = ("value", "case_count", "cards_issued")


# ===========================
# HELPERS
# ===========================

def _to_date(value) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return pd.Timestamp(value).date()


def _first_present(record: Mapping, keys, kind: str):
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    raise ValueError(f"Record has no {kind} field (expected one of {keys}): {record!r}")


def _coerce_observation(record) -> Observation:
    """Convert an Observation, MonthlyBucket, (date, value) pair or mapping into an Observation."""
    if isinstance(record, Observation):
        return record
    if isinstance(record, MonthlyBucket):
        return Observation(date=record.period, value=record.value)
    if isinstance(record, Mapping):
        date_val = _first_present(record, DATE_KEYS, "date")
        value = _first_present(record, VALUE_KEYS, "value")
    else:
        try:
            date_val, value = record
        except (TypeError, ValueError):
            raise ValueError(f"Cannot interpret {record!r} as a (date, value) observation") from None
    return Observation(date=_to_date(date_val), value=float(value))


def _observation_frame(observations: Iterable) -> pd.DataFrame:
    obs = [_coerce_observation(r) for r in observations]
    return pd.DataFrame({
        "date": pd.to_datetime([o.date for o in obs]),
        "value": [o.value for o in obs],
    })


def format_observations(records: Iterable) -> List[Observation]:
    """
    Normalise raw records into sorted Observations.
    Several records on the same calendar date are summed into one observation.
    """
    df = _observation_frame(records)
    if df.empty:
        return []
    daily = (
        df.groupby("date", as_index=False)["value"]
        .sum()
        .sort_values("date")
    )
    return [Observation(date=ts.date(), value=float(v)) for ts, v in zip(daily["date"], daily["value"])]


def default_fill_policy(category: Union[CategoryHint, str, None]) -> FillPolicy:
    """Disease-type inputs omit empty months; issuance-type inputs zero-fill."""
    if CategoryHint.from_value(category) is CategoryHint.ISSUANCE:
        return FillPolicy.ZERO_FILL
    return FillPolicy.OMIT_EMPTY


# ===========================
# MONTHLY AGGREGATION
# ===========================

def aggregate_to_monthly(
    observations: Iterable,
    fill_policy: Union[FillPolicy, str] = FillPolicy.OMIT_EMPTY,
) -> List[MonthlyBucket]:
    """
    Bucket observations into calendar months between the first and last observation.

    omit-empty drops months without any observation, so sparse series do not
    teach the model a false "usually zero" pattern. zero-fill keeps every month.
    """
    fill_policy = FillPolicy(fill_policy)
    df = _observation_frame(observations)
    if df.empty:
        logger.warning("Monthly aggregation called with no observations")
        return []

    df["period"] = df["date"].dt.to_period("M")
    grouped = df.groupby("period")["value"].agg(["sum", "count"])

    all_months = pd.period_range(grouped.index.min(), grouped.index.max(), freq="M")
    grouped = grouped.reindex(all_months, fill_value=0)
    if fill_policy is FillPolicy.OMIT_EMPTY:
        grouped = grouped[grouped["count"] > 0]

    buckets = [
        MonthlyBucket(period=period.to_timestamp().date(), value=float(total))
        for period, total in zip(grouped.index, grouped["sum"])
    ]
    logger.debug(
        "Monthly aggregation (%s): %d records -> %d/%d months",
        fill_policy.value, len(df), len(buckets), len(all_months),
    )
    return buckets
