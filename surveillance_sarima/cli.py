import argparse
import logging
import os
from typing import List, Optional

import pandas as pd

from .engine import forecast
from .errors import InsufficientDataError
from .metrics import interpret_mape
from .types import CategoryHint, ForecastResult, Granularity

logger = logging.getLogger(__name__)


# ===========================
# CONFIG
# ===========================

COL_DATE = "date"
COL_VALUE = "value"
COL_CATEGORY = "category"
ALL_CATEGORIES = "all"
FORECAST_SHEET = "Forecasts"

OUTPUT_COLUMNS = [
    "category", "forecast_date", "predicted_value", "lower_bound", "upper_bound",
    "confidence_level", "model_version", "order", "used_fallback", "mape", "r_squared",
    "trend", "seasonality_detected", "data_quality",
]


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Batch SARIMA forecasts for surveillance and issuance count series."
    )
    parser.add_argument("input", help="CSV or Excel file with date and value columns.")
    parser.add_argument(
        "--category-col",
        default=COL_CATEGORY,
        help="Column used to split the file into one series per category (default: category).",
    )
    parser.add_argument("--date-col", default=COL_DATE, help="Date column name.")
    parser.add_argument("--value-col", default=COL_VALUE, help="Value column name.")
    parser.add_argument("--horizon", type=int, default=12, help="Steps to forecast per series.")
    parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=Granularity.MONTHLY.value,
    )
    parser.add_argument(
        "--hint",
        default=None,
        help="Category hint for every series (cases, trending, issuance). "
             "Defaults to inferring it from each category label.",
    )
    parser.add_argument("--output", default=None, help="Output .csv or .xlsx file (default: print summary).")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser.parse_args(argv)


# ===========================
# HELPER FUNCTIONS
# ===========================

def load_input(path: str) -> pd.DataFrame:
    ext = os.path.splitext(path)[1].lower()
    if ext in (".xlsx", ".xls"):
        return pd.read_excel(path)
    return pd.read_csv(path)


def result_rows(category: str, result: ForecastResult) -> List[dict]:
    """Long-form rows: one per forecast date."""
    acc = result.accuracy_metrics
    return [
        {
            "category": category,
            "forecast_date": pd.Timestamp(point.date),
            "predicted_value": point.predicted_value,
            "lower_bound": point.lower_bound,
            "upper_bound": point.upper_bound,
            "confidence_level": point.confidence_level,
            "model_version": result.model_version,
            "order": result.order.label,
            "used_fallback": result.used_fallback,
            "mape": acc.mape,
            "r_squared": acc.r_squared,
            "trend": result.trend.value,
            "seasonality_detected": result.seasonality_detected,
            "data_quality": result.data_quality.value,
        }
        for point in result.predictions
    ]


def write_output(df: pd.DataFrame, path: str) -> None:
    if os.path.splitext(path)[1].lower() == ".xlsx":
        df.to_excel(path, index=False, sheet_name=FORECAST_SHEET)
    else:
        df.to_csv(path, index=False)


def run_batch(
    df: pd.DataFrame,
    category_col: str = COL_CATEGORY,
    date_col: str = COL_DATE,
    value_col: str = COL_VALUE,
    horizon: int = 12,
    granularity: str = Granularity.MONTHLY.value,
    hint: Optional[str] = None,
) -> pd.DataFrame:
    """Forecast every category in `df` and return the combined long-form table."""
    missing = [c for c in (date_col, value_col) if c not in df.columns]
    if missing:
        raise ValueError(f"Input is missing required column(s): {missing}")

    df = df.dropna(subset=[date_col, value_col]).copy()
    df[date_col] = pd.to_datetime(df[date_col])
    if category_col in df.columns:
        groups = df.groupby(category_col, dropna=False, sort=True)
    else:
        groups = [(ALL_CATEGORIES, df)]

    rows = []
    for category, df_cat in groups:
        category = str(category)
        records = list(zip(df_cat[date_col], df_cat[value_col].astype(float)))
        try:
            result = forecast(
                records,
                category_hint=hint if hint is not None else CategoryHint.from_value(category),
                horizon=horizon,
                granularity=granularity,
            )
        except InsufficientDataError as exc:
            logger.warning("Skipping %s: %s", category, exc)
            continue
        acc = result.accuracy_metrics
        logger.info(
            "%s: %s, %s, MAPE=%.1f%% (%s)",
            category, result.order.label, result.model_version, acc.mape, interpret_mape(acc.mape),
        )
        # Full decision trace, shown under --verbose.
        for line in result.diagnostics.messages():
            logger.debug("%s %s", category, line)
        rows.extend(result_rows(category, result))

    return pd.DataFrame(rows, columns=OUTPUT_COLUMNS)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Loading data from {args.input}...")
    df_all = load_input(args.input)
    output = run_batch(
        df_all,
        category_col=args.category_col,
        date_col=args.date_col,
        value_col=args.value_col,
        horizon=args.horizon,
        granularity=args.granularity,
        hint=args.hint,
    )

    if args.output:
        write_output(output, args.output)
        print(f"Forecasts written to {args.output}")
    elif output.empty:
        print("No series had enough history to forecast.")
    else:
        summary = output.groupby("category").agg(
            model_version=("model_version", "first"),
            order=("order", "first"),
            mape=("mape", "first"),
            first_forecast=("predicted_value", "first"),
        )
        print(summary.to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
