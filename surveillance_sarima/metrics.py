from typing import Sequence, Tuple

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


def _paired(actual: Sequence[float], predicted: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    y_true = np.asarray(actual, dtype=float)
    y_pred = np.asarray(predicted, dtype=float)
    if len(y_true) == 0:
        raise ValueError("Cannot score an empty series")
    if len(y_true) != len(y_pred):
        raise ValueError(f"Length mismatch: {len(y_true)} actuals vs {len(y_pred)} predictions")
    return y_true, y_pred


# ===========================
# ERROR METRICS
# ===========================

def mse(actual: Sequence[float], predicted: Sequence[float]) -> float:
    y_true, y_pred = _paired(actual, predicted)
    return float(mean_squared_error(y_true, y_pred))


def rmse(actual: Sequence[float], predicted: Sequence[float]) -> float:
    return float(np.sqrt(mse(actual, predicted)))


def mae(actual: Sequence[float], predicted: Sequence[float]) -> float:
    y_true, y_pred = _paired(actual, predicted)
    return float(mean_absolute_error(y_true, y_pred))


def r_squared(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """
    Coefficient of determination clamped to [0, 1].

    Constant actuals have no variance to explain: a perfect fit scores 1, anything else 0.
    """
    y_true, y_pred = _paired(actual, predicted)
    if np.allclose(y_true, y_true[0]):
        return 1.0 if np.allclose(y_true, y_pred) else 0.0
    score = float(r2_score(y_true, y_pred))
    return float(min(1.0, max(0.0, score)))


def mape(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """Mean absolute percentage error (percent), skipping zero actuals."""
    y_true, y_pred = _paired(actual, predicted)
    mask = y_true != 0
    if not mask.any():
        return 0.0 if np.all(y_pred == 0) else 100.0
    return float(np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100.0)


def variance(values: Sequence[float]) -> float:
    """Population variance; 0 for an empty series."""
    y = np.asarray(values, dtype=float)
    if len(y) == 0:
        return 0.0
    return float(np.var(y))


def directional_accuracy(actual: Sequence[float], predicted: Sequence[float]) -> float:
    """Percent of consecutive steps where forecast and actual move in the same direction."""
    y_true, y_pred = _paired(actual, predicted)
    if len(y_true) < 2:
        return 0.0
    matches = np.sign(np.diff(y_true)) == np.sign(np.diff(y_pred))
    return float(np.mean(matches) * 100.0)


# ===========================
# INTERPRETATION
# ===========================

def interpret_mape(value: float) -> str:
    if value < 10:
        return "Excellent"
    if value < 20:
        return "Good"
    if value < 50:
        return "Fair"
    return "Poor"


def interpret_r_squared(value: float) -> str:
    if value >= 0.9:
        return "Excellent"
    if value >= 0.8:
        return "Good"
    if value >= 0.6:
        return "Fair"
    return "Poor"
