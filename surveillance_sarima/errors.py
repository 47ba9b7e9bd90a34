class ForecastError(Exception):
    """Base class for errors raised by the forecasting engine."""


class InsufficientDataError(ForecastError, ValueError):
    """Raised when too few observations are supplied to forecast anything."""

    def __init__(self, n_observations: int, required: int):
        self.n_observations = n_observations
        self.required = required
        super().__init__(
            f"Insufficient historical data: {n_observations} observation(s), "
            f"at least {required} required."
        )
