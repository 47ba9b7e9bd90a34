import unittest
from unittest import mock

import numpy as np

from surveillance_sarima.orders import differenced_order, fallback_order
from surveillance_sarima.trainer import fallback_forecast, train_and_forecast, validate_predictions
from surveillance_sarima.types import FallbackReason, ModelOrder, OrderKind


SERIES = [12, 15, 11, 18, 14, 20, 17, 13, 16, 19, 15, 18, 14, 17, 20, 16]
ARIMA_110 = ModelOrder(1, 1, 0, 0, 0, 0, 1, OrderKind.TREND_DIFFERENCED)


class TestValidatePredictions(unittest.TestCase):
    def test_non_finite_rejected(self):
        self.assertFalse(validate_predictions([1.0, np.nan], [5, 10]).valid)
        self.assertFalse(validate_predictions([1.0, np.inf], [5, 10]).valid)

    def test_explosion_rejected(self):
        result = validate_predictions([50, 101], [1, 10])
        self.assertFalse(result.valid)
        self.assertIn("historical max", result.reason)
        self.assertTrue(validate_predictions([100, 100], [1, 10]).valid)

    def test_compounding_growth_rejected(self):
        result = validate_predictions([1, 2, 4, 8], [100])
        self.assertFalse(result.valid)
        self.assertIn("growth", result.reason)

    def test_zero_predecessor_uses_epsilon(self):
        self.assertFalse(validate_predictions([0, 0.5], [10]).valid)

    def test_stable_forecast_accepted(self):
        result = validate_predictions([10, 11, 10], [8, 12, 9])
        self.assertTrue(result.valid)
        self.assertIsNone(result.reason)


class TestFallbackForecast(unittest.TestCase):
    def test_linear_extrapolation(self):
        preds, lower, upper = fallback_forecast([1, 2, 3, 4, 5, 6, 7], 3)
        self.assertEqual(preds, [8.0, 9.0, 10.0])
        # population std of 1..7 is 2, so the margin is 3.92
        self.assertEqual(lower, [4.0, 5.0, 6.0])
        self.assertEqual(upper, [12.0, 13.0, 14.0])

    def test_only_trailing_window_drives_slope(self):
        preds, _, _ = fallback_forecast([100, 0, 5, 5, 5, 5, 5, 5, 5], 2)
        self.assertEqual(preds, [5.0, 5.0])

    def test_declining_series_floors_at_zero(self):
        preds, lower, _ = fallback_forecast([10, 8, 6, 4, 2], 3)
        self.assertEqual(preds, [0.0, 0.0, 0.0])
        self.assertEqual(lower, [0.0, 0.0, 0.0])

    def test_long_horizon_capped_at_five_times_max(self):
        preds, lower, upper = fallback_forecast([0, 0, 0, 0, 1, 2, 3], 40)
        self.assertEqual(max(preds), 15.0)
        self.assertTrue(all(u <= 15.0 for u in upper))
        self.assertTrue(all(lo <= p <= u for lo, p, u in zip(lower, preds, upper)))

    def test_fractional_cap_keeps_bounds_ordered(self):
        history = [2.40, 2.42, 2.44, 2.46]
        preds, lower, upper = fallback_forecast(history, 600)
        self.assertEqual(max(preds), 12.0)
        for lo, p, hi in zip(lower, preds, upper):
            self.assertTrue(0 <= lo <= p <= hi <= 5 * max(history))

    def test_single_point_and_empty_history(self):
        self.assertEqual(fallback_forecast([5], 2), ([5.0, 5.0], [5.0, 5.0], [5.0, 5.0]))
        self.assertEqual(fallback_forecast([], 2), ([0.0, 0.0], [0.0, 0.0], [0.0, 0.0]))


class TestTrainAndForecast(unittest.TestCase):
    def test_fallback_order_skips_fitting(self):
        with mock.patch("surveillance_sarima.trainer._fit_sarimax") as fit:
            bundle = train_and_forecast(SERIES, fallback_order(), 4)
        fit.assert_not_called()
        self.assertTrue(bundle.used_fallback)
        self.assertEqual(bundle.fallback_reason, FallbackReason.SENTINEL_ORDER)
        self.assertEqual(len(bundle.predictions), 4)

    def test_fit_exception_routes_to_fallback(self):
        with mock.patch("surveillance_sarima.trainer._fit_sarimax",
                        side_effect=np.linalg.LinAlgError("singular matrix")):
            bundle = train_and_forecast(SERIES, ARIMA_110, 3)
        self.assertTrue(bundle.used_fallback)
        self.assertEqual(bundle.fallback_reason, FallbackReason.TRAINING_FAILURE)
        self.assertEqual(bundle.predictions, fallback_forecast(SERIES, 3)[0])

    def test_exploding_forecast_routes_to_fallback(self):
        with mock.patch("surveillance_sarima.trainer._fit_sarimax",
                        return_value=(np.array([1e6, 2e6, 4e6]), np.zeros(10))):
            bundle = train_and_forecast(SERIES, ARIMA_110, 3)
        self.assertTrue(bundle.used_fallback)
        self.assertEqual(bundle.fallback_reason, FallbackReason.UNSTABLE_FIT)
        self.assertLessEqual(max(bundle.predictions), 5 * max(SERIES))

    def test_accepted_forecast_is_rounded_and_bounded(self):
        raw = np.array([10.4, 11.6, -3.0])
        resid = np.array([1.0, -1.0, 1.0, -1.0])
        with mock.patch("surveillance_sarima.trainer._fit_sarimax", return_value=(raw, resid)):
            bundle = train_and_forecast(SERIES, ARIMA_110, 3)
        self.assertFalse(bundle.used_fallback)
        self.assertIsNone(bundle.fallback_reason)
        self.assertEqual(bundle.predictions, [10.0, 12.0, 0.0])
        self.assertEqual(bundle.lower, [8.0, 10.0, 0.0])
        self.assertEqual(bundle.upper, [12.0, 14.0, 2.0])
        self.assertAlmostEqual(bundle.residual_std, 1.0)

    def test_accepted_forecast_with_fractional_cap(self):
        history = [0.5, 1, 2.5, 2.5, 2.5]
        with mock.patch("surveillance_sarima.trainer._fit_sarimax",
                        return_value=(np.array([13.0, 13.0]), np.zeros(5))):
            bundle = train_and_forecast(history, ARIMA_110, 2)
        self.assertFalse(bundle.used_fallback)
        self.assertEqual(bundle.predictions, [12.0, 12.0])
        self.assertEqual(bundle.lower, [12.0, 12.0])
        self.assertEqual(bundle.upper, [12.0, 12.0])

    def test_real_fit_stays_within_bounds(self):
        bundle = train_and_forecast(SERIES, differenced_order(with_ma=True), 6)
        self.assertEqual(len(bundle.predictions), 6)
        cap = 5 * max(SERIES)
        for lo, p, hi in zip(bundle.lower, bundle.predictions, bundle.upper):
            self.assertTrue(0 <= lo <= p <= hi <= cap)
            self.assertEqual(p, round(p))


if __name__ == "__main__":
    unittest.main()
