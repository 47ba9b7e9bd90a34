import math
import unittest

from surveillance_sarima import metrics


class TestErrorMetrics(unittest.TestCase):
    def test_basic_errors(self):
        actual = [1, 2, 3]
        predicted = [1, 2, 5]
        self.assertAlmostEqual(metrics.mse(actual, predicted), 4 / 3)
        self.assertAlmostEqual(metrics.rmse(actual, predicted), math.sqrt(4 / 3))
        self.assertAlmostEqual(metrics.mae(actual, predicted), 2 / 3)

    def test_empty_or_mismatched_inputs_raise(self):
        with self.assertRaises(ValueError):
            metrics.mse([], [])
        with self.assertRaises(ValueError):
            metrics.mae([1, 2], [1])

    def test_r_squared_is_clamped(self):
        self.assertAlmostEqual(metrics.r_squared([1, 2, 3], [1, 2, 3]), 1.0)
        self.assertEqual(metrics.r_squared([1, 2, 3], [3, 2, 1]), 0.0)
        score = metrics.r_squared([1, 2, 3, 4], [1.1, 2.1, 2.9, 4.2])
        self.assertTrue(0.0 <= score <= 1.0)

    def test_r_squared_constant_actuals(self):
        self.assertEqual(metrics.r_squared([5, 5, 5], [5, 5, 5]), 1.0)
        self.assertEqual(metrics.r_squared([5, 5, 5], [5, 5, 6]), 0.0)

    def test_mape_skips_zero_actuals(self):
        self.assertAlmostEqual(metrics.mape([100, 0, 50], [110, 3, 50]), 5.0)

    def test_mape_all_zero_actuals(self):
        self.assertEqual(metrics.mape([0, 0, 0], [0, 0, 0]), 0.0)
        self.assertEqual(metrics.mape([0, 0, 0], [0, 1, 0]), 100.0)

    def test_variance_is_population(self):
        self.assertAlmostEqual(metrics.variance([16, 17, 18, 19, 20]), 2.0)
        self.assertEqual(metrics.variance([]), 0.0)

    def test_directional_accuracy(self):
        self.assertAlmostEqual(metrics.directional_accuracy([1, 2, 3, 2], [1, 3, 4, 5]), 200 / 3)
        self.assertEqual(metrics.directional_accuracy([4], [4]), 0.0)


class TestInterpretation(unittest.TestCase):
    def test_interpret_mape(self):
        self.assertEqual(metrics.interpret_mape(9.99), "Excellent")
        self.assertEqual(metrics.interpret_mape(10), "Good")
        self.assertEqual(metrics.interpret_mape(49.9), "Fair")
        self.assertEqual(metrics.interpret_mape(50), "Poor")

    def test_interpret_r_squared(self):
        self.assertEqual(metrics.interpret_r_squared(0.9), "Excellent")
        self.assertEqual(metrics.interpret_r_squared(0.85), "Good")
        self.assertEqual(metrics.interpret_r_squared(0.6), "Fair")
        self.assertEqual(metrics.interpret_r_squared(0.59), "Poor")


if __name__ == "__main__":
    unittest.main()
