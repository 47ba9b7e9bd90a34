import datetime as dt
import unittest

from surveillance_sarima.gaps import analyze_gaps


def _every(days, n, start=dt.date(2023, 1, 1)):
    return [start + dt.timedelta(days=days * i) for i in range(n)]


class TestGapAnalysis(unittest.TestCase):
    def test_regular_thirty_day_spacing(self):
        report = analyze_gaps(_every(30, 12))
        self.assertAlmostEqual(report.average_gap, 30.0)
        self.assertAlmostEqual(report.maximum_gap, 30.0)
        self.assertAlmostEqual(report.minimum_gap, 30.0)
        self.assertFalse(report.irregular)
        self.assertTrue(report.aggregation_eligible)

    def test_single_long_gap_is_irregular(self):
        dates = _every(30, 10)
        dates.append(dates[-1] + dt.timedelta(days=378))
        report = analyze_gaps(dates)
        self.assertTrue(report.irregular)
        self.assertAlmostEqual(report.maximum_gap, 378.0)
        self.assertAlmostEqual(report.average_gap, 64.8)

    def test_daily_series_neither_irregular_nor_eligible(self):
        report = analyze_gaps(_every(1, 10))
        self.assertFalse(report.irregular)
        self.assertFalse(report.aggregation_eligible)

    def test_irregular_but_too_few_points_for_aggregation(self):
        dates = [dt.date(2024, 1, d) for d in (1, 2, 3, 4)] + [dt.date(2024, 3, 30)]
        report = analyze_gaps(dates)
        self.assertTrue(report.irregular)
        self.assertFalse(report.aggregation_eligible)

    def test_unsorted_input_is_sorted_first(self):
        dates = _every(30, 8)
        shuffled = dates[::2] + dates[1::2]
        self.assertEqual(analyze_gaps(shuffled), analyze_gaps(dates))

    def test_fewer_than_two_dates(self):
        report = analyze_gaps([dt.date(2024, 1, 1)])
        self.assertEqual(report.average_gap, 0.0)
        self.assertEqual(report.maximum_gap, 0.0)
        self.assertFalse(report.irregular)
        self.assertFalse(report.aggregation_eligible)


if __name__ == "__main__":
    unittest.main()
