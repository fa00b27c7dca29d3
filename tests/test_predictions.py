import unittest
from datetime import datetime, timedelta

from smartscales.predictions import (
    DEFAULT_HORIZONS,
    Horizon,
    Observation,
    compute_trend,
    days_between,
    project,
)

T0 = datetime(2026, 1, 28, 9, 2, 59)


def daily_series(values, start=T0, step=timedelta(days=1)):
    return [Observation(timestamp=start + step * i, value=value) for i, value in enumerate(values)]


class ComputeTrendTestCase(unittest.TestCase):
    def test_fewer_than_two_observations_has_no_trend(self):
        self.assertIsNone(compute_trend([]))
        self.assertIsNone(compute_trend([Observation(T0, 80.0)]))

    def test_two_points_fit_exact_line(self):
        series = [Observation(T0, 10.0), Observation(T0 + timedelta(days=2), 8.0)]
        trend = compute_trend(series)

        self.assertEqual(trend.slope, -1.0)
        self.assertEqual(trend.intercept, 10.0)
        self.assertEqual(trend.window_start, T0)
        self.assertEqual(trend.last_offset_days, 2.0)
        self.assertEqual(trend.last_value, 8.0)

    def test_perfectly_linear_five_day_series(self):
        trend = compute_trend(daily_series([100, 99, 98, 97, 96]))

        self.assertEqual(trend.slope, -1.0)
        self.assertEqual(trend.intercept, 100.0)
        self.assertEqual(trend.last_value, 96)
        self.assertEqual(trend.last_offset_days, 4.0)

    def test_window_uses_only_most_recent_points(self):
        # The first three points are far off the line and must be ignored.
        series = daily_series([500, -40, 300, 100, 99, 98, 97, 96])
        trend = compute_trend(series, window_size=5)

        self.assertEqual(trend.window_start, series[3].timestamp)
        self.assertEqual(trend.slope, -1.0)
        self.assertEqual(trend.intercept, 100.0)

    def test_window_larger_than_series_uses_all_points(self):
        series = daily_series([90.0, 89.0, 88.0])
        trend = compute_trend(series, window_size=5)

        self.assertEqual(trend.window_start, series[0].timestamp)
        self.assertEqual(trend.last_offset_days, 2.0)
        self.assertEqual(trend.slope, -1.0)
        self.assertEqual(trend.intercept, 90.0)

    def test_fractional_days_are_not_truncated(self):
        series = [Observation(T0, 80.0), Observation(T0 + timedelta(hours=12), 79.0)]
        trend = compute_trend(series)

        self.assertEqual(trend.last_offset_days, 0.5)
        self.assertEqual(trend.slope, -2.0)

    def test_identical_timestamps_are_treated_as_insufficient_data(self):
        series = [Observation(T0, 80.0), Observation(T0, 81.0), Observation(T0, 79.5)]

        self.assertIsNone(compute_trend(series))
        self.assertEqual(project(series, compute_trend(series)), [])

    def test_single_point_window_has_no_trend(self):
        self.assertIsNone(compute_trend(daily_series([80.0, 79.0, 78.0]), window_size=1))

    def test_invalid_window_size_is_rejected(self):
        with self.assertRaises(ValueError):
            compute_trend(daily_series([80.0, 79.0]), window_size=0)

    def test_noisy_series_matches_least_squares(self):
        series = daily_series([82.4, 82.9, 81.7, 81.9, 81.2])
        trend = compute_trend(series)

        xs = [days_between(series[0].timestamp, obs.timestamp) for obs in series]
        ys = [obs.value for obs in series]
        mean_x = sum(xs) / len(xs)
        mean_y = sum(ys) / len(ys)
        expected_slope = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys)) / sum(
            (x - mean_x) ** 2 for x in xs
        )
        self.assertAlmostEqual(trend.slope, expected_slope, places=10)
        self.assertAlmostEqual(trend.intercept, mean_y - expected_slope * mean_x, places=10)

    def test_input_series_is_not_mutated(self):
        series = daily_series([100, 99, 98])
        snapshot = list(series)
        compute_trend(series)
        project(series, compute_trend(series))
        self.assertEqual(series, snapshot)


class ProjectTestCase(unittest.TestCase):
    def test_absent_trend_yields_no_projections(self):
        self.assertEqual(project([Observation(T0, 80.0)], None), [])
        self.assertEqual(project([], None), [])

    def test_one_week_projection_on_linear_series(self):
        series = daily_series([100, 99, 98, 97, 96])
        projections = project(series, compute_trend(series), [Horizon("1 Week", 7)])

        self.assertEqual(len(projections), 1)
        projection = projections[0]
        self.assertEqual(projection.label, "1 Week")
        self.assertEqual(projection.target_date, T0 + timedelta(days=11))
        self.assertEqual(projection.predicted_value, 89.0)
        self.assertEqual(projection.change, -7.0)

    def test_default_horizons_in_fixed_order(self):
        series = daily_series([100, 99, 98, 97, 96])
        projections = project(series, compute_trend(series))

        self.assertEqual([p.label for p in projections], ["1 Week", "4 Weeks", "3 Months"])
        self.assertEqual([p.predicted_value for p in projections], [89.0, 68.0, 6.0])
        self.assertEqual([p.change for p in projections], [-7.0, -28.0, -90.0])
        self.assertEqual(len(DEFAULT_HORIZONS), 3)

    def test_projection_uses_window_start_not_series_start(self):
        series = daily_series([70, 70, 70, 100, 99, 98, 97, 96])
        trend = compute_trend(series)
        projection = project(series, trend, [Horizon("1 Week", 7)])[0]

        # Window starts at day 3; the last point is day 7; the target is day 14 -> x = 11.
        self.assertEqual(projection.predicted_value, 89.0)
        self.assertEqual(projection.target_date, series[-1].timestamp + timedelta(days=7))

    def test_output_order_follows_input_horizons(self):
        series = daily_series([100, 99, 98, 97, 96])
        horizons = [Horizon("3 Months", 90), Horizon("1 Day", 1), Horizon("4 Weeks", 28)]
        projections = project(series, compute_trend(series), horizons)

        self.assertEqual([p.label for p in projections], ["3 Months", "1 Day", "4 Weeks"])

    def test_repeated_calls_are_identical(self):
        series = daily_series([82.4, 82.9, 81.7, 81.9, 81.2, 80.8])
        first = (compute_trend(series), project(series, compute_trend(series)))
        second = (compute_trend(series), project(series, compute_trend(series)))
        self.assertEqual(first, second)

    def test_as_dict_serialises_dates(self):
        series = daily_series([100, 99])
        trend = compute_trend(series)
        projection = project(series, trend)[0]

        self.assertEqual(trend.as_dict()["window_start"], T0.isoformat())
        self.assertEqual(projection.as_dict()["target_date"], (T0 + timedelta(days=8)).isoformat())


if __name__ == "__main__":
    unittest.main()
