import os
import unittest
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from smartscales.ai import build_trend_summary, trend_reflection
from smartscales.predictions import Observation, compute_trend, project

T0 = datetime(2026, 1, 1, 7, 0)


class TrendSummaryTestCase(unittest.TestCase):
    def test_summary_lists_slope_and_projections(self):
        series = [Observation(T0 + timedelta(days=i), 100.0 - i) for i in range(5)]
        trend = compute_trend(series)
        text = build_trend_summary("weight", series, trend, project(series, trend))

        self.assertIn("Entries logged: 5", text)
        self.assertIn("Recent slope: -1.000 per day (-7.00 per week)", text)
        self.assertIn("Projection 1 Week (2026-01-12): 89.00 (change -7.00)", text)
        self.assertIn("Projection 3 Months", text)

    def test_summary_without_trend(self):
        series = [Observation(T0, 80.0)]
        text = build_trend_summary("weight", series, None, [])
        self.assertIn("not enough distinct data points", text)
        self.assertNotIn("Projection", text)


class TrendReflectionTestCase(unittest.TestCase):
    def test_missing_api_key_returns_hint(self):
        with patch.dict(os.environ, {"OPENAI_API_KEY": ""}):
            self.assertEqual(trend_reflection("Metric: weight"), "Set OPENAI_API_KEY to enable AI reflection.")

    def test_reflection_uses_responses_api(self):
        client = MagicMock()
        client.responses.create.return_value = MagicMock(output_text="Steady progress.")
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test", "OPENAI_REFLECTION_MODEL": "test-model"}):
            with patch("smartscales.ai.OpenAI", return_value=client) as factory:
                reply = trend_reflection("Metric: weight")

        self.assertEqual(reply, "Steady progress.")
        factory.assert_called_once_with(api_key="sk-test")
        kwargs = client.responses.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "test-model")
        self.assertIn("Metric: weight", kwargs["input"])

    def test_empty_model_output_falls_back(self):
        client = MagicMock()
        client.responses.create.return_value = MagicMock(output_text="")
        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}):
            with patch("smartscales.ai.OpenAI", return_value=client):
                self.assertEqual(trend_reflection("x"), "No reflection generated.")


if __name__ == "__main__":
    unittest.main()
