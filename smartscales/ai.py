import os
from typing import Sequence

from openai import OpenAI

from smartscales.predictions import Observation, Projection, TrendModel


def _fmt(value, digits: int = 2) -> str:
    return f"{value:.{digits}f}" if value is not None else "n/a"


def build_trend_summary(
    metric: str,
    series: Sequence[Observation],
    trend: TrendModel | None,
    projections: Sequence[Projection],
) -> str:
    lines = [f"Metric: {metric}", f"Entries logged: {len(series)}"]
    if series:
        lines.append(f"First entry: {series[0].timestamp.date().isoformat()} = {_fmt(series[0].value)}")
        lines.append(f"Latest entry: {series[-1].timestamp.date().isoformat()} = {_fmt(series[-1].value)}")

    if trend is None:
        lines.append("Trend: not enough distinct data points to fit a trend yet.")
        return "\n".join(lines)

    lines.append(f"Recent slope: {_fmt(trend.slope, 3)} per day ({_fmt(trend.slope * 7)} per week)")
    for projection in projections:
        lines.append(
            f"Projection {projection.label} ({projection.target_date.date().isoformat()}): "
            f"{_fmt(projection.predicted_value)} (change {projection.change:+.2f})"
        )
    return "\n".join(lines)


def trend_reflection(summary_text: str) -> str:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        return "Set OPENAI_API_KEY to enable AI reflection."

    model = os.getenv("OPENAI_REFLECTION_MODEL", "gpt-4.1-mini")
    client = OpenAI(api_key=api_key)

    resp = client.responses.create(
        model=model,
        input=(
            "You're an encouraging but factual health coach. Summarise this body-composition trend in two or "
            "three sentences, note that projections are simple linear extrapolations, and suggest one next step."
            f"\n\n{summary_text}"
        ),
    )
    return resp.output_text or "No reflection generated."
