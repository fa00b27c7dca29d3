from collections import Counter
from datetime import date, datetime, timedelta
from typing import Sequence

from smartscales.models import Measurement, NutritionEntry

TIME_RANGES = {
    "1w": 7,
    "1m": 30,
    "3m": 90,
    "6m": 180,
    "1y": 365,
    "all": None,
}
RECENT_TREND_LOOKBACK = 7


def range_cutoff(range_key: str | None, now: datetime | None = None) -> datetime | None:
    key = (range_key or "all").strip().lower()
    if key not in TIME_RANGES:
        raise ValueError(f"Unknown range '{range_key}'. Use one of: {', '.join(TIME_RANGES)}.")
    days = TIME_RANGES[key]
    if days is None:
        return None
    return (now or datetime.utcnow()) - timedelta(days=days)


def in_range(timestamp: datetime, cutoff: datetime | None) -> bool:
    """Range filters include the cutoff instant itself."""
    return cutoff is None or timestamp >= cutoff


def _round_or_none(value, digits: int = 2):
    return round(value, digits) if value is not None else None


def weight_summary(measurements: Sequence[Measurement]) -> dict:
    """Headline numbers over the full history, independent of any chart range."""
    if not measurements:
        return {
            "entries": 0,
            "current_weight_kg": None,
            "start_weight_kg": None,
            "total_change_kg": None,
            "recent_change_kg": None,
        }

    current = measurements[-1].weight_kg
    start = measurements[0].weight_kg
    recent = 0.0
    if len(measurements) > RECENT_TREND_LOOKBACK:
        recent = measurements[-(RECENT_TREND_LOOKBACK + 1)].weight_kg - current

    return {
        "entries": len(measurements),
        "current_weight_kg": _round_or_none(current),
        "start_weight_kg": _round_or_none(start),
        # Positive means weight lost.
        "total_change_kg": _round_or_none(start - current),
        "recent_change_kg": _round_or_none(recent),
    }


def daily_macros(entries: Sequence[NutritionEntry]) -> list[dict]:
    totals: dict[date, dict] = {}
    for entry in entries:
        day = entry.eaten_at.date()
        bucket = totals.setdefault(
            day,
            {"date": day.isoformat(), "calories": 0.0, "protein_g": 0.0, "carbs_g": 0.0, "fat_g": 0.0},
        )
        bucket["calories"] += entry.calories or 0
        bucket["protein_g"] += entry.protein_g or 0
        bucket["carbs_g"] += entry.carbs_g or 0
        bucket["fat_g"] += entry.fat_g or 0

    rows = []
    for day in sorted(totals):
        bucket = totals[day]
        rows.append({key: _round_or_none(value, 1) if key != "date" else value for key, value in bucket.items()})
    return rows


def food_frequency(entries: Sequence[NutritionEntry], limit: int = 10) -> list[dict]:
    counts = Counter((entry.food_name or "").strip() for entry in entries)
    counts.pop("", None)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0].lower()))
    return [{"name": name, "count": count} for name, count in ranked[:limit]]
