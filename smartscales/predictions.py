"""Short-horizon linear trend fitting and projection for measurement series."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

ONE_DAY = timedelta(days=1)
DEFAULT_WINDOW_SIZE = 5


@dataclass(frozen=True)
class Observation:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class Horizon:
    label: str
    days: int


DEFAULT_HORIZONS = (
    Horizon("1 Week", 7),
    Horizon("4 Weeks", 28),
    Horizon("3 Months", 90),
)


@dataclass(frozen=True)
class TrendModel:
    slope: float  # units per day
    intercept: float
    window_start: datetime
    last_offset_days: float
    last_value: float

    def as_dict(self) -> dict:
        return {
            "slope": self.slope,
            "intercept": self.intercept,
            "window_start": self.window_start.isoformat(),
            "last_offset_days": self.last_offset_days,
            "last_value": self.last_value,
        }


@dataclass(frozen=True)
class Projection:
    label: str
    target_date: datetime
    predicted_value: float
    change: float

    def as_dict(self) -> dict:
        return {
            "label": self.label,
            "target_date": self.target_date.isoformat(),
            "predicted_value": self.predicted_value,
            "change": self.change,
        }


def days_between(start: datetime, end: datetime) -> float:
    # timedelta / timedelta divides integer microseconds, so there is a single rounding step.
    return (end - start) / ONE_DAY


def compute_trend(series: Sequence[Observation], window_size: int = DEFAULT_WINDOW_SIZE) -> TrendModel | None:
    """Fit an ordinary least-squares line over the most recent ``window_size`` observations.

    The x axis is elapsed days since the first observation of the window. Returns
    ``None`` when there are fewer than two observations or when every timestamp in
    the window is identical (the slope is undefined).
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1.")
    if len(series) < 2:
        return None

    window = series[-window_size:]
    n = len(window)
    window_start = window[0].timestamp

    sum_x = 0.0
    sum_y = 0.0
    sum_xy = 0.0
    sum_xx = 0.0
    x = 0.0
    for observation in window:
        x = days_between(window_start, observation.timestamp)
        y = observation.value
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n

    return TrendModel(
        slope=slope,
        intercept=intercept,
        window_start=window_start,
        last_offset_days=x,
        last_value=window[-1].value,
    )


def project(
    series: Sequence[Observation],
    trend: TrendModel | None,
    horizons: Sequence[Horizon] = DEFAULT_HORIZONS,
) -> list[Projection]:
    if trend is None:
        return []

    anchor = series[-1].timestamp
    projections = []
    for horizon in horizons:
        target_date = anchor + timedelta(days=horizon.days)
        offset_days = days_between(trend.window_start, target_date)
        predicted_value = trend.slope * offset_days + trend.intercept
        projections.append(
            Projection(
                label=horizon.label,
                target_date=target_date,
                predicted_value=predicted_value,
                change=predicted_value - trend.last_value,
            )
        )
    return projections
