"""Buckets detection events into hour-of-day bins.

Recordings were scheduled in two daily windows, dawn and dusk. Each window
is split into one-hour buckets labelled with a 12-hour clock range, e.g.
``"6AM-7AM"``. Buckets are half-open ``[start, end)`` except for the last
bucket of each window, which also includes the window end. With the default
windows (06:00-10:00 and 16:00-19:00) this gives seven buckets:

=============  ===============================
Bucket         Start time interval (HHMMSS)
=============  ===============================
``6AM-7AM``    ``[060000, 070000)``
``7AM-8AM``    ``[070000, 080000)``
``8AM-9AM``    ``[080000, 090000)``
``9AM-10AM``   ``[090000, 100000]``
``4PM-5PM``    ``[160000, 170000)``
``5PM-6PM``    ``[170000, 180000)``
``6PM-7PM``    ``[180000, 190000]``
=============  ===============================

A start time outside every bucket gets a null bucket. Such events are kept
in the dataset but must be left out of hour-of-day analyses.
"""

import datetime
from typing import List, NamedTuple, Optional

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import Field, field_validator, model_validator

from birdchorus.configs import BaseConfig

__all__ = [
    "HourBucket",
    "RecordingWindows",
    "TimeWindow",
    "assign_hour_of_day",
    "build_hour_buckets",
    "format_clock",
    "format_start_time",
    "hour_label",
    "start_time_to_seconds",
]


class TimeWindow(BaseConfig):
    """A daily recording window between two whole-hour clock times.

    Clock times must be quoted in YAML files (``start: "06:00"``), otherwise
    YAML reads ``06:00`` as a base-60 integer.
    """

    start: datetime.time
    end: datetime.time

    @field_validator("start", "end", mode="before")
    @classmethod
    def reject_numbers(cls, value):
        if isinstance(value, (int, float)):
            raise ValueError(
                "clock times must be given as strings such as '06:00'"
            )
        return value

    @field_validator("start", "end")
    @classmethod
    def check_whole_hour(cls, value: datetime.time) -> datetime.time:
        if value.minute or value.second or value.microsecond:
            raise ValueError("window boundaries must fall on a whole hour")
        return value

    @model_validator(mode="after")
    def check_order(self) -> "TimeWindow":
        if self.start >= self.end:
            raise ValueError("window start must be before its end")
        return self


class RecordingWindows(BaseConfig):
    """Clock boundaries of the dawn and dusk recording windows.

    These describe when recordings were made. They do not filter events:
    the time of day of an event comes from the table it was read from.
    """

    dawn: TimeWindow = Field(
        default_factory=lambda: TimeWindow(
            start=datetime.time(6),
            end=datetime.time(10),
        )
    )
    dusk: TimeWindow = Field(
        default_factory=lambda: TimeWindow(
            start=datetime.time(16),
            end=datetime.time(19),
        )
    )

    @model_validator(mode="after")
    def check_disjoint(self) -> "RecordingWindows":
        if self.dawn.end > self.dusk.start:
            raise ValueError("dawn window must end before dusk window starts")
        return self


class HourBucket(NamedTuple):
    label: str
    start: int
    """Start of the bucket in seconds since midnight."""
    end: int
    """End of the bucket in seconds since midnight."""
    closed_right: bool = False


def hour_label(hour: int) -> str:
    """Format an hour of the day in 12-hour clock notation.

    >>> hour_label(0), hour_label(6), hour_label(12), hour_label(18)
    ('12AM', '6AM', '12PM', '6PM')
    """
    suffix = "AM" if hour % 24 < 12 else "PM"
    return f"{hour % 12 or 12}{suffix}"


def build_hour_buckets(
    windows: Optional[RecordingWindows] = None,
) -> List[HourBucket]:
    """List the one-hour buckets of the dawn and dusk windows in order."""
    windows = windows or RecordingWindows()
    buckets = []

    for window in [windows.dawn, windows.dusk]:
        first, last = window.start.hour, window.end.hour
        for hour in range(first, last):
            buckets.append(
                HourBucket(
                    label=f"{hour_label(hour)}-{hour_label(hour + 1)}",
                    start=hour * 3600,
                    end=(hour + 1) * 3600,
                    closed_right=hour + 1 == last,
                )
            )

    return buckets


def format_clock(value: datetime.time) -> str:
    """Format a clock time as a 6-digit ``HHMMSS`` string."""
    return value.strftime("%H%M%S")


def format_start_time(values: pd.Series) -> pd.Series:
    """Left-pad start times to 6 digits.

    Integer start times (``60000``) and short strings (``"60000"``) both
    become ``"060000"``. Missing values stay missing.
    """

    def _pad(value):
        if pd.isna(value):
            return value

        if isinstance(value, float) and value.is_integer():
            value = int(value)

        return str(value).strip().zfill(6)

    return values.map(_pad)


def start_time_to_seconds(values: pd.Series) -> pd.Series:
    """Convert ``HHMMSS`` start times into seconds since midnight.

    Values that are not numbers become missing.
    """
    digits = pd.to_numeric(format_start_time(values), errors="coerce")
    hours = digits // 10000
    minutes = (digits // 100) % 100
    seconds = digits % 100
    return hours * 3600 + minutes * 60 + seconds


def assign_hour_of_day(
    events: pd.DataFrame,
    buckets: Optional[List[HourBucket]] = None,
) -> pd.DataFrame:
    """Add an ``hour_of_day`` column derived from each event's start time.

    Also normalizes ``start_time`` to 6-digit zero-padded strings. Returns a
    new frame; events whose start time is outside every bucket get a null
    ``hour_of_day``.
    """
    buckets = buckets if buckets is not None else build_hour_buckets()

    start_time = format_start_time(events["start_time"])
    seconds = start_time_to_seconds(start_time).to_numpy(dtype=float)

    conditions = [
        (seconds >= bucket.start)
        & (
            seconds <= bucket.end
            if bucket.closed_right
            else seconds < bucket.end
        )
        for bucket in buckets
    ]
    choices = [np.full(seconds.shape, i) for i in range(len(buckets))]
    index = np.select(conditions, choices, default=-1)
    labels = [buckets[i].label if i >= 0 else None for i in index]

    unbinned = sum(label is None for label in labels)
    if unbinned:
        logger.warning(
            "{num_events} events start outside every hour-of-day bucket "
            "and were given a null bucket",
            num_events=unbinned,
        )

    return events.assign(
        start_time=start_time,
        hour_of_day=pd.Series(labels, index=events.index, dtype=object),
    )
