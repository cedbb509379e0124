import datetime

import pandas as pd
import pytest
from pydantic import ValidationError

from birdchorus.binning import (
    RecordingWindows,
    TimeWindow,
    assign_hour_of_day,
    build_hour_buckets,
    format_clock,
    format_start_time,
    hour_label,
    start_time_to_seconds,
)


def _bucket_of(start_time, buckets=None):
    events = pd.DataFrame({"start_time": [start_time]})
    return assign_hour_of_day(events, buckets)["hour_of_day"].iloc[0]


def test_default_buckets():
    buckets = build_hour_buckets()

    assert [bucket.label for bucket in buckets] == [
        "6AM-7AM",
        "7AM-8AM",
        "8AM-9AM",
        "9AM-10AM",
        "4PM-5PM",
        "5PM-6PM",
        "6PM-7PM",
    ]
    assert [bucket.closed_right for bucket in buckets] == [
        False,
        False,
        False,
        True,
        False,
        False,
        True,
    ]


@pytest.mark.parametrize(
    "start_time,expected",
    [
        ("060000", "6AM-7AM"),
        ("065959", "6AM-7AM"),
        ("070000", "7AM-8AM"),
        ("085959", "8AM-9AM"),
        ("090000", "9AM-10AM"),
        ("100000", "9AM-10AM"),
        ("160000", "4PM-5PM"),
        ("170000", "5PM-6PM"),
        ("180000", "6PM-7PM"),
        ("190000", "6PM-7PM"),
        ("60000", "6AM-7AM"),
        (93000, "9AM-10AM"),
    ],
)
def test_hour_of_day_buckets(start_time, expected):
    assert _bucket_of(start_time) == expected


@pytest.mark.parametrize(
    "start_time",
    ["100001", "055959", "190001", "120000", "155959", "not-a-time"],
)
def test_hour_of_day_outside_windows_is_null(start_time):
    assert _bucket_of(start_time) is None


def test_assign_hour_of_day_pads_start_time():
    events = pd.DataFrame({"start_time": ["60000", 70000, "080000"]})

    result = assign_hour_of_day(events)

    assert result["start_time"].tolist() == ["060000", "070000", "080000"]
    assert events["start_time"].tolist() == ["60000", 70000, "080000"]


def test_assign_hour_of_day_with_custom_windows():
    windows = RecordingWindows(
        dawn=TimeWindow(start="05:00", end="07:00"),
        dusk=TimeWindow(start="12:00", end="13:00"),
    )
    buckets = build_hour_buckets(windows)

    assert [bucket.label for bucket in buckets] == [
        "5AM-6AM",
        "6AM-7AM",
        "12PM-1PM",
    ]
    assert _bucket_of("070000", buckets) == "6AM-7AM"
    assert _bucket_of("130000", buckets) == "12PM-1PM"
    assert _bucket_of("080000", buckets) is None


def test_assign_hour_of_day_on_empty_events():
    events = pd.DataFrame({"start_time": pd.Series([], dtype=object)})

    result = assign_hour_of_day(events)

    assert "hour_of_day" in result.columns
    assert result.empty


def test_format_start_time_keeps_missing_values():
    result = format_start_time(pd.Series(["90000", None, 60000.0]))
    assert result.iloc[0] == "090000"
    assert pd.isna(result.iloc[1])
    assert result.iloc[2] == "060000"


def test_start_time_to_seconds():
    seconds = start_time_to_seconds(pd.Series(["060000", "093015", "x"]))
    assert seconds.iloc[0] == 6 * 3600
    assert seconds.iloc[1] == 9 * 3600 + 30 * 60 + 15
    assert pd.isna(seconds.iloc[2])


def test_hour_label():
    assert hour_label(0) == "12AM"
    assert hour_label(11) == "11AM"
    assert hour_label(12) == "12PM"
    assert hour_label(19) == "7PM"
    assert hour_label(24) == "12AM"


def test_format_clock():
    assert format_clock(datetime.time(6)) == "060000"
    assert format_clock(datetime.time(16, 30)) == "163000"


def test_default_windows():
    windows = RecordingWindows()
    assert windows.dawn.start == datetime.time(6)
    assert windows.dawn.end == datetime.time(10)
    assert windows.dusk.start == datetime.time(16)
    assert windows.dusk.end == datetime.time(19)


def test_time_window_requires_whole_hours():
    with pytest.raises(ValidationError):
        TimeWindow(start="06:30", end="10:00")


def test_time_window_requires_ordered_bounds():
    with pytest.raises(ValidationError):
        TimeWindow(start="10:00", end="06:00")


def test_time_window_rejects_unquoted_yaml_times():
    with pytest.raises(ValidationError, match="strings"):
        TimeWindow(start=360, end="10:00")


def test_recording_windows_must_not_overlap():
    with pytest.raises(ValidationError):
        RecordingWindows(
            dawn=TimeWindow(start="06:00", end="12:00"),
            dusk=TimeWindow(start="11:00", end="19:00"),
        )
