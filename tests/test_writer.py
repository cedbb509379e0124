import os

import pandas as pd
import pytest

from birdchorus.binning import assign_hour_of_day
from birdchorus.errors import DatasetWriteError
from birdchorus.writer import DATASET_COLUMNS, read_dataset, write_dataset


@pytest.fixture
def events() -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            "site_id": ["S2", "S1", "S1"],
            "date": pd.to_datetime(["2022-01-01", "2022-01-02", "2022-01-01"]),
            "start_time": ["060000", "90000", "100001"],
            "split_index": ["1", "1", "2"],
            "time_of_day": ["dawn", "dawn", "dawn"],
            "restoration_type": ["Active", "Passive", "Passive"],
            "species_code": ["xx1", "xx1", "puwpig1"],
            "detection_count": [3, 1, 2],
        }
    )
    return assign_hour_of_day(frame)


def test_write_dataset(tmp_path, events):
    path = tmp_path / "events.csv"

    result = write_dataset(events, path)

    assert result == path
    lines = path.read_text().splitlines()
    assert lines[0] == ",".join(DATASET_COLUMNS)
    assert lines[1:] == [
        "S1,2022-01-01,100001,2,dawn,Passive,,puwpig1,2",
        "S1,2022-01-02,090000,1,dawn,Passive,9AM-10AM,xx1,1",
        "S2,2022-01-01,060000,1,dawn,Active,6AM-7AM,xx1,3",
    ]


def test_write_dataset_is_deterministic(tmp_path, events):
    first = write_dataset(events, tmp_path / "first.csv")
    second = write_dataset(
        events.sample(frac=1, random_state=3),
        tmp_path / "second.csv",
    )

    assert first.read_bytes() == second.read_bytes()


def test_write_dataset_replaces_existing_file(tmp_path, events):
    path = tmp_path / "events.csv"
    path.write_text("stale")

    write_dataset(events, path)

    assert path.read_text().startswith("site_id,")
    assert [p.name for p in tmp_path.iterdir()] == ["events.csv"]


def test_write_dataset_fails_on_missing_directory(tmp_path, events):
    path = tmp_path / "missing" / "events.csv"

    with pytest.raises(DatasetWriteError) as excinfo:
        write_dataset(events, path)

    assert excinfo.value.path == path
    assert str(path) in str(excinfo.value)
    assert isinstance(excinfo.value, IOError)
    assert not path.exists()


@pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root can write to read-only directories",
)
def test_write_dataset_fails_on_read_only_directory(tmp_path, events):
    directory = tmp_path / "locked"
    directory.mkdir()
    directory.chmod(0o500)

    try:
        with pytest.raises(DatasetWriteError):
            write_dataset(events, directory / "events.csv")
    finally:
        directory.chmod(0o700)


def test_write_dataset_requires_dataset_columns(tmp_path, events):
    with pytest.raises(ValueError, match="hour_of_day"):
        write_dataset(events.drop(columns="hour_of_day"), tmp_path / "x.csv")


def test_read_dataset(tmp_path, events):
    path = write_dataset(events, tmp_path / "events.csv")

    dataset = read_dataset(path)

    assert list(dataset.columns) == DATASET_COLUMNS
    assert dataset["start_time"].tolist() == ["100001", "090000", "060000"]
    assert dataset["split_index"].tolist() == ["2", "1", "1"]
    assert pd.isna(dataset["hour_of_day"].iloc[0])
    assert dataset["date"].iloc[0] == pd.Timestamp("2022-01-01")
    assert dataset["detection_count"].tolist() == [2, 1, 3]
