"""Serializes the detection events dataset.

The CSV written here is the only contract with the downstream analyses. Its
columns are `DATASET_COLUMNS`, dates are written in ISO 8601 form and start
times are always 6-digit zero-padded strings. Rows are sorted so that two
runs on the same input produce byte-identical files.

The file is first written to a temporary file next to the destination and
then moved into place, so readers never see a partially written dataset.
"""

import os
import tempfile
from pathlib import Path

import pandas as pd
from loguru import logger

from birdchorus.binning import format_start_time
from birdchorus.configs import PathLike
from birdchorus.errors import DatasetWriteError

__all__ = [
    "DATASET_COLUMNS",
    "SORT_ORDER",
    "read_dataset",
    "write_dataset",
]


DATASET_COLUMNS = [
    "site_id",
    "date",
    "start_time",
    "split_index",
    "time_of_day",
    "restoration_type",
    "hour_of_day",
    "species_code",
    "detection_count",
]

SORT_ORDER = [
    "site_id",
    "date",
    "start_time",
    "split_index",
    "time_of_day",
    "species_code",
]


def _prepare(events: pd.DataFrame) -> pd.DataFrame:
    missing = [name for name in DATASET_COLUMNS if name not in events.columns]
    if missing:
        raise ValueError(f"Detection events are missing columns: {missing}")

    table = events[DATASET_COLUMNS].assign(
        date=pd.to_datetime(events["date"]).dt.strftime("%Y-%m-%d"),
        start_time=format_start_time(events["start_time"]),
        split_index=events["split_index"].astype(str),
    )
    return table.sort_values(SORT_ORDER, kind="mergesort").reset_index(
        drop=True
    )


def write_dataset(events: pd.DataFrame, path: PathLike) -> Path:
    """Write detection events to the canonical CSV file.

    Parameters
    ----------
    events : pd.DataFrame
        Detection events with at least the `DATASET_COLUMNS` columns.
    path : PathLike
        Destination file. Its directory must already exist.

    Returns
    -------
    Path
        The destination path.

    Raises
    ------
    DatasetWriteError
        If the destination cannot be written. No file is left behind.
    ValueError
        If `events` lacks one of the dataset columns.
    """
    path = Path(path)
    table = _prepare(events)

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=".tmp",
            dir=path.parent,
        )
    except OSError as err:
        raise DatasetWriteError(path, str(err)) from err

    try:
        with os.fdopen(fd, "w", newline="") as file:
            table.to_csv(file, index=False, lineterminator="\n")
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as err:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise DatasetWriteError(path, str(err)) from err

    logger.info(
        "Wrote {num_events} detection events to {path}",
        num_events=len(table),
        path=path,
    )
    return path


def read_dataset(path: PathLike) -> pd.DataFrame:
    """Read a detection events CSV written by `write_dataset`.

    Identifiers and start times are kept as strings, ``date`` is parsed as
    a datetime column and blank ``hour_of_day`` cells become missing values.
    """
    return pd.read_csv(
        path,
        dtype={
            "site_id": str,
            "start_time": str,
            "split_index": str,
            "time_of_day": str,
            "restoration_type": str,
            "hour_of_day": str,
            "species_code": str,
            "detection_count": "int64",
        },
        parse_dates=["date"],
    )
