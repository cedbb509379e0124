"""Decomposition of composite recording filenames.

Annotated chunks are identified by filenames of the form
``<site>_<YYYYMMDD>_<HHMMSS>_<split>``, for example ``INBS04U_20200105_060000_3``.
The split index numbers the 10-second chunks cut from a longer recording.
"""

import datetime
import re
from typing import List

import pandas as pd
from pydantic import BaseModel

from birdchorus.errors import FilenameFormatError

__all__ = [
    "FILENAME_DELIMITER",
    "RecordingInfo",
    "decompose_filenames",
    "parse_filename",
]

FILENAME_DELIMITER = "_"

DATE_FORMATS = ["%Y%m%d", "%Y-%m-%d"]

_AUDIO_EXTENSION = re.compile(r"\.(wav|flac|mp3)$", re.IGNORECASE)


class RecordingInfo(BaseModel):
    """Structured metadata encoded in a recording filename."""

    site_id: str
    date: datetime.date
    start_time: str
    split_index: str


def _parse_date(filename: str, value: str) -> datetime.date:
    for date_format in DATE_FORMATS:
        try:
            return datetime.datetime.strptime(value, date_format).date()
        except ValueError:
            continue

    raise FilenameFormatError(filename, f"cannot parse date {value!r}")


def parse_filename(filename: str) -> RecordingInfo:
    """Split a recording filename into site, date, start time and split.

    The start time is left-padded with zeros to six digits, since clock
    values before 10 AM often lose their leading zero when the tables go
    through a spreadsheet.

    Raises
    ------
    FilenameFormatError
        If the filename does not split into exactly four parts on ``_``, or
        if the date or clock part cannot be read or is not a valid date or
        time of day.
    """
    if not isinstance(filename, str):
        raise FilenameFormatError(str(filename), "filename is missing")

    stem = _AUDIO_EXTENSION.sub("", filename.strip())
    parts = stem.split(FILENAME_DELIMITER)

    if len(parts) != 4:
        raise FilenameFormatError(
            filename,
            f"expected 4 parts separated by {FILENAME_DELIMITER!r}, "
            f"found {len(parts)}",
        )

    site_id, date, start_time, split_index = parts

    if not site_id or not split_index:
        raise FilenameFormatError(filename, "empty site or split index")

    if not start_time.isdigit() or len(start_time) > 6:
        raise FilenameFormatError(
            filename,
            f"start time {start_time!r} is not an HHMMSS clock value",
        )

    start_time = start_time.zfill(6)
    hours, minutes, seconds = (
        int(start_time[:2]),
        int(start_time[2:4]),
        int(start_time[4:]),
    )
    if hours > 23 or minutes > 59 or seconds > 59:
        raise FilenameFormatError(
            filename,
            f"start time {start_time!r} is not a valid time of day",
        )

    return RecordingInfo(
        site_id=site_id,
        date=_parse_date(filename, date),
        start_time=start_time,
        split_index=split_index,
    )


def decompose_filenames(
    frame: pd.DataFrame,
    column: str = "Filename",
) -> pd.DataFrame:
    """Replace the filename column by the four recording metadata columns.

    Returns a new frame; the input is left untouched. The new columns come
    first, in the order ``site_id``, ``date``, ``start_time``,
    ``split_index``.
    """
    infos: List[RecordingInfo] = [
        parse_filename(value) for value in frame[column].tolist()
    ]

    recordings = pd.DataFrame(
        {
            "site_id": [info.site_id for info in infos],
            "date": pd.to_datetime(
                [info.date for info in infos]
            ).to_numpy(),
            "start_time": [info.start_time for info in infos],
            "split_index": [info.split_index for info in infos],
        },
        index=frame.index,
    )

    return pd.concat([recordings, frame.drop(columns=[column])], axis=1)
