from pathlib import Path
from typing import List, Literal

from pydantic import Field

from birdchorus.configs import BaseConfig

__all__ = [
    "AnnotationColumns",
    "AnnotationSource",
    "METADATA_COLUMNS",
    "TIMES_OF_DAY",
    "TimeOfDay",
]


TimeOfDay = Literal["dawn", "dusk"]
"""Daily recording window an annotation table was collected in."""

TIMES_OF_DAY: List[TimeOfDay] = ["dawn", "dusk"]

METADATA_COLUMNS = [
    "site_id",
    "date",
    "start_time",
    "split_index",
    "time_of_day",
    "restoration_type",
]
"""Recording metadata columns of a loaded annotation table.

Every other column of a loaded table holds the counts of one species
annotation code.
"""


class AnnotationSource(BaseConfig):
    """A single raw annotation table.

    Each table holds the manual annotations of one season for one daily
    recording window, one row per 10-second audio chunk.

    Attributes
    ----------
    season : str
        Name of the field season the recordings belong to (e.g. "summer").
    time_of_day : {"dawn", "dusk"}
        Recording window of every row in the table. This label is trusted
        over any clock value found in the table itself.
    path : Path
        Location of the CSV file.
    """

    season: str
    time_of_day: TimeOfDay
    path: Path


class AnnotationColumns(BaseConfig):
    """Names of the non-species columns in the raw annotation tables.

    Attributes
    ----------
    filename : str
        Column with the composite recording filename.
    restoration_type : str
        Column with the restoration treatment of the site.
    time : str
        Column with the annotator's free-text time label. It is discarded,
        the source window is used instead.
    dropped : List[str]
        Annotator metadata columns without species information. They are
        removed when present.
    """

    filename: str = "Filename"
    restoration_type: str = "Restoration.Type..Benchmark.Active.Passive."
    time: str = "Time..Morning.Evening.Night."
    dropped: List[str] = Field(
        default_factory=lambda: ["Notes", "Annotator", "Observer", "Comments"]
    )
