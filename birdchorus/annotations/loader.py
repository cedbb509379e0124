"""Loads the raw seasonal annotation tables of one recording window.

The manual annotations were exported as one CSV per season and daily
recording window (summer dawn, winter dawn, summer dusk, winter dusk). This
module reads those tables, checks that the seasonal tables of a window share
exactly the same columns, concatenates them, and rewrites the recording
metadata into the columns listed in `METADATA_COLUMNS`:

- the composite filename is split into site, date, start time and split
  index;
- the restoration type column is renamed to ``restoration_type``;
- the annotator's time label and the free-text metadata columns are dropped;
- ``time_of_day`` is set to the window declared for the source.

All remaining columns are species annotation codes.
"""

from typing import List, Optional, Sequence

import pandas as pd
from loguru import logger

from birdchorus.annotations.filenames import decompose_filenames
from birdchorus.annotations.types import (
    METADATA_COLUMNS,
    AnnotationColumns,
    AnnotationSource,
    TimeOfDay,
)
from birdchorus.configs import PathLike, resolve_path
from birdchorus.errors import SchemaError

__all__ = [
    "check_matching_columns",
    "load_source",
    "load_time_window",
    "prepare_annotations",
]


def load_source(
    source: AnnotationSource,
    base_dir: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Read one raw annotation table as strings.

    Blank and ``NA`` cells are read as missing values.
    """
    path = resolve_path(source.path, base_dir)
    frame = pd.read_csv(path, dtype=str)
    logger.debug(
        "Loaded {num_rows} rows from the {season} {time_of_day} "
        "annotations at {path}",
        num_rows=len(frame),
        season=source.season,
        time_of_day=source.time_of_day,
        path=path,
    )
    return frame


def check_matching_columns(
    reference: pd.DataFrame,
    other: pd.DataFrame,
    name: str = "table",
) -> None:
    """Check that two tables have exactly the same set of columns.

    Raises
    ------
    SchemaError
        Naming the missing and extra columns of `other`.
    """
    expected = set(reference.columns)
    found = set(other.columns)

    if expected == found:
        return

    missing = sorted(expected - found)
    extra = sorted(found - expected)
    raise SchemaError(
        f"Columns of {name} do not match the other annotation tables. "
        f"Missing columns: {missing}. Extra columns: {extra}."
    )


def prepare_annotations(
    frame: pd.DataFrame,
    time_of_day: TimeOfDay,
    columns: Optional[AnnotationColumns] = None,
) -> pd.DataFrame:
    """Rewrite the metadata of a raw annotation table.

    Returns a new table whose first columns are `METADATA_COLUMNS`,
    followed by one column per species annotation code in their original
    order.

    Raises
    ------
    SchemaError
        If the filename or restoration type columns are missing, or if a
        species column collides with a metadata column name.
    FilenameFormatError
        If a filename cannot be decomposed.
    """
    columns = columns or AnnotationColumns()

    required = [columns.filename, columns.restoration_type]
    missing = [name for name in required if name not in frame.columns]
    if missing:
        raise SchemaError(f"Annotation table is missing columns: {missing}")

    dropped = [
        name
        for name in [columns.time, *columns.dropped]
        if name in frame.columns
    ]
    frame = frame.drop(columns=dropped)

    clashes = sorted(set(METADATA_COLUMNS) & set(frame.columns))
    if clashes:
        raise SchemaError(
            f"Annotation table has columns named like recording metadata: "
            f"{clashes}"
        )

    frame = frame.rename(
        columns={columns.restoration_type: "restoration_type"}
    )
    frame = decompose_filenames(frame, column=columns.filename)
    frame = frame.assign(time_of_day=time_of_day)

    species = [name for name in frame.columns if name not in METADATA_COLUMNS]
    return frame[METADATA_COLUMNS + species]


def load_time_window(
    sources: Sequence[AnnotationSource],
    time_of_day: TimeOfDay,
    columns: Optional[AnnotationColumns] = None,
    base_dir: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Load and unify every seasonal annotation table of one window.

    Only the sources whose `time_of_day` equals `time_of_day` are read.
    Tables are concatenated in the order they are given, after checking that
    they all share the columns of the first one.

    Raises
    ------
    SchemaError
        If there is no source for the window, or if the seasonal tables do
        not share the same columns.
    """
    selected = [
        source for source in sources if source.time_of_day == time_of_day
    ]

    if not selected:
        raise SchemaError(f"No annotation tables given for {time_of_day}")

    tables: List[pd.DataFrame] = []
    for source in selected:
        table = load_source(source, base_dir=base_dir)

        if tables:
            check_matching_columns(
                tables[0],
                table,
                name=f"the {source.season} {time_of_day} table",
            )
            table = table[list(tables[0].columns)]

        tables.append(table)

    combined = pd.concat(tables, ignore_index=True)
    logger.debug(
        "Combined {num_tables} {time_of_day} tables into {num_rows} rows",
        num_tables=len(tables),
        time_of_day=time_of_day,
        num_rows=len(combined),
    )
    return prepare_annotations(combined, time_of_day, columns=columns)
