"""Reshapes wide annotation tables into long-form detection events.

A loaded annotation table has one row per audio chunk and one column per
species annotation code. The normalizer turns it into one `DetectionEvent`
row per chunk and canonical species:

1. Every species column is resolved through the taxonomy. An unknown code
   aborts the run with a `TaxonomyError`.
2. Blank cells count as zero. Any other value must be a non-negative
   integer.
3. Rows sharing the same recording key (`CHUNK_KEY`) are merged and their
   counts summed, as are annotation code variants of the same species.
   Merged rows must agree on the restoration type.
4. Only events with a positive count are emitted.
"""

from typing import List

import numpy as np
import pandas as pd
from loguru import logger

from birdchorus.annotations.types import METADATA_COLUMNS
from birdchorus.errors import SchemaError
from birdchorus.taxonomy import SpeciesTaxonomy

__all__ = [
    "CHUNK_KEY",
    "EVENT_COLUMNS",
    "EVENT_KEY",
    "check_restoration_types",
    "normalize_events",
    "parse_counts",
    "species_columns",
]


CHUNK_KEY = METADATA_COLUMNS
"""Columns identifying one annotated audio chunk."""

EVENT_KEY = [
    "site_id",
    "date",
    "start_time",
    "split_index",
    "species_code",
]
"""Columns uniquely identifying a detection event once aggregated."""

EVENT_COLUMNS = CHUNK_KEY + ["species_code", "detection_count"]


def species_columns(frame: pd.DataFrame) -> List[str]:
    """List the species annotation code columns of a loaded table."""
    return [name for name in frame.columns if name not in METADATA_COLUMNS]


def parse_counts(frame: pd.DataFrame) -> pd.DataFrame:
    """Convert species count cells to integers.

    Missing and blank cells become zero.

    Raises
    ------
    SchemaError
        If a cell is not a non-negative whole number. The message names the
        column and the offending value.
    """
    counts = {}

    for column in frame.columns:
        raw = frame[column].map(
            lambda value: None
            if isinstance(value, str) and not value.strip()
            else value
        )
        values = pd.to_numeric(raw, errors="coerce")

        invalid = values.isna() & raw.notna()
        invalid |= values < 0
        invalid |= values.notna() & (values % 1 != 0)

        if invalid.any():
            bad = raw[invalid].iloc[0]
            raise SchemaError(
                f"Species column {column!r} holds {bad!r}, expected a "
                "non-negative whole number of detections"
            )

        counts[column] = values.fillna(0).astype(np.int64)

    return pd.DataFrame(counts, index=frame.index, columns=frame.columns)


def check_restoration_types(frame: pd.DataFrame) -> None:
    """Check that rows of the same recording chunk agree on restoration type.

    Raises
    ------
    SchemaError
        If rows sharing a recording chunk carry different restoration
        types. The message lists the filenames of those chunks.
    """
    if frame.empty:
        return

    recording_key = [
        name for name in CHUNK_KEY if name != "restoration_type"
    ]
    num_types = frame.groupby(recording_key, dropna=False)[
        "restoration_type"
    ].nunique(dropna=False)
    conflicts = num_types[num_types > 1]

    if conflicts.empty:
        return

    filenames = [
        f"{site_id}_{pd.Timestamp(date):%Y%m%d}_{start_time}_{split_index}"
        for site_id, date, start_time, split_index, _ in conflicts.index
    ]
    raise SchemaError(
        "Rows of the same recording chunk disagree on the restoration "
        f"type: {', '.join(filenames)}"
    )


def normalize_events(
    frame: pd.DataFrame,
    taxonomy: SpeciesTaxonomy,
) -> pd.DataFrame:
    """Turn a loaded annotation table into detection events.

    Parameters
    ----------
    frame : pd.DataFrame
        A table as returned by
        `birdchorus.annotations.load_time_window`.
    taxonomy : SpeciesTaxonomy
        Mapping from annotation codes to canonical species codes.

    Returns
    -------
    pd.DataFrame
        One row per chunk and canonical species with a positive
        ``detection_count``, with columns `EVENT_COLUMNS`, sorted by
        chunk key and species code.

    Raises
    ------
    TaxonomyError
        If a species column is not listed in the taxonomy.
    SchemaError
        If a count cell is not a non-negative whole number, or if rows of
        the same chunk disagree on the restoration type.
    """
    species = species_columns(frame)
    canonical = {code: taxonomy.resolve(code) for code in species}

    check_restoration_types(frame)

    duplicated = frame.duplicated(subset=CHUNK_KEY, keep=False)
    if duplicated.any():
        logger.warning(
            "Merging {num_rows} annotation rows that share a recording "
            "chunk with another row",
            num_rows=int(duplicated.sum()),
        )

    if not species or frame.empty:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    counts = parse_counts(frame[species])
    wide = pd.concat([frame[CHUNK_KEY], counts], axis=1)

    long = wide.melt(
        id_vars=CHUNK_KEY,
        value_vars=species,
        var_name="species_code",
        value_name="detection_count",
    )
    long["species_code"] = long["species_code"].map(canonical)

    events = (
        long.groupby(CHUNK_KEY + ["species_code"], dropna=False, sort=True)[
            "detection_count"
        ]
        .sum()
        .reset_index()
    )
    events = events[events["detection_count"] > 0].reset_index(drop=True)
    events["detection_count"] = events["detection_count"].astype(np.int64)

    logger.debug(
        "Normalized {num_rows} annotation rows into {num_events} events "
        "for {num_species} species",
        num_rows=len(frame),
        num_events=len(events),
        num_species=events["species_code"].nunique(),
    )
    return events[EVENT_COLUMNS]
