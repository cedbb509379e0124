"""Selects the species vocal enough to be analysed.

A species is kept in the detection events dataset only if it was detected on
more than `minimum_occurrence_threshold` distinct site-dates. This is a fixed
inclusion policy applied before any analysis, not a statistical test: rarely
vocalizing species would add noise without giving the downstream comparisons
any power.

The module also implements the time-of-day symmetrization policy. Analyses
comparing dawn and dusk activity need every retained species to appear in
both windows. When enabled, a single zero-count event is added for each
species and window in which it was never detected, provided it was detected
in the other window.
"""

from typing import List, Optional

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import Field

from birdchorus.annotations.types import TIMES_OF_DAY
from birdchorus.binning import (
    RecordingWindows,
    assign_hour_of_day,
    build_hour_buckets,
    format_clock,
)
from birdchorus.configs import BaseConfig

__all__ = [
    "ActivityConfig",
    "compute_species_activity",
    "filter_active_species",
    "select_active_species",
    "symmetrize_zero_counts",
]


class ActivityConfig(BaseConfig):
    """Species inclusion policy.

    Attributes
    ----------
    minimum_occurrence_threshold : int
        A species is retained when the number of distinct site-dates on which
        it was detected is strictly greater than this value.
    symmetrize_time_of_day : bool
        Add a zero-count event for every retained species missing from one
        of the recording windows.
    """

    minimum_occurrence_threshold: int = Field(default=20, ge=0)
    symmetrize_time_of_day: bool = False


def compute_species_activity(events: pd.DataFrame) -> pd.DataFrame:
    """Count the distinct site-dates on which each species was detected.

    Counts are summed over every event of a species on a site-date, across
    both recording windows, and only site-dates with a positive total are
    counted.

    Returns
    -------
    pd.DataFrame
        Columns ``species_code`` and ``num_site_dates``, one row per species
        in `events`, sorted by species code. Species whose events all have a
        zero count are listed with zero site-dates.
    """
    if events.empty:
        return pd.DataFrame(
            {
                "species_code": pd.Series([], dtype=object),
                "num_site_dates": pd.Series([], dtype=np.int64),
            }
        )

    per_site_date = events.groupby(
        ["species_code", "site_id", "date"],
        sort=True,
    )["detection_count"].sum()

    detected = (per_site_date > 0).groupby(level="species_code").sum()
    return (
        detected.astype(np.int64)
        .rename("num_site_dates")
        .reset_index()
        .sort_values("species_code", kind="mergesort")
        .reset_index(drop=True)
    )


def select_active_species(
    summary: pd.DataFrame,
    threshold: int = 20,
) -> List[str]:
    """Return the sorted codes of species above the occurrence threshold."""
    passed = summary[summary["num_site_dates"] > threshold]
    return sorted(passed["species_code"].tolist())


def filter_active_species(
    events: pd.DataFrame,
    threshold: int = 20,
    summary: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """Keep only the events of species above the occurrence threshold.

    Parameters
    ----------
    events : pd.DataFrame
        Detection events of every species.
    threshold : int
        Minimum number of site-dates a species must exceed.
    summary : pd.DataFrame, optional
        Precomputed output of `compute_species_activity` for `events`.

    Returns
    -------
    pd.DataFrame
        A new frame with the events of the retained species.
    """
    if summary is None:
        summary = compute_species_activity(events)

    retained = select_active_species(summary, threshold)
    dropped = summary.loc[
        ~summary["species_code"].isin(retained), "species_code"
    ].tolist()

    logger.info(
        "Retained {num_retained} species detected on more than {threshold} "
        "site-dates, dropped {num_dropped}",
        num_retained=len(retained),
        threshold=threshold,
        num_dropped=len(dropped),
    )
    if dropped:
        logger.debug("Dropped species: {species}", species=dropped)

    return events[events["species_code"].isin(retained)].reset_index(drop=True)


def symmetrize_zero_counts(
    events: pd.DataFrame,
    windows: Optional[RecordingWindows] = None,
) -> pd.DataFrame:
    """Give every species at least one event in both recording windows.

    For each species detected in only one window, a single event with a zero
    ``detection_count`` is added to the other window. It copies the site,
    date, restoration type and split index of the species' first event (in
    site, date, start time and split order), and starts at the beginning of
    the missing window.

    Returns a new frame with the added events appended at the end.
    """
    windows = windows or RecordingWindows()
    starts = {
        "dawn": format_clock(windows.dawn.start),
        "dusk": format_clock(windows.dusk.start),
    }

    ordered = events.sort_values(
        ["species_code", "site_id", "date", "start_time", "split_index"],
        kind="mergesort",
    )

    additions = []
    for species_code, group in ordered.groupby("species_code", sort=True):
        present = set(group["time_of_day"])

        for time_of_day in TIMES_OF_DAY:
            if time_of_day in present:
                continue

            template = group.iloc[0]
            additions.append(
                {
                    "site_id": template["site_id"],
                    "date": template["date"],
                    "start_time": starts[time_of_day],
                    "split_index": template["split_index"],
                    "time_of_day": time_of_day,
                    "restoration_type": template["restoration_type"],
                    "species_code": species_code,
                    "detection_count": 0,
                }
            )

    if not additions:
        return events.copy()

    logger.info(
        "Added {num_events} zero-count events so that every species "
        "appears in both recording windows",
        num_events=len(additions),
    )

    zeros = pd.DataFrame(additions)
    if "hour_of_day" in events.columns:
        zeros = assign_hour_of_day(zeros, build_hour_buckets(windows))

    combined = pd.concat([events, zeros[events.columns]], ignore_index=True)
    combined["detection_count"] = combined["detection_count"].astype(np.int64)
    return combined
