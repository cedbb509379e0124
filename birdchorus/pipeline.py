"""Builds the detection events dataset from the raw annotation tables.

The pipeline runs its stages strictly in sequence, each one receiving the
table produced by the previous stage and returning a new one:

1. Load the taxonomy (`birdchorus.taxonomy`).
2. Load and unify the seasonal tables of each recording window
   (`birdchorus.annotations`).
3. Reshape them into detection events (`birdchorus.events`).
4. Assign hour-of-day buckets (`birdchorus.binning`).
5. Keep the species above the occurrence threshold, optionally adding
   zero-count events across windows (`birdchorus.activity`).
6. Write the dataset (`birdchorus.writer`).

Any error aborts the run before the dataset is written.
"""

from pathlib import Path
from typing import List, NamedTuple, Optional

import pandas as pd
from loguru import logger
from pydantic import Field, field_validator

from birdchorus.activity import (
    ActivityConfig,
    compute_species_activity,
    filter_active_species,
    select_active_species,
    symmetrize_zero_counts,
)
from birdchorus.annotations import (
    TIMES_OF_DAY,
    AnnotationColumns,
    AnnotationSource,
    load_time_window,
)
from birdchorus.binning import (
    RecordingWindows,
    assign_hour_of_day,
    build_hour_buckets,
)
from birdchorus.configs import BaseConfig, PathLike, load_config, resolve_path
from birdchorus.events import normalize_events
from birdchorus.taxonomy import TaxonomyConfig, load_taxonomy
from birdchorus.writer import write_dataset

__all__ = [
    "PipelineConfig",
    "PipelineResult",
    "build_events",
    "load_pipeline_config",
    "run_pipeline",
]


class PipelineConfig(BaseConfig):
    """Configuration of a full pipeline run.

    Attributes
    ----------
    taxonomy : TaxonomyConfig
        Taxonomy table used to canonicalize species codes.
    sources : List[AnnotationSource]
        Raw annotation tables, one per season and recording window.
    columns : AnnotationColumns
        Names of the non-species columns of the raw tables.
    windows : RecordingWindows
        Clock boundaries of the dawn and dusk recording windows.
    activity : ActivityConfig
        Species inclusion policy.
    output_path : Path
        Destination of the detection events CSV.

    Examples
    --------
    Example YAML structure:

    ```yaml
    taxonomy:
      path: species-annotation-codes.csv
    sources:
      - season: summer
        time_of_day: dawn
        path: annotations/summer-dawn.csv
      - season: winter
        time_of_day: dawn
        path: annotations/winter-dawn.csv
    windows:
      dawn: {start: "06:00", end: "10:00"}
      dusk: {start: "16:00", end: "19:00"}
    activity:
      minimum_occurrence_threshold: 20
    output_path: results/detection_events.csv
    ```
    """

    taxonomy: TaxonomyConfig
    sources: List[AnnotationSource] = Field(min_length=1)
    columns: AnnotationColumns = Field(default_factory=AnnotationColumns)
    windows: RecordingWindows = Field(default_factory=RecordingWindows)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)
    output_path: Path = Path("results/detection_events.csv")

    @field_validator("sources")
    @classmethod
    def check_unique_sources(cls, sources: List[AnnotationSource]):
        seen = set()
        for source in sources:
            key = (source.season, source.time_of_day)
            if key in seen:
                raise ValueError(
                    f"Duplicate annotation source for {source.season} "
                    f"{source.time_of_day}"
                )
            seen.add(key)
        return sources


class PipelineResult(NamedTuple):
    events: pd.DataFrame
    """Detection events of the retained species."""

    activity: pd.DataFrame
    """Number of detection site-dates of every species."""

    species: List[str]
    """Sorted codes of the retained species."""

    output_path: Optional[Path] = None
    """Where the dataset was written, if it was."""


def load_pipeline_config(
    path: PathLike,
    field: Optional[str] = None,
) -> PipelineConfig:
    return load_config(path, schema=PipelineConfig, field=field)


def build_events(
    config: PipelineConfig,
    base_dir: Optional[PathLike] = None,
) -> PipelineResult:
    """Run every stage of the pipeline except writing the dataset.

    Relative paths in `config` are resolved against `base_dir`.

    Raises
    ------
    TaxonomyError
        If a species code is ambiguous or cannot be resolved.
    SchemaError
        If the annotation tables are malformed.
    """
    taxonomy = load_taxonomy(config.taxonomy, base_dir=base_dir)
    buckets = build_hour_buckets(config.windows)

    windows = [
        time_of_day
        for time_of_day in TIMES_OF_DAY
        if any(source.time_of_day == time_of_day for source in config.sources)
    ]

    tables = []
    for time_of_day in windows:
        annotations = load_time_window(
            config.sources,
            time_of_day,
            columns=config.columns,
            base_dir=base_dir,
        )
        events = normalize_events(annotations, taxonomy)
        tables.append(assign_hour_of_day(events, buckets))
        logger.info(
            "Found {num_events} {time_of_day} detection events",
            num_events=len(events),
            time_of_day=time_of_day,
        )

    events = pd.concat(tables, ignore_index=True)

    threshold = config.activity.minimum_occurrence_threshold
    activity = compute_species_activity(events)
    species = select_active_species(activity, threshold)
    events = filter_active_species(events, threshold, summary=activity)

    if config.activity.symmetrize_time_of_day:
        events = symmetrize_zero_counts(events, config.windows)

    return PipelineResult(events=events, activity=activity, species=species)


def run_pipeline(
    config: PipelineConfig,
    base_dir: Optional[PathLike] = None,
) -> PipelineResult:
    """Build the detection events dataset and write it to disk.

    The dataset is written only once every other stage has succeeded.

    Raises
    ------
    PipelineError
        If any stage fails. Nothing is written in that case.
    DatasetWriteError
        If the output file cannot be written.
    """
    result = build_events(config, base_dir=base_dir)
    output_path = write_dataset(
        result.events,
        resolve_path(config.output_path, base_dir),
    )
    return result._replace(output_path=output_path)
