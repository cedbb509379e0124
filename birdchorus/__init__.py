"""Builds the canonical detection events dataset from manual annotations."""

from birdchorus.errors import (
    DatasetWriteError,
    FilenameFormatError,
    PipelineError,
    SchemaError,
    TaxonomyError,
)
from birdchorus.pipeline import (
    PipelineConfig,
    PipelineResult,
    build_events,
    load_pipeline_config,
    run_pipeline,
)

__version__ = "0.1.0"

__all__ = [
    "DatasetWriteError",
    "FilenameFormatError",
    "PipelineConfig",
    "PipelineError",
    "PipelineResult",
    "SchemaError",
    "TaxonomyError",
    "build_events",
    "load_pipeline_config",
    "run_pipeline",
]
