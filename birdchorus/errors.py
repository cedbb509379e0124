"""Exception hierarchy for the detection events pipeline.

Every failure raised by a pipeline stage derives from `PipelineError`, so a
caller can abort a run on any structural problem with a single ``except``
clause. Write failures on the final artifact are reported as
`DatasetWriteError`, which is an `OSError` (`IOError`) carrying the
destination path.
"""

from pathlib import Path
from typing import Union

__all__ = [
    "DatasetWriteError",
    "FilenameFormatError",
    "PipelineError",
    "SchemaError",
    "TaxonomyError",
]


class PipelineError(Exception):
    """Base class for all errors that abort a pipeline run."""


class TaxonomyError(PipelineError):
    """A species code is ambiguous or cannot be resolved."""


class SchemaError(PipelineError):
    """An annotation table does not have the expected structure."""


class FilenameFormatError(SchemaError):
    """A recording filename cannot be decomposed into its four parts."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Invalid recording filename {filename!r}: {reason}")


class DatasetWriteError(OSError):
    """The detection events dataset could not be written."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not write dataset to {self.path}: {reason}")
