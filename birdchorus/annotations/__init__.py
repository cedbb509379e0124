"""Reading and repairing the raw manual annotation tables.

Annotation tables are configured as a list of `AnnotationSource` entries,
one per season and recording window. `load_time_window` gathers every source
of a window into a single table with the recording metadata decomposed into
`METADATA_COLUMNS` and one column per species annotation code.
"""

from birdchorus.annotations.filenames import (
    FILENAME_DELIMITER,
    RecordingInfo,
    decompose_filenames,
    parse_filename,
)
from birdchorus.annotations.loader import (
    check_matching_columns,
    load_source,
    load_time_window,
    prepare_annotations,
)
from birdchorus.annotations.types import (
    METADATA_COLUMNS,
    TIMES_OF_DAY,
    AnnotationColumns,
    AnnotationSource,
    TimeOfDay,
)

__all__ = [
    "AnnotationColumns",
    "AnnotationSource",
    "FILENAME_DELIMITER",
    "METADATA_COLUMNS",
    "RecordingInfo",
    "TIMES_OF_DAY",
    "TimeOfDay",
    "check_matching_columns",
    "decompose_filenames",
    "load_source",
    "load_time_window",
    "parse_filename",
    "prepare_annotations",
]
