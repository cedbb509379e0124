from pathlib import Path
from typing import Callable, Dict, List, Optional

import pandas as pd
import pytest
import yaml

from birdchorus.pipeline import PipelineConfig
from birdchorus.taxonomy import SpeciesTaxonomy, build_taxonomy

RESTORATION_COLUMN = "Restoration.Type..Benchmark.Active.Passive."
TIME_COLUMN = "Time..Morning.Evening.Night."


@pytest.fixture
def taxonomy_table() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "eBird_codes": ["xx1", "puwpig1", "puwpig1", "grbwar1"],
            "species_annotation_codes": ["X1", "PWP", "PGP", "GRW"],
            "scientific_name": [
                "Species one",
                "Psilopogon viridis",
                "Psilopogon viridis",
                "Phylloscopus trochiloides",
            ],
            "common_name": [
                "Species One",
                "White-cheeked Barbet",
                "White-cheeked Barbet",
                "Greenish Warbler",
            ],
        }
    )


@pytest.fixture
def taxonomy(taxonomy_table: pd.DataFrame) -> SpeciesTaxonomy:
    return build_taxonomy(
        taxonomy_table,
        scientific_name_column="scientific_name",
        common_name_column="common_name",
    )


@pytest.fixture
def taxonomy_csv(tmp_path: Path, taxonomy_table: pd.DataFrame) -> Path:
    path = tmp_path / "species-annotation-codes.csv"
    taxonomy_table.to_csv(path, index=False)
    return path


@pytest.fixture
def annotation_row() -> Callable[..., Dict[str, object]]:
    """Build a raw annotation row with the standard metadata columns."""

    def factory(
        filename: str,
        restoration: str = "Benchmark",
        time_label: str = "Morning",
        notes: str = "",
        **counts,
    ) -> Dict[str, object]:
        return {
            "Filename": filename,
            **counts,
            RESTORATION_COLUMN: restoration,
            TIME_COLUMN: time_label,
            "Notes": notes,
        }

    return factory


@pytest.fixture
def annotation_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write raw annotation rows to a CSV file under the test directory."""

    def factory(
        name: str,
        rows: List[Dict[str, object]],
        columns: Optional[List[str]] = None,
    ) -> Path:
        path = tmp_path / name
        frame = pd.DataFrame(rows, columns=columns)
        frame.to_csv(path, index=False)
        return path

    return factory


@pytest.fixture
def raw_frame(annotation_row) -> pd.DataFrame:
    return pd.DataFrame(
        [
            annotation_row("S1_20220101_060000_1", X1="3", PWP=""),
            annotation_row("S1_20220101_060000_2", X1=None, PWP="1"),
            annotation_row("S2_20220102_90000_1", X1="1", PWP="2"),
        ]
    ).astype(object)


@pytest.fixture
def pipeline_config(
    tmp_path: Path,
    taxonomy_csv: Path,
    annotation_row,
    annotation_csv,
) -> PipelineConfig:
    summer_dawn = annotation_csv(
        "summer-dawn.csv",
        [
            annotation_row("S1_20220101_060000_1", X1=3, PWP=0, GRW=None),
            annotation_row("S1_20220101_070000_1", X1=0, PWP=2, GRW=1),
            annotation_row("S2_20220101_093000_1", X1=1, PWP=0, GRW=0),
        ],
    )
    winter_dawn = annotation_csv(
        "winter-dawn.csv",
        [
            annotation_row("S1_20230101_080000_1", X1=0, PWP=1, GRW=0),
            annotation_row("S2_20230102_100001_1", X1=2, PWP=0, GRW=0),
        ],
    )
    summer_dusk = annotation_csv(
        "summer-dusk.csv",
        [
            annotation_row(
                "S1_20220101_160000_1",
                time_label="Evening",
                X1=0,
                PGP=4,
                GRW=0,
            ),
        ],
    )
    winter_dusk = annotation_csv(
        "winter-dusk.csv",
        [
            annotation_row(
                "S2_20230102_180000_3",
                time_label="Evening",
                X1=5,
                PGP=0,
                GRW=0,
            ),
        ],
    )
    return PipelineConfig.model_validate(
        {
            "taxonomy": {"path": taxonomy_csv.name},
            "sources": [
                {
                    "season": "summer",
                    "time_of_day": "dawn",
                    "path": summer_dawn.name,
                },
                {
                    "season": "winter",
                    "time_of_day": "dawn",
                    "path": winter_dawn.name,
                },
                {
                    "season": "summer",
                    "time_of_day": "dusk",
                    "path": summer_dusk.name,
                },
                {
                    "season": "winter",
                    "time_of_day": "dusk",
                    "path": winter_dusk.name,
                },
            ],
            "activity": {"minimum_occurrence_threshold": 0},
            "output_path": "detection_events.csv",
        }
    )


@pytest.fixture
def pipeline_config_file(tmp_path: Path, pipeline_config) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(pipeline_config.model_dump(mode="json")))
    return path

