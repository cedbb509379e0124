"""Maps ad-hoc annotation codes onto a standardized species taxonomy.

Annotators tagged audio chunks with short, project-specific species codes
that drifted between seasons. A taxonomy table lists, for every canonical
(eBird) species code, the ad-hoc annotation code variants that were used for
it. This module loads that table and exposes it as a `SpeciesTaxonomy`, a
read-only mapping from ad-hoc code to canonical code that can also be queried
in the reverse direction.

The mapping is built once and applied per column: `resolve` raises a
`TaxonomyError` for any code it does not know, while `rename_columns` leaves
unknown names untouched so that metadata columns can travel alongside the
species columns.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger
from pydantic import BaseModel

from birdchorus.configs import BaseConfig, PathLike, resolve_path
from birdchorus.errors import TaxonomyError

__all__ = [
    "SpeciesInfo",
    "SpeciesTaxonomy",
    "TaxonomyConfig",
    "build_taxonomy",
    "load_taxonomy",
]


class TaxonomyConfig(BaseConfig):
    """Location and column layout of the taxonomy table.

    Attributes
    ----------
    path : Path
        CSV file listing canonical codes and their annotation variants.
    canonical_column : str
        Column holding the canonical (eBird) species codes.
    annotation_column : str
        Column holding the ad-hoc annotation codes.
    scientific_name_column : str, optional
        Column holding the scientific name, if the table has one.
    common_name_column : str, optional
        Column holding the common name, if the table has one.
    """

    path: Path
    canonical_column: str = "eBird_codes"
    annotation_column: str = "species_annotation_codes"
    scientific_name_column: Optional[str] = "scientific_name"
    common_name_column: Optional[str] = "common_name"


class SpeciesInfo(BaseModel):
    """Canonical description of one species."""

    canonical_code: str
    scientific_name: Optional[str] = None
    common_name: Optional[str] = None


class SpeciesTaxonomy(Mapping[str, str]):
    """Bidirectional association between annotation and canonical codes.

    Behaves as a read-only ``Mapping[str, str]`` from ad-hoc annotation code
    to canonical species code.
    """

    def __init__(
        self,
        codes: Optional[Dict[str, str]] = None,
        species: Optional[Dict[str, SpeciesInfo]] = None,
    ):
        self._codes: Dict[str, str] = dict(codes or {})
        self._species: Dict[str, SpeciesInfo] = dict(species or {})
        self._reverse: Dict[str, List[str]] = {}

        for code, canonical in self._codes.items():
            self._reverse.setdefault(canonical, []).append(code)
            self._species.setdefault(
                canonical,
                SpeciesInfo(canonical_code=canonical),
            )

    def __getitem__(self, key: str) -> str:
        return self._codes[key]

    def __len__(self) -> int:
        return len(self._codes)

    def __iter__(self):
        return iter(self._codes)

    def resolve(self, code: str) -> str:
        """Return the canonical code for an ad-hoc annotation code.

        Raises
        ------
        TaxonomyError
            If the code is not listed in the taxonomy.
        """
        try:
            return self._codes[code]
        except KeyError as err:
            raise TaxonomyError(
                f"Species annotation code {code!r} is not listed in the "
                "taxonomy table. Add it before rerunning the pipeline."
            ) from err

    def rename_columns(self, columns: Iterable[str]) -> List[str]:
        """Replace every known annotation code by its canonical code.

        Names that are not annotation codes are returned unchanged.
        """
        return [self._codes.get(column, column) for column in columns]

    def annotation_codes(self, canonical: str) -> List[str]:
        """List the annotation codes that map onto a canonical code."""
        return sorted(self._reverse.get(canonical, []))

    def get_species(self, canonical: str) -> SpeciesInfo:
        try:
            return self._species[canonical]
        except KeyError as err:
            raise TaxonomyError(
                f"Unknown canonical species code {canonical!r}"
            ) from err

    @property
    def canonical_codes(self) -> List[str]:
        return sorted(self._reverse)


def _clean(value) -> Optional[str]:
    if pd.isna(value):
        return None

    value = str(value).strip()
    return value or None


def build_taxonomy(
    table: pd.DataFrame,
    canonical_column: str = "eBird_codes",
    annotation_column: str = "species_annotation_codes",
    scientific_name_column: Optional[str] = None,
    common_name_column: Optional[str] = None,
) -> SpeciesTaxonomy:
    """Build a `SpeciesTaxonomy` from a taxonomy table.

    Each row pairs one canonical code with one annotation code. Repeated
    identical pairs are allowed and several annotation codes may point to
    the same canonical code. Rows without an annotation code are skipped.

    Raises
    ------
    TaxonomyError
        If a required column is missing, a row with an annotation code has
        no canonical code, or the same annotation code is claimed by two
        different canonical codes.
    """
    missing = [
        column
        for column in (canonical_column, annotation_column)
        if column not in table.columns
    ]
    if missing:
        raise TaxonomyError(
            f"Taxonomy table is missing required columns: {missing}"
        )

    codes: Dict[str, str] = {}
    species: Dict[str, SpeciesInfo] = {}

    for row in table.to_dict(orient="records"):
        code = _clean(row[annotation_column])
        canonical = _clean(row[canonical_column])

        if code is None:
            logger.debug(
                "Skipping taxonomy row for {canonical}: no annotation code",
                canonical=canonical,
            )
            continue

        if canonical is None:
            raise TaxonomyError(
                f"Annotation code {code!r} has no canonical species code"
            )

        previous = codes.get(code)
        if previous is not None and previous != canonical:
            raise TaxonomyError(
                f"Annotation code {code!r} is ambiguous: it maps to both "
                f"{previous!r} and {canonical!r}"
            )

        codes[code] = canonical

        if canonical not in species:
            species[canonical] = SpeciesInfo(
                canonical_code=canonical,
                scientific_name=(
                    _clean(row.get(scientific_name_column))
                    if scientific_name_column
                    else None
                ),
                common_name=(
                    _clean(row.get(common_name_column))
                    if common_name_column
                    else None
                ),
            )

    logger.debug(
        "Built taxonomy with {num_codes} annotation codes for "
        "{num_species} species",
        num_codes=len(codes),
        num_species=len(species),
    )
    return SpeciesTaxonomy(codes=codes, species=species)


def load_taxonomy(
    config: TaxonomyConfig,
    base_dir: Optional[PathLike] = None,
) -> SpeciesTaxonomy:
    """Read the taxonomy CSV described by `config` and build the mapping."""
    path = resolve_path(config.path, base_dir)
    table = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])

    scientific = config.scientific_name_column
    if scientific not in table.columns:
        scientific = None

    common = config.common_name_column
    if common not in table.columns:
        common = None

    return build_taxonomy(
        table,
        canonical_column=config.canonical_column,
        annotation_column=config.annotation_column,
        scientific_name_column=scientific,
        common_name_column=common,
    )
