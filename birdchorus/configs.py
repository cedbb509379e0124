"""Configuration models and YAML loading for birdchorus.

Every pipeline setting (taxonomy table, annotation sources, recording
windows, activity threshold and output path) lives in one YAML file that is
validated against `birdchorus.pipeline.PipelineConfig`. The file may also
hold the pipeline settings under a nested key, which `load_config` reaches
with a dotted ``field`` such as ``"studies.anamalais"``.

Paths in a configuration are usually relative. `resolve_path` anchors them
to a base directory, by default the directory of the configuration file.
"""

import os
from pathlib import Path
from typing import Any, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ConfigDict

__all__ = [
    "BaseConfig",
    "PathLike",
    "get_object_field",
    "load_config",
    "resolve_path",
]

PathLike = Union[Path, str, os.PathLike]


class BaseConfig(BaseModel):
    """Base class of the birdchorus configuration models.

    Unknown keys are rejected, so a misspelt setting in the YAML file fails
    validation instead of silently falling back to its default.
    """

    model_config = ConfigDict(extra="forbid")


T = TypeVar("T", bound=BaseModel)


def get_object_field(obj: dict, field: str) -> Any:
    """Look up a dotted field path in parsed YAML data.

    Parameters
    ----------
    obj : dict
        Parsed YAML mapping.
    field : str
        Key path such as ``"studies.anamalais.pipeline"``.

    Returns
    -------
    Any
        The value stored under the last key of the path.

    Raises
    ------
    KeyError
        If a key of the path is missing.
    TypeError
        If a key before the last one holds something other than a mapping.

    Examples
    --------
    >>> data = {"studies": {"anamalais": {"threshold": 20}}}
    >>> get_object_field(data, "studies.anamalais.threshold")
    20
    """
    *parents, name = field.split(".")

    current = obj
    for key in parents:
        current = current[key]
        if not isinstance(current, dict):
            raise TypeError(
                f"Config key {key!r} holds a {type(current).__name__}, not "
                f"a mapping, so {field!r} cannot be looked up."
            )

    return current[name]


def load_config(
    path: PathLike,
    schema: Type[T],
    field: Optional[str] = None,
) -> T:
    """Read a YAML file and validate it against a configuration model.

    Parameters
    ----------
    path : PathLike
        YAML configuration file.
    schema : Type[T]
        Model the configuration must match, e.g. `PipelineConfig`.
    field : str, optional
        Dotted key path of the section holding the configuration. The whole
        file is validated when omitted.

    Returns
    -------
    T
        The validated configuration.

    Raises
    ------
    FileNotFoundError
        If `path` does not exist.
    yaml.YAMLError
        If the file is not valid YAML.
    pydantic.ValidationError
        If the configuration does not match `schema`.
    KeyError
        If `field` is not present in the file.
    """
    with open(path, "r") as file:
        config = yaml.safe_load(file)

    if field:
        config = get_object_field(config, field)

    return schema.model_validate(config)


def resolve_path(path: PathLike, base_dir: Optional[PathLike] = None) -> Path:
    """Resolve a configured path relative to an optional base directory.

    Absolute paths are returned unchanged.
    """
    path = Path(path)

    if base_dir is None or path.is_absolute():
        return path

    return Path(base_dir) / path
