from pathlib import Path
from typing import Optional

import click

from birdchorus.cli.base import cli
from birdchorus.errors import PipelineError
from birdchorus.pipeline import load_pipeline_config, run_pipeline

__all__ = ["build"]


@cli.command()
@click.argument(
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
)
@click.option(
    "--field",
    type=str,
    help="If the pipeline config is in a nested field please specify here.",
)
@click.option(
    "--base-dir",
    type=click.Path(exists=True, file_okay=False),
    help=(
        "The base directory to which all input and output paths are "
        "relative to. Defaults to the directory of the config file."
    ),
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    help=(
        "Write the dataset here instead of the configured output path. "
        "Relative paths are relative to the working directory."
    ),
)
@click.option(
    "--threshold",
    type=click.IntRange(min=0),
    help="Override the minimum number of detection site-dates per species.",
)
def build(
    config_path: str,
    field: Optional[str] = None,
    base_dir: Optional[str] = None,
    output: Optional[str] = None,
    threshold: Optional[int] = None,
):
    """Build the detection events dataset described in CONFIG_PATH."""
    config = load_pipeline_config(config_path, field=field)

    if output is not None:
        config = config.model_copy(
            update={"output_path": Path(output).absolute()}
        )

    if threshold is not None:
        activity = config.activity.model_copy(
            update={"minimum_occurrence_threshold": threshold}
        )
        config = config.model_copy(update={"activity": activity})

    base = Path(base_dir) if base_dir else Path(config_path).parent

    try:
        result = run_pipeline(config, base_dir=base)
    except (PipelineError, OSError) as err:
        raise click.ClickException(str(err)) from err

    click.echo(
        f"Wrote {len(result.events)} detection events for "
        f"{len(result.species)} species to {result.output_path}"
    )
