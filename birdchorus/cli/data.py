from pathlib import Path
from typing import Optional

import click

from birdchorus.cli.base import cli
from birdchorus.errors import PipelineError
from birdchorus.pipeline import build_events, load_pipeline_config

__all__ = ["data"]


@cli.group()
def data(): ...


@data.command()
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
    help="The base directory to which all input paths are relative to.",
)
def species(
    config_path: str,
    field: Optional[str] = None,
    base_dir: Optional[str] = None,
):
    """Summarize species vocal activity without writing the dataset."""
    config = load_pipeline_config(config_path, field=field)
    base = Path(base_dir) if base_dir else Path(config_path).parent

    try:
        result = build_events(config, base_dir=base)
    except (PipelineError, OSError) as err:
        raise click.ClickException(str(err)) from err

    threshold = config.activity.minimum_occurrence_threshold
    retained = set(result.species)

    click.echo(f"Species activity (threshold {threshold} site-dates):")
    for row in result.activity.itertuples(index=False):
        status = "kept" if row.species_code in retained else "dropped"
        click.echo(f"{row.species_code}\t{row.num_site_dates}\t{status}")

    click.echo(
        f"Number of species retained: {len(retained)} "
        f"of {len(result.activity)}"
    )
