"""Birdchorus command line interface."""

import click
from loguru import logger

__all__ = [
    "cli",
]


INFO_STR = """
Birdchorus - Detection Events Dataset
    Builds the canonical detection events table from the manually
    annotated dawn and dusk chunks of every season.
"""


@click.group()
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Show debug messages.",
)
def cli(verbose: bool = False):
    """Birdchorus - Bird Vocal Activity Dataset Builder."""
    click.echo(INFO_STR)
    logger.remove()
    logger.add(
        lambda message: click.echo(message, err=True, nl=False),
        level="DEBUG" if verbose else "INFO",
    )
