from birdchorus.cli.base import cli
from birdchorus.cli.build import build
from birdchorus.cli.data import data

__all__ = [
    "cli",
    "build",
    "data",
]
