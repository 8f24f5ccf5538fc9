"""Allow ``python -m botsim``."""

from botsim.cli import cli

cli()
