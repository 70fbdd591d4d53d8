"""Allow ``python -m ac``."""

from ac.cli import cli

cli()
