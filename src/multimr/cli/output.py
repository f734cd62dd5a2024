"""Output utilities for CLI commands with clear intent.

user_output() is for everything a person reads (progress, errors, the run
summary) and goes to stderr. machine_output() is for results meant to be
piped, such as the list of created request URLs, and goes to stdout.
"""

from typing import Any

import click


def user_output(message: Any = None, nl: bool = True, color: bool | None = None) -> None:
    """Output informational message for human users (stderr)."""
    click.echo(message, nl=nl, err=True, color=color)


def machine_output(message: Any = None, nl: bool = True) -> None:
    """Output structured data for machine/script consumption (stdout)."""
    click.echo(message, nl=nl)
