"""CLI command checking identifiers against RT naming rules."""

from __future__ import annotations

import sys

import click

from rt.lib.errors import InvalidParameterError
from rt.lib.validation import VALIDATORS


@click.command(name="validate")
@click.argument("kind", type=click.Choice(sorted(VALIDATORS)))
@click.argument("value")
def validate(kind: str, value: str) -> None:
    """Check VALUE against the naming rules for KIND.

    Exits with status 1 when the value is rejected.

    Example:

        rt validate application uk_pe_ads_monitoring

        rt validate slot-id v1.2.3-special
    """
    try:
        VALIDATORS[kind](kind, value)
    except InvalidParameterError as e:
        click.secho(f"Error: invalid {kind}", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(1)

    click.secho(f'"{value}" is a valid {kind}', fg="green")
