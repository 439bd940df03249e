"""CLI command printing RT, Python and git versions."""

from __future__ import annotations

import platform
import subprocess  # nosec B404

import click

from rt.version import __version__


def _git_version() -> str:
    result = subprocess.run(  # noqa: S603  # nosec B603 B607
        ["git", "--version"],
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@click.command(name="version")
def version() -> None:
    """Show RT, Python and git versions.

    Example:

        rt version
    """
    click.echo(f"rt {__version__}")
    click.echo(
        f"python {platform.python_version()} "
        f"{platform.system().lower()}/{platform.machine()}"
    )
    try:
        click.echo(_git_version())
    except (OSError, subprocess.CalledProcessError) as e:
        click.echo(f"git - Unable to get version ({e})", err=True)
