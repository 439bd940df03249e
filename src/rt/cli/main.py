"""Entry point for the ``rt`` command."""

from __future__ import annotations

import click

from rt.cli.commands.config import config
from rt.cli.commands.validate import validate
from rt.cli.commands.version import version
from rt.version import __version__


@click.group(name="rt")
@click.version_option(__version__, prog_name="rt")
@click.pass_context
def main(ctx: click.Context) -> None:
    """RT - deployment orchestration for Terraform-managed applications.

    Subcommands:

        config    Validate or render the RT configuration document
        validate  Check an identifier against RT naming rules
        version   Show RT, Python and git versions
    """
    ctx.ensure_object(dict)


main.add_command(config)
main.add_command(validate)
main.add_command(version)


if __name__ == "__main__":
    main()
