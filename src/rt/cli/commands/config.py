"""CLI commands for RT configuration documents.

Implements the 'rt config' command group for validating and rendering
``rt.hcl.tpl`` documents.
"""

from __future__ import annotations

from collections.abc import Mapping

import click

from rt.cli.errors import handle_errors
from rt.config.defaults import ENV_VAR_MAP
from rt.config.loader import ConfigLoader
from rt.lib.logging_config import get_logger, setup_logging
from rt.lib.validation import click_callback, validate_environment_name
from rt.state.backends.base import Backend
from rt.state.registry import DEFAULT_BACKENDS, BackendRegistry

logger = get_logger(__name__)


def _supported_backends(ctx: click.Context) -> Mapping[str, Backend]:
    obj = ctx.find_root().obj or {}
    return obj.get("backends", DEFAULT_BACKENDS)


def _validate_optional_environment(name: str, value: str) -> None:
    if value:
        validate_environment_name(name, value)


def _config_options(func):  # type: ignore[no-untyped-def]
    """Attach the arguments and options shared by config subcommands."""
    options = [
        click.argument(
            "cfg_path",
            type=click.Path(),
            default=".",
            required=False,
            envvar=ENV_VAR_MAP["config_path"],
        ),
        click.option(
            "--env",
            "environment",
            default="",
            envvar=ENV_VAR_MAP["environment"],
            callback=click_callback(_validate_optional_environment),
            help="Environment substituted into the template",
        ),
        click.option(
            "--aws-account-id",
            default="",
            envvar=ENV_VAR_MAP["aws_account_id"],
            help="AWS account id substituted into the template",
        ),
        click.option(
            "--verbose", "-v", is_flag=True, help="Enable verbose debug logging"
        ),
        click.option("--quiet", "-q", is_flag=True, help="Only report errors"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(name="config", invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context) -> None:
    """Validate or render the RT configuration document.

    Subcommands:

        validate  Load the document and initialize its backends
        render    Print the document after template rendering

    Example:

        rt config validate ./infra --env prod
    """
    ctx.ensure_object(dict)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@config.command(name="validate")
@_config_options
@click.pass_context
def validate_config(
    ctx: click.Context,
    cfg_path: str,
    environment: str,
    aws_account_id: str,
    verbose: bool,
    quiet: bool,
) -> None:
    """Load the configuration document and initialize its backends.

    CFG_PATH is a configuration file or a directory holding rt.hcl.tpl
    (deployment-state.hcl.tpl is tried when rt.hcl.tpl does not exist).

    Example:

        rt config validate

        rt config validate infra/rt.hcl.tpl --env test --aws-account-id 123456789012
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_errors():
        loader = ConfigLoader(environment, aws_account_id)
        cfg, file_path = loader.load(cfg_path)
        handles = BackendRegistry(_supported_backends(ctx)).load(cfg.deployment_state)

        if quiet:
            return

        click.secho(f"Configuration is valid: {file_path}", fg="green")
        click.echo()
        click.secho("Deployment state backends:", bold=True)
        for handle in handles:
            click.echo(f"  {handle.name}")

        if cfg.remote_state is not None:
            click.echo()
            click.secho("Remote state:", bold=True)
            click.echo(f"  Backend: {cfg.remote_state.backend}")
            for key in sorted(cfg.remote_state.config):
                click.echo(f"  {key}: {cfg.remote_state.config[key]}")


@config.command(name="render")
@_config_options
def render_config(
    cfg_path: str,
    environment: str,
    aws_account_id: str,
    verbose: bool,
    quiet: bool,
) -> None:
    """Print the configuration document after template rendering.

    Example:

        rt config render --env prod --aws-account-id 123456789012
    """
    setup_logging(verbose=verbose, quiet=quiet)

    with handle_errors():
        loader = ConfigLoader(environment, aws_account_id)
        text, file_path = loader.render(cfg_path)
        logger.debug(f"Rendered {file_path}")
        click.echo(text, nl=False)

