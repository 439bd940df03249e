"""Error handling shared by RT CLI commands."""

from __future__ import annotations

import sys
from collections.abc import Generator
from contextlib import contextmanager

import click

from rt.lib.errors import BackendError, ConfigError, RecordError, StateError
from rt.lib.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def handle_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in RT commands.

    Exit codes:
        2: Configuration error
        3: Backend, record or state error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except (BackendError, RecordError, StateError) as e:
        logger.error(f"Deployment state error: {e}")
        click.secho("Error: Deployment state error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)
