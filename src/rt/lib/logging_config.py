"""Logging configuration for RT.

All RT modules log through loggers under the ``rt`` namespace obtained with
get_logger(). The CLI calls setup_logging() once per command; library use
leaves handler configuration to the embedding application.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER_NAME = "rt"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Overrides the default level when neither --verbose nor --quiet is given
LOG_LEVEL_ENV_VAR = "RT_LOG"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for an RT module.

    Args:
        name: Module name, usually ``__name__``

    Returns:
        Logger nested under the ``rt`` namespace
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def _resolve_level(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR

    env_level = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip().upper()
    if env_level:
        level = logging.getLevelName(env_level)
        if isinstance(level, int):
            return level
    return logging.WARNING


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the ``rt`` logger hierarchy for CLI use.

    Verbose wins over quiet. Without either flag the level comes from the
    ``RT_LOG`` environment variable, defaulting to WARNING. Calling this
    more than once replaces the handler rather than stacking them.

    Args:
        verbose: Enable DEBUG output
        quiet: Only emit errors
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(_resolve_level(verbose, quiet))

    for handler in list(logger.handlers):
        if getattr(handler, "_rt_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._rt_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
