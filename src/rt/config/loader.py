"""Configuration loader for RT.

This module provides the ConfigLoader class for locating, rendering,
decoding and validating RT configuration documents (``rt.hcl.tpl``).

Loading runs in three stages, each reported under its own stage tag when it
fails:

1. ``template``: the file is rendered as a jinja2 template
2. ``decode``: the rendered text is decoded as HCL
3. ``structure``: decoded blocks are validated and converted to RTConfig
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import hcl2
from lark.exceptions import LarkError

from rt.config.blocks import RTConfig, parse_blocks
from rt.config.defaults import CONFIG_FILENAME, LEGACY_CONFIG_FILENAME
from rt.config.template import TemplateVariables, render_template
from rt.lib.errors import BlockError, ConfigError, ConfigFileError, ConfigLoadError
from rt.lib.logging_config import get_logger

logger = get_logger(__name__)

_META_KEY_PREFIX = "__"


def _unquote(value: str) -> str:
    # Some python-hcl2 releases keep the quotes around strings and labels
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _normalize(value: Any) -> Any:
    """Normalize python-hcl2 output into plain mappings, lists and scalars."""
    if isinstance(value, Mapping):
        return {
            _unquote(str(key)): _normalize(item)
            for key, item in value.items()
            if not str(key).startswith(_META_KEY_PREFIX)
        }
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    if isinstance(value, str):
        return _unquote(value)
    return value


def decode_hcl(text: str) -> dict[str, Any]:
    """Decode HCL text into a mapping of block name to block bodies.

    Raises:
        ConfigError: With field ``decode`` if the text is not valid HCL
    """
    if not text.endswith("\n"):
        text += "\n"
    try:
        decoded = hcl2.loads(text)
    except (LarkError, ValueError) as e:
        raise ConfigError("decode", f"Unable to decode HCL: {e}") from e
    return _normalize(decoded) if decoded else {}


def decode_hcl_from_template(text: str, variables: TemplateVariables) -> dict[str, Any]:
    """Render a template and decode the result as HCL."""
    return decode_hcl(render_template(text, variables))


def _candidate_path(cfg_path: str, file_name: str) -> str:
    """Return cfg_path itself for files, or file_name inside it otherwise."""
    try:
        mode = os.stat(cfg_path).st_mode
    except OSError:
        return os.path.join(cfg_path, file_name)
    if stat.S_ISDIR(mode):
        return os.path.join(cfg_path, file_name)
    return cfg_path


class ConfigLoader:
    """Loads and validates RT configuration documents.

    This class handles:
    - Locating the document (``rt.hcl.tpl`` with fallback to the legacy
      ``deployment-state.hcl.tpl``) when given a directory
    - Rendering it with the environment and AWS account id
    - Decoding HCL and converting blocks into a typed RTConfig
    - Decorating every failure with the document path
    """

    def __init__(self, environment: str = "", aws_account_id: str = "") -> None:
        """Initialize the loader with template variables."""
        self.variables = TemplateVariables(
            environment=environment, aws_account_id=aws_account_id
        )

    def read(self, cfg_path: str) -> tuple[str, str]:
        """Read the raw configuration text.

        Args:
            cfg_path: Path to a configuration file or a directory holding one

        Returns:
            Tuple of file contents and the effective file path

        Raises:
            ConfigFileError: If no configuration file can be opened
            ConfigLoadError: If the file is not valid UTF-8
        """
        file_name = CONFIG_FILENAME
        while True:
            file_path = _candidate_path(cfg_path, file_name)
            logger.debug(f"Trying to load config from {file_path}")
            try:
                return Path(file_path).read_text(encoding="utf-8"), file_path
            except FileNotFoundError as e:
                if file_name != LEGACY_CONFIG_FILENAME:
                    file_name = LEGACY_CONFIG_FILENAME
                    continue
                raise ConfigFileError(file_path, str(e)) from e
            except UnicodeDecodeError as e:
                raise ConfigLoadError(
                    file_path, "decode", f"File is not valid UTF-8: {e}"
                ) from e
            except OSError as e:
                raise ConfigFileError(file_path, str(e)) from e

    def render(self, cfg_path: str) -> tuple[str, str]:
        """Read and render a configuration document without decoding it.

        Returns:
            Tuple of rendered text and the effective file path

        Raises:
            ConfigFileError: If no configuration file can be opened
            ConfigLoadError: If the template fails to render
        """
        text, file_path = self.read(cfg_path)
        try:
            return render_template(text, self.variables), file_path
        except ConfigError as e:
            raise ConfigLoadError(file_path, e.field, e.message) from e

    def parse(self, text: str) -> RTConfig:
        """Parse configuration text that is not backed by a file.

        Raises:
            ConfigError: If rendering or decoding fails (field is the stage)
            BlockError: If a block fails validation
        """
        document = decode_hcl_from_template(text, self.variables)
        return parse_blocks(document)

    def load(self, cfg_path: str) -> tuple[RTConfig, str]:
        """Load a configuration document from disk.

        Args:
            cfg_path: Path to a configuration file or a directory holding one

        Returns:
            Tuple of the typed configuration and the effective file path

        Raises:
            ConfigFileError: If no configuration file can be opened
            ConfigLoadError: If rendering, decoding or validation fails
        """
        text, file_path = self.read(cfg_path)
        try:
            config = self.parse(text)
        except BlockError as e:
            raise ConfigLoadError(file_path, "structure", e.message) from e
        except ConfigError as e:
            raise ConfigLoadError(file_path, e.field, e.message) from e

        logger.debug(f"Loaded config from {file_path}")
        return config, file_path


def load_config_from_path(
    environment: str, aws_account_id: str, cfg_path: str
) -> tuple[RTConfig, str]:
    """Load an RT configuration document.

    One-call helper for CLI commands and the deployment-state bootstrap.

    Args:
        environment: Environment label substituted into the template
        aws_account_id: AWS account id substituted into the template
        cfg_path: Path to a configuration file or a directory holding one

    Returns:
        Tuple of the typed configuration and the effective file path
    """
    return ConfigLoader(environment, aws_account_id).load(cfg_path)
