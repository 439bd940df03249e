"""Configuration loading and validation for RT.

This package loads RT configuration documents (HCL rendered from a jinja2
template) into typed RTConfig values.

Main components:
- ConfigLoader: Locate, render, decode and validate rt.hcl.tpl files
- load_config_from_path: One-call helper for CLI commands
- RTConfig, DeploymentStateConfig, RemoteState: Typed configuration blocks
"""

from rt.config.blocks import DeploymentStateConfig, RemoteState, RTConfig
from rt.config.loader import ConfigLoader, load_config_from_path
from rt.config.template import TemplateVariables

__all__ = [
    "ConfigLoader",
    "DeploymentStateConfig",
    "RTConfig",
    "RemoteState",
    "TemplateVariables",
    "load_config_from_path",
]
