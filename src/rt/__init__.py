"""RT - deployment orchestration for Terraform-managed applications.

RT keeps per-application, per-slot and per-deployment metadata in one or
more deployment-state backends configured through an HCL document
(``rt.hcl.tpl``) rendered as a template.

Main features:
- Load and validate ``deployment_state`` and ``remote_state`` configuration
- Initialize deployment-state backends (S3) from configuration
- Versioned JSON records with forward migrations
- Validators for RT identifiers (applications, environments, slots)
"""

from rt.config.loader import ConfigLoader
from rt.lib.errors import BackendError, ConfigError, RecordError, RTError
from rt.version import __version__

__all__ = [
    "__version__",
    "BackendError",
    "ConfigError",
    "ConfigLoader",
    "RTError",
    "RecordError",
]
