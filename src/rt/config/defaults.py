"""Default file names and block limits for RT configuration documents."""

import sys

# Looked up inside a directory given as the config path
CONFIG_FILENAME = "rt.hcl.tpl"
# Tried when CONFIG_FILENAME does not exist
LEGACY_CONFIG_FILENAME = "deployment-state.hcl.tpl"

DEPLOYMENT_STATE_BLOCK = "deployment_state"
REMOTE_STATE_BLOCK = "remote_state"

# Block name => allowed occurrences in a single document
SUPPORTED_BLOCKS: dict[str, int] = {
    DEPLOYMENT_STATE_BLOCK: sys.maxsize,
    REMOTE_STATE_BLOCK: 1,
}

# Environment variables backing the CLI options
ENV_VAR_MAP: dict[str, str] = {
    "environment": "RT_ENV",
    "aws_account_id": "RT_AWS_ACCOUNT_ID",
    "config_path": "RT_CONFIG_PATH",
}
