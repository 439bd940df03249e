"""RT CLI commands."""
