"""Command-line interface for RT."""
