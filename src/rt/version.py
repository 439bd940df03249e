"""RT version information."""

__version__ = "0.9.3"
