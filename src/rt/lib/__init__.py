"""Shared helpers: errors, logging, validation and message formatting."""
