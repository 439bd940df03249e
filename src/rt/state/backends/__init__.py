"""Deployment-state backends."""

from rt.state.backends.base import Backend, BackendHandle, initialize_backend
from rt.state.backends.object_store import ObjectStoreBackend
from rt.state.backends.s3 import S3Backend, S3Config

__all__ = [
    "Backend",
    "BackendHandle",
    "ObjectStoreBackend",
    "S3Backend",
    "S3Config",
    "initialize_backend",
]
