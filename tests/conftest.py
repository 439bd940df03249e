"""Pytest configuration and shared fixtures for RT tests."""

import os
import shutil
import tempfile
from collections.abc import Generator, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from rt.state.backends.base import Backend
from rt.state.backends.object_store import ObjectStoreBackend
from rt.state.backends.s3 import S3Backend


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.

    Yields:
        Dictionary of original environment variables

    Cleanup:
        Restores original environment after test
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fixture_dir() -> Path:
    """Get path to test fixtures directory.

    Returns:
        Path to tests/fixtures directory
    """
    fixtures_path = Path(__file__).parent / "fixtures"
    fixtures_path.mkdir(parents=True, exist_ok=True)
    return fixtures_path


@pytest.fixture
def config_fixture_dir(fixture_dir: Path) -> Path:
    """Get path to the HCL configuration fixtures."""
    return fixture_dir / "config"


# Backend fixtures


@dataclass
class MemoryStore:
    """Backend metadata of MemoryBackend: a key prefix and the objects."""

    prefix: str
    objects: dict[str, bytes] = field(default_factory=dict)


class MemoryBackend(ObjectStoreBackend):
    """Object-store backend keeping objects in a dict."""

    def __init__(self, ready: bool = True) -> None:
        self.ready = ready
        self.stores: list[MemoryStore] = []

    def configure(self, config: Mapping[str, Any]) -> MemoryStore:
        store = MemoryStore(prefix=str(config.get("prefix", "rt")).rstrip("/"))
        self.stores.append(store)
        return store

    def is_ready(self, meta: MemoryStore) -> bool:
        return self.ready

    def _get_object(self, meta: MemoryStore, key: str) -> bytes | None:
        return meta.objects.get(key)

    def _put_object(self, meta: MemoryStore, key: str, data: bytes) -> None:
        meta.objects[key] = data

    def _list_keys(self, meta: MemoryStore, prefix: str) -> Iterator[str]:
        return iter(sorted(k for k in meta.objects if k.startswith(prefix)))

    def _delete_object(self, meta: MemoryStore, key: str) -> None:
        meta.objects.pop(key, None)


class FixtureBackend(MemoryBackend):
    """Memory backend registered under the ``fixture`` kind in tests."""


class _Body:
    def __init__(self, data: bytes) -> None:
        self._data = data

    def read(self) -> bytes:
        return self._data


class _Paginator:
    def __init__(self, client: "FakeS3Client") -> None:
        self.client = client

    def paginate(self, Bucket: str, Prefix: str) -> Iterator[dict[str, Any]]:  # noqa: N803
        keys = sorted(
            k for (b, k) in self.client.objects if b == Bucket and k.startswith(Prefix)
        )
        size = self.client.page_size
        for start in range(0, max(len(keys), 1), size):
            page = keys[start : start + size]
            yield {"Contents": [{"Key": k} for k in page]} if page else {}


class FakeS3Client:
    """Minimal in-memory stand-in for a boto3 S3 client."""

    def __init__(self, page_size: int = 2) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.put_calls: list[dict[str, Any]] = []
        self.page_size = page_size
        self.error_code: str | None = None

    def _raise(self, code: str, operation: str) -> None:
        raise ClientError({"Error": {"Code": code, "Message": code}}, operation)

    def get_object(self, Bucket: str, Key: str) -> dict[str, Any]:  # noqa: N803
        if self.error_code:
            self._raise(self.error_code, "GetObject")
        if (Bucket, Key) not in self.objects:
            self._raise("NoSuchKey", "GetObject")
        return {"Body": _Body(self.objects[(Bucket, Key)]), "ETag": '"etag"'}

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        if self.error_code:
            self._raise(self.error_code, "PutObject")
        self.put_calls.append(kwargs)
        self.objects[(kwargs["Bucket"], kwargs["Key"])] = kwargs["Body"]
        return {"ETag": '"etag"'}

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:  # noqa: N803
        self.objects.pop((Bucket, Key), None)
        return {}

    def get_paginator(self, operation: str) -> _Paginator:
        assert operation == "list_objects_v2"
        return _Paginator(self)


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Create an in-memory object-store backend."""
    return MemoryBackend()


@pytest.fixture
def fake_s3_client() -> FakeS3Client:
    """Create an in-memory S3 client."""
    return FakeS3Client()


@pytest.fixture
def s3_backend(fake_s3_client: FakeS3Client) -> S3Backend:
    """Create an S3 backend talking to the fake S3 client."""
    return S3Backend(client_factory=lambda region, profile: fake_s3_client)


@pytest.fixture
def supported_backends(s3_backend: S3Backend) -> dict[str, Backend]:
    """Backend kinds available to registry tests, including ``fixture``."""
    return {"s3": s3_backend, "fixture": FixtureBackend()}
