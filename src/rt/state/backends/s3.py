"""Amazon S3 deployment-state backend (``deployment_state "s3"``)."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict, Field

from rt.lib.errors import BackendError
from rt.lib.logging_config import get_logger
from rt.state.backends.object_store import ObjectStoreBackend

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"
DEFAULT_ACL = "bucket-owner-read"

NOT_FOUND_CODES = frozenset({"NoSuchKey", "404"})

S3ClientFactory = Callable[[str, str], Any]


def default_client_factory(region: str, profile: str) -> Any:
    """Create a boto3 S3 client for a region and optional named profile."""
    session = boto3.Session(profile_name=profile or None, region_name=region)
    return session.client("s3")


class S3Config(BaseModel):
    """Metadata of a configured S3 backend."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    bucket: str = Field(..., description="Bucket holding deployment state")
    prefix: str = Field(..., description="Key prefix, no trailing slash")
    region: str = Field(..., description="Bucket region")
    profile: str = Field(default="", description="Named AWS credentials profile")
    client: Any = Field(default=None, exclude=True, repr=False)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _required(config: Mapping[str, Any], field: str) -> str:
    value = config.get(field)
    if value is None:
        raise BackendError(f"Missing {field} field in config")
    if not isinstance(value, str):
        raise BackendError(f"Field {field} in config must be a string")
    return value


class S3Backend(ObjectStoreBackend):
    """Stores deployment state as JSON objects in an S3 bucket.

    Objects are written with ``application/json`` content type and the
    ``bucket-owner-read`` canned ACL.
    """

    def __init__(self, client_factory: S3ClientFactory | None = None) -> None:
        """Create the backend.

        Args:
            client_factory: Callable taking (region, profile) and returning a
                boto3-compatible S3 client. Defaults to a boto3 session client.
        """
        self.client_factory = client_factory or default_client_factory

    def configure(self, config: Mapping[str, Any]) -> S3Config:
        bucket = _required(config, "bucket")
        prefix = _required(config, "prefix").rstrip("/")
        region = _required(config, "region")
        profile = config.get("profile") or ""

        try:
            client = self.client_factory(region, profile)
        except BotoCoreError as e:
            raise BackendError(f"Failed to create S3 client: {e}") from e

        logger.debug(f"Configured S3 backend: bucket={bucket!r}, prefix={prefix!r}")
        return S3Config(
            bucket=bucket, prefix=prefix, region=region, profile=profile, client=client
        )

    def is_ready(self, meta: S3Config) -> bool:
        # A readable bucket is all that can be checked without writing
        try:
            meta.client.get_object(Bucket=meta.bucket, Key=meta.prefix)
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                logger.debug("Ignoring NoSuchKey error, assuming S3 backend is ready")
                return True
            if code == "AccessDenied":
                raise BackendError(
                    f"Failed accessing {meta.bucket} (bucket): {meta.prefix} (prefix). {e}"
                ) from e
            raise BackendError(f"S3 backend is not ready: {e}") from e
        return True

    def _get_object(self, meta: S3Config, key: str) -> bytes | None:
        try:
            out = meta.client.get_object(Bucket=meta.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return None
            raise BackendError(f"Failed to get {key!r} from S3: {e}") from e
        logger.debug(f"Received {key!r} from S3 (ETag: {out.get('ETag')})")
        return out["Body"].read()

    def _put_object(self, meta: S3Config, key: str, data: bytes) -> None:
        try:
            out = meta.client.put_object(
                Bucket=meta.bucket,
                Key=key,
                Body=data,
                ContentType=DEFAULT_CONTENT_TYPE,
                ACL=DEFAULT_ACL,
            )
        except ClientError as e:
            raise BackendError(f"Failed to write {key!r} to S3: {e}") from e
        logger.debug(f"Written {key!r} to S3 (ETag: {out.get('ETag')})")

    def _list_keys(self, meta: S3Config, prefix: str) -> Iterator[str]:
        paginator = meta.client.get_paginator("list_objects_v2")
        try:
            for page_num, page in enumerate(
                paginator.paginate(Bucket=meta.bucket, Prefix=prefix)
            ):
                objects = page.get("Contents", [])
                logger.debug(f"Ranging over {len(objects)} objects (page {page_num})")
                for obj in objects:
                    yield obj["Key"]
        except ClientError as e:
            raise BackendError(f"Failed to list {prefix!r} in S3: {e}") from e

    def _delete_object(self, meta: S3Config, key: str) -> None:
        try:
            meta.client.delete_object(Bucket=meta.bucket, Key=key)
        except ClientError as e:
            raise BackendError(f"Failed to delete {key!r} from S3: {e}") from e
        logger.debug(f"Deleted {key!r} from S3")
