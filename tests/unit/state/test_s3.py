"""Tests for the S3 deployment-state backend."""

from typing import Any

import pytest
from botocore.exceptions import NoCredentialsError

from rt.lib.errors import BackendError, SlotNotFound
from rt.models.records import DeploymentRecord, SlotRecord
from rt.state.backends.s3 import DEFAULT_ACL, DEFAULT_CONTENT_TYPE, S3Backend, S3Config

VALID_CONFIG = {"bucket": "rt-state", "prefix": "rt/", "region": "eu-west-1"}


@pytest.fixture
def meta(s3_backend: S3Backend) -> S3Config:
    """Configure the S3 backend against the fake client."""
    return s3_backend.configure(VALID_CONFIG)


class TestConfigure:
    """Tests for S3Backend.configure()."""

    def test_valid_config(self, s3_backend: S3Backend, fake_s3_client: Any) -> None:
        """Test that the prefix loses its trailing slash."""
        meta = s3_backend.configure({**VALID_CONFIG, "profile": "ops"})

        assert meta.bucket == "rt-state"
        assert meta.prefix == "rt"
        assert meta.region == "eu-west-1"
        assert meta.profile == "ops"
        assert meta.client is fake_s3_client

    def test_factory_receives_region_and_profile(self) -> None:
        """Test that the client factory gets the region and profile."""
        calls = []

        def factory(region: str, profile: str) -> object:
            calls.append((region, profile))
            return object()

        S3Backend(factory).configure(VALID_CONFIG)
        assert calls == [("eu-west-1", "")]

    @pytest.mark.parametrize(
        ("config", "field"),
        [
            ({"key": "//yada/"}, "bucket"),
            ({"bucket": "b", "region": "r"}, "prefix"),
            ({"bucket": "b", "prefix": "p"}, "region"),
        ],
    )
    def test_missing_field(
        self, s3_backend: S3Backend, config: dict[str, str], field: str
    ) -> None:
        """Test that the first missing field is reported."""
        with pytest.raises(BackendError) as exc_info:
            s3_backend.configure(config)
        assert exc_info.value.message == f"Missing {field} field in config"

    def test_non_string_field(self, s3_backend: S3Backend) -> None:
        """Test that fields must be strings."""
        with pytest.raises(BackendError, match="must be a string"):
            s3_backend.configure({**VALID_CONFIG, "bucket": 42})

    def test_client_creation_failure(self) -> None:
        """Test that botocore errors from the factory become BackendError."""

        def factory(region: str, profile: str) -> object:
            raise NoCredentialsError()

        with pytest.raises(BackendError, match="Failed to create S3 client"):
            S3Backend(factory).configure(VALID_CONFIG)

    def test_meta_excludes_client(self, meta: S3Config) -> None:
        """Test that the client is not part of the dumped metadata."""
        assert "client" not in meta.model_dump()


class TestIsReady:
    """Tests for S3Backend.is_ready()."""

    def test_missing_key_means_ready(self, s3_backend: S3Backend, meta: S3Config) -> None:
        """Test that NoSuchKey on the prefix counts as ready."""
        assert s3_backend.is_ready(meta) is True

    def test_access_denied(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that AccessDenied names the bucket and prefix."""
        fake_s3_client.error_code = "AccessDenied"
        with pytest.raises(BackendError) as exc_info:
            s3_backend.is_ready(meta)
        assert exc_info.value.message.startswith(
            "Failed accessing rt-state (bucket): rt (prefix)."
        )

    def test_other_error(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that other client errors are reported as not ready."""
        fake_s3_client.error_code = "NoSuchBucket"
        with pytest.raises(BackendError, match="S3 backend is not ready"):
            s3_backend.is_ready(meta)


class TestObjects:
    """Tests for object access through the S3 client."""

    def test_put_uses_content_type_and_acl(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test the parameters of written objects."""
        s3_backend.save_slot(meta, "app", "blue", SlotRecord(is_active=True))

        call = fake_s3_client.put_calls[0]
        assert call["Bucket"] == "rt-state"
        assert call["Key"] == "rt/app/SLOT-blue.json"
        assert call["ContentType"] == DEFAULT_CONTENT_TYPE == "application/json"
        assert call["ACL"] == DEFAULT_ACL == "bucket-owner-read"

    def test_missing_key_is_not_found(self, s3_backend: S3Backend, meta: S3Config) -> None:
        """Test that NoSuchKey surfaces as SlotNotFound."""
        with pytest.raises(SlotNotFound):
            s3_backend.get_slot(meta, "app", "ghost")

    def test_client_error_on_get(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that other errors are wrapped in BackendError."""
        fake_s3_client.error_code = "InternalError"
        with pytest.raises(BackendError) as exc_info:
            s3_backend.get_slot(meta, "app", "blue")
        assert not isinstance(exc_info.value, SlotNotFound)
        assert "Failed to get 'rt/app/SLOT-blue.json' from S3" in exc_info.value.message

    def test_client_error_on_put(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that write failures are wrapped in BackendError."""
        fake_s3_client.error_code = "AccessDenied"
        with pytest.raises(BackendError, match="Failed to write"):
            s3_backend.save_slot(meta, "app", "blue", SlotRecord())

    def test_listing_spans_pages(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that listings follow the paginator across pages."""
        ids = [f"{n:020d}" for n in range(5)]
        for deployment_id in ids:
            s3_backend.save_deployment(meta, "app", "blue", deployment_id, DeploymentRecord())

        assert fake_s3_client.page_size < len(ids)
        listed = s3_backend.list_sorted_deployments_for_slot(meta, "app", "blue", 0)
        assert [d.deployment_id for d in listed] == ids

    def test_delete_slot(
        self, s3_backend: S3Backend, meta: S3Config, fake_s3_client: Any
    ) -> None:
        """Test that deleting a slot removes its object."""
        s3_backend.save_slot(meta, "app", "blue", SlotRecord())
        s3_backend.delete_slot(meta, "app", "blue")
        assert ("rt-state", "rt/app/SLOT-blue.json") not in fake_s3_client.objects
