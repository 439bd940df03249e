"""Unit tests for the rt config CLI commands.

Tests cover:
- Validating documents and listing their backends
- Directory lookup with the legacy file name fallback
- Template rendering with environment and account id
- Exit codes for configuration and backend errors
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from rt.cli.main import main
from rt.state.backends.base import Backend


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def obj(supported_backends: dict[str, Backend]) -> dict[str, object]:
    """Context object injecting the test backends."""
    return {"backends": supported_backends}


class TestConfigValidate:
    """Tests for 'rt config validate'."""

    def test_valid_document(
        self, runner: CliRunner, obj: dict[str, object], config_fixture_dir: Path
    ) -> None:
        """Test that a valid document lists backends and remote state."""
        path = config_fixture_dir / "valid.hcl"
        result = runner.invoke(main, ["config", "validate", str(path)], obj=obj)

        assert result.exit_code == 0, result.output
        assert f"Configuration is valid: {path}" in result.output
        assert "Deployment state backends:\n  fixture\n" in result.output
        assert "Backend: s3" in result.output
        assert "key: infra.tfstate" in result.output

    def test_quiet(
        self, runner: CliRunner, obj: dict[str, object], config_fixture_dir: Path
    ) -> None:
        """Test that --quiet prints nothing on success."""
        path = config_fixture_dir / "valid.hcl"
        result = runner.invoke(main, ["config", "validate", str(path), "-q"], obj=obj)

        assert result.exit_code == 0
        assert result.output == ""

    def test_directory_lookup(
        self,
        runner: CliRunner,
        obj: dict[str, object],
        config_fixture_dir: Path,
        tmp_path: Path,
    ) -> None:
        """Test that rt.hcl.tpl is found inside a directory."""
        shutil.copy(config_fixture_dir / "valid.hcl", tmp_path / "rt.hcl.tpl")
        result = runner.invoke(main, ["config", "validate", str(tmp_path)], obj=obj)

        assert result.exit_code == 0, result.output
        assert str(tmp_path / "rt.hcl.tpl") in result.output

    def test_legacy_file_name(
        self,
        runner: CliRunner,
        obj: dict[str, object],
        config_fixture_dir: Path,
        tmp_path: Path,
    ) -> None:
        """Test the deployment-state.hcl.tpl fallback."""
        shutil.copy(
            config_fixture_dir / "valid.hcl", tmp_path / "deployment-state.hcl.tpl"
        )
        result = runner.invoke(main, ["config", "validate", str(tmp_path)], obj=obj)

        assert result.exit_code == 0, result.output
        assert "deployment-state.hcl.tpl" in result.output

    def test_config_path_from_environment(
        self,
        runner: CliRunner,
        obj: dict[str, object],
        config_fixture_dir: Path,
    ) -> None:
        """Test that RT_CONFIG_PATH supplies the path."""
        path = config_fixture_dir / "valid.hcl"
        result = runner.invoke(
            main, ["config", "validate"], obj=obj, env={"RT_CONFIG_PATH": str(path)}
        )

        assert result.exit_code == 0, result.output
        assert f"Configuration is valid: {path}" in result.output

    def test_missing_file(
        self, runner: CliRunner, obj: dict[str, object], tmp_path: Path
    ) -> None:
        """Test that a missing document is a configuration error."""
        result = runner.invoke(main, ["config", "validate", str(tmp_path)], obj=obj)

        assert result.exit_code == 2
        assert "Configuration error" in result.output

    def test_non_utf8_file(
        self, runner: CliRunner, obj: dict[str, object], tmp_path: Path
    ) -> None:
        """Test that an undecodable document is a configuration error."""
        (tmp_path / "rt.hcl.tpl").write_bytes(b"\xff\xfe")
        result = runner.invoke(main, ["config", "validate", str(tmp_path)], obj=obj)

        assert result.exit_code == 2
        assert "not valid UTF-8" in result.output

    def test_uninitializable_backend(
        self, runner: CliRunner, config_fixture_dir: Path
    ) -> None:
        """Test that backend failures exit with status 3."""
        path = config_fixture_dir / "uninitializable-backend.hcl"
        result = runner.invoke(main, ["config", "validate", str(path)])

        assert result.exit_code == 3
        assert "Missing bucket field in config" in result.output

    def test_unsupported_backend(
        self, runner: CliRunner, obj: dict[str, object], config_fixture_dir: Path
    ) -> None:
        """Test that unknown backend kinds are reported."""
        path = config_fixture_dir / "unsupported-backend.hcl"
        result = runner.invoke(main, ["config", "validate", str(path)], obj=obj)

        assert result.exit_code == 3
        assert "Defined backend something-unsupported is not supported" in result.output

    def test_invalid_environment(
        self, runner: CliRunner, obj: dict[str, object], config_fixture_dir: Path
    ) -> None:
        """Test that --env is checked against the naming rules."""
        path = config_fixture_dir / "valid.hcl"
        result = runner.invoke(
            main, ["config", "validate", str(path), "--env", "preprod"], obj=obj
        )

        assert result.exit_code == 2
        assert "cannot be longer than 4 characters" in result.output


class TestConfigRender:
    """Tests for 'rt config render'."""

    def test_renders_variables(
        self, runner: CliRunner, config_fixture_dir: Path
    ) -> None:
        """Test that the environment and account id are substituted."""
        path = config_fixture_dir / "templated.hcl"
        result = runner.invoke(
            main,
            [
                "config",
                "render",
                str(path),
                "--env",
                "prod",
                "--aws-account-id",
                "123456789012",
            ],
        )

        assert result.exit_code == 0, result.output
        assert 'bucket = "rt-123456789012"' in result.output
        assert 'prefix = "prod/apps"' in result.output

    def test_variables_from_environment(
        self, runner: CliRunner, config_fixture_dir: Path
    ) -> None:
        """Test that RT_ENV and RT_AWS_ACCOUNT_ID are honoured."""
        path = config_fixture_dir / "templated.hcl"
        result = runner.invoke(
            main,
            ["config", "render", str(path)],
            env={"RT_ENV": "test", "RT_AWS_ACCOUNT_ID": "210987654321"},
        )

        assert result.exit_code == 0, result.output
        assert 'bucket = "rt-210987654321"' in result.output
        assert 'prefix = "test/apps"' in result.output

    def test_option_overrides_environment(
        self,
        runner: CliRunner,
        config_fixture_dir: Path,
        isolated_env: dict[str, str],
    ) -> None:
        """Test that --env wins over RT_ENV set in the process environment."""
        os.environ["RT_ENV"] = "test"
        os.environ["RT_AWS_ACCOUNT_ID"] = "210987654321"
        path = config_fixture_dir / "templated.hcl"
        result = runner.invoke(main, ["config", "render", str(path), "--env", "prod"])

        assert result.exit_code == 0, result.output
        assert 'prefix = "prod/apps"' in result.output
        assert 'bucket = "rt-210987654321"' in result.output

    def test_group_without_subcommand(self, runner: CliRunner) -> None:
        """Test that 'rt config' prints its help."""
        result = runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "validate" in result.output
        assert "render" in result.output
