"""Tests for application settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from trekroute.config.settings import Settings
from trekroute.models.experiment import Variant


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.experiment.key == "sqlite-trek-experiment"
        assert settings.experiment.default_variant is Variant.REMOTE_A
        assert settings.backends.table == "star_trek_series"
        assert settings.server.companion_port == 5000

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TREKROUTE_BACKENDS__LOCAL_SQLITE_PATH", "/data/trek.db")
        monkeypatch.setenv("TREKROUTE_BACKENDS__TURSO_URL", "libsql://trek.turso.io")
        monkeypatch.setenv("TREKROUTE_EXPERIMENT__SDK_KEY", "dvc_server_abc")
        monkeypatch.setenv("TREKROUTE_EXPERIMENT__DEFAULT_VARIANT", "local")

        settings = Settings(_env_file=None)  # type: ignore[call-arg]

        assert settings.backends.local_sqlite_path == "/data/trek.db"
        assert settings.backends.turso_url == "libsql://trek.turso.io"
        assert settings.experiment.sdk_key == "dvc_server_abc"
        assert settings.experiment.default_variant is Variant.LOCAL

    def test_invalid_default_variant(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TREKROUTE_EXPERIMENT__DEFAULT_VARIANT", "mongodb")
        with pytest.raises(ValueError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "trekroute-config.yaml"
        config.write_text(
            "server:\n"
            "  port: 8080\n"
            "backends:\n"
            "  sqlite_cloud_connection: sqlitecloud://h.sqlite.cloud:8860?apikey=k\n"
            "  timeout_seconds: 2.5\n"
        )

        settings = Settings.from_yaml(config)

        assert settings.server.port == 8080
        assert settings.backends.timeout_seconds == 2.5
        assert settings.backends.sqlite_cloud_connection.startswith("sqlitecloud://")

    def test_from_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")
