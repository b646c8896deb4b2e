"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Command-line flags of the ``trekroute`` launcher
  2. YAML config file (if specified)
  3. Environment variables (TREKROUTE_ prefix)
  4. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from trekroute.models.experiment import Variant

# Environment variable naming a YAML config file for the app factory
CONFIG_FILE_ENV = "TREKROUTE_CONFIG_FILE"

# Environment variable carrying launcher flag overrides (JSON) to the app factory
CLI_OVERRIDES_ENV = "TREKROUTE_CLI_OVERRIDES"


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=3000, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    companion_port: int | None = Field(
        default=5000,
        description="Port of the companion app linked from the search page (None hides the link)",
    )


class BackendSettings(BaseModel):
    """Connection details for the three interchangeable data stores."""

    local_sqlite_path: str = Field(default="", description="Path to the local SQLite database file")
    turso_url: str = Field(default="", description="Turso / libSQL database URL (libsql:// or https://)")
    turso_auth_token: str | None = Field(default=None, description="Turso database auth token")
    sqlite_cloud_connection: str = Field(
        default="",
        description="SQLite Cloud connection string, e.g. sqlitecloud://host:8860/test?apikey=KEY",
    )
    sqlite_cloud_weblite_port: int = Field(default=8090, description="SQLite Cloud Weblite HTTP port")
    table: str = Field(default="star_trek_series", description="Table queried by every backend")
    timeout_seconds: float = Field(default=10.0, gt=0, description="Upper bound for a single backend call")


class ExperimentSettings(BaseModel):
    """Experiment platform (assignment + tracking) configuration."""

    sdk_key: str = Field(default="", description="Server SDK key for the experiment platform")
    base_url: str = Field(
        default="https://bucketing-api.devcycle.com",
        description="Bucketing API endpoint",
    )
    key: str = Field(default="sqlite-trek-experiment", description="Experiment variable key")
    default_variant: Variant = Field(
        default=Variant.REMOTE_A,
        description="Variant used when assignment is unavailable or unrecognized",
    )
    timeout_seconds: float = Field(default=5.0, gt=0, description="Assignment / tracking request timeout")
    tracking_queue_size: int = Field(default=1000, ge=1, description="Max buffered metric events")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the TREKROUTE_ prefix.
    Nested settings use double underscores: TREKROUTE_SERVER__PORT=9090

    Example:
        TREKROUTE_BACKENDS__LOCAL_SQLITE_PATH=./data/trek.db
        TREKROUTE_BACKENDS__TURSO_URL=libsql://trek-org.turso.io
        TREKROUTE_EXPERIMENT__SDK_KEY=dvc_server_...
    """

    model_config = {
        "env_prefix": "TREKROUTE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="TrekRoute", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    backends: BackendSettings = Field(default_factory=BackendSettings)
    experiment: ExperimentSettings = Field(default_factory=ExperimentSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments, so they
        take precedence over environment variables.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def apply_overrides(self, overrides: dict[str, dict[str, Any]]) -> None:
        """Apply ``{"section": {"field": value}}`` overrides in place.

        Used for launcher flags, which win over both YAML and env values.
        """
        for section, values in overrides.items():
            target = getattr(self, section)
            for key, value in values.items():
                setattr(target, key, value)
