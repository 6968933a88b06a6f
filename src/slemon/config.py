"""Application configuration via environment variables and .env file."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.sources import DotEnvSettingsSource, PydanticBaseSettingsSource

# Path to .env file (patch in tests to use tmp_path / ".env")
_ENV_FILE: Path = Path(".env")


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "SLEMON_",
        "env_file_encoding": "utf-8",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Load .env from _ENV_FILE (patchable in tests)
        return (
            init_settings,
            env_settings,
            DotEnvSettingsSource(
                settings_cls,
                env_file=_ENV_FILE,
                env_file_encoding="utf-8",
            ),
            file_secret_settings,
        )

    # Database (key-value slot for the persisted time series)
    db_path: Path = Path("./data/slemon.db")

    # Logging
    log_level: str = "info"

    # Controller REST API
    # Env: SLEMON_CONTROLLER_URL="https://controller.example.net/management"
    controller_url: str | None = None
    controller_username: str | None = None
    controller_password: str | None = None
    controller_token: str | None = None  # static bearer token, skips login
    controller_verify_tls: bool = True
    request_timeout: float = 6.0  # seconds per controller request

    # Collection
    collection_interval: int = 60  # seconds between ticks
    max_data_points: int = 10000
    poor_rssi_threshold: int = -70  # dBm
    autostart: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("controller_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: object) -> object:
        if isinstance(v, str):
            v = v.strip().rstrip("/")
            return v or None
        return v

    @field_validator("collection_interval", "max_data_points")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    def controller_configured(self) -> bool:
        """True when a controller URL and some form of credentials are set."""
        if not self.controller_url:
            return False
        if self.controller_token:
            return True
        return bool(self.controller_username and self.controller_password)


def load_config() -> Settings:
    """Load configuration from .env and environment (env overrides .env)."""
    return Settings()


settings = Settings()
