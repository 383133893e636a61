"""Configuration management for eventvault.

Values come from environment variables, with Streamlit secrets as a fallback
when running inside Streamlit. ``load_settings()`` is called once at process
start and the resulting ``Settings`` object is handed to the services; the
services themselves never look at the environment.
"""

import os
from dataclasses import dataclass
from typing import Any

try:
    import streamlit as st

    STREAMLIT_AVAILABLE = True
except ImportError:
    STREAMLIT_AVAILABLE = False

from .errors import ConfigurationError
from .logging_config import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = ("GOOGLE_CLOUD_PROJECT", "GCS_ASSETS_BUCKET")

OPTIONAL_KEYS = (
    "ASSETS_PUBLIC_BASE_URL",
    "METADATA_DB_PATH",
    "API_BASE_URL",
    "ENVIRONMENT",
)


class Config:
    """Layered lookup of configuration values with type casting."""

    def __init__(self):
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables or Streamlit secrets.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        if value is None and STREAMLIT_AVAILABLE:
            try:
                value = st.secrets.get(key)
            except Exception:  # nosec B110
                # No secrets file, or not running under Streamlit
                pass

        if value in (None, ""):
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")  # type: ignore[assignment]
                    else:
                        value = bool(value)  # type: ignore[assignment]
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    def get_required(self, key: str, cast_type: type = str) -> Any:
        """Get required configuration value.

        Raises:
            ConfigurationError: If the required configuration is not found
        """
        value = self.get(key, cast_type=cast_type)
        if value is None:
            raise ConfigurationError(
                f"Required configuration '{key}' not found", code="missing_configuration", details={"key": key}
            )
        return value

    def is_set(self, key: str) -> bool:
        """Check whether a key has a non-empty value."""
        return self.get(key) is not None

    def is_development(self) -> bool:
        """Check if running in development mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["development", "dev", "local"]

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once and passed to the services."""

    project_id: str
    assets_bucket: str
    public_base_url: str
    upload_url_expiration: int = 7200
    download_url_expiration: int = 3600
    metadata_db_path: str = "./data/eventvault.duckdb"
    gallery_page_size: int = 1000
    api_base_url: str | None = None
    api_allowed_origins: tuple[str, ...] = ("http://localhost:8501",)
    orphan_grace_hours: int = 24
    environment: str = "development"
    debug: bool = False

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ["development", "dev", "local"]


def load_settings(config: Config | None = None) -> Settings:
    """
    Build the ``Settings`` for this process.

    Args:
        config: Lookup to read from (defaults to a fresh ``Config``)

    Returns:
        Settings: Immutable settings object

    Raises:
        ConfigurationError: If a required key is missing
    """
    config = config or Config()

    project_id = str(config.get_required("GOOGLE_CLOUD_PROJECT"))
    bucket = str(config.get_required("GCS_ASSETS_BUCKET"))
    public_base_url = str(
        config.get("ASSETS_PUBLIC_BASE_URL", f"https://storage.googleapis.com/{bucket}")
    ).rstrip("/")
    origins = str(config.get("API_ALLOWED_ORIGINS", "http://localhost:8501"))
    environment = str(config.get("ENVIRONMENT", "development"))

    settings = Settings(
        project_id=project_id,
        assets_bucket=bucket,
        public_base_url=public_base_url,
        upload_url_expiration=config.get("UPLOAD_URL_EXPIRATION", 7200, int),
        download_url_expiration=config.get("DOWNLOAD_URL_EXPIRATION", 3600, int),
        metadata_db_path=str(config.get("METADATA_DB_PATH", "./data/eventvault.duckdb")),
        gallery_page_size=config.get("GALLERY_PAGE_SIZE", 1000, int),
        api_base_url=config.get("API_BASE_URL"),
        api_allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        orphan_grace_hours=config.get("ORPHAN_GRACE_HOURS", 24, int),
        environment=environment,
        debug=bool(config.get("DEBUG", False, bool)) or config.is_development(),
    )

    logger.info(
        "settings_loaded",
        project_id=settings.project_id,
        assets_bucket=settings.assets_bucket,
        metadata_db_path=settings.metadata_db_path,
        environment=settings.environment,
        api_base_url=settings.api_base_url,
    )
    return settings


def required_settings_status(config: Config | None = None) -> dict[str, str]:
    """
    Report which configuration keys are present, without revealing values.

    Returns:
        dict: Key -> "SET" / "NOT SET"
    """
    config = config or Config()
    return {key: "SET" if config.is_set(key) else "NOT SET" for key in REQUIRED_KEYS + OPTIONAL_KEYS}


def missing_required_settings(config: Config | None = None) -> list[str]:
    """List the required keys that have no value."""
    status = required_settings_status(config)
    return [key for key in REQUIRED_KEYS if status[key] == "NOT SET"]
