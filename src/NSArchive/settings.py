# === NAVMAP v1 ===
# {
#   "module": "NSArchive.settings",
#   "purpose": "Define configuration models, environment overrides, and YAML loading for archive jobs",
#   "sections": [
#     {"id": "storagesettings", "name": "StorageSettings", "anchor": "class-storagesettings", "kind": "class"},
#     {"id": "httpsettings", "name": "HttpSettings", "anchor": "class-httpsettings", "kind": "class"},
#     {"id": "loggingconfiguration", "name": "LoggingConfiguration", "anchor": "class-loggingconfiguration", "kind": "class"},
#     {"id": "sitesettings", "name": "SiteSettings", "anchor": "class-sitesettings", "kind": "class"},
#     {"id": "archiveconfig", "name": "ArchiveConfig", "anchor": "class-archiveconfig", "kind": "class"},
#     {"id": "environmentoverrides", "name": "EnvironmentOverrides", "anchor": "class-environmentoverrides", "kind": "class"},
#     {"id": "get-default-config", "name": "get_default_config", "anchor": "function-get-default-config", "kind": "function"},
#     {"id": "load-config", "name": "load_config", "anchor": "function-load-config", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Configuration models for the archive jobs.

Defaults live on the Pydantic models below. A YAML file may override any of
them, and ``NSARCHIVE_*`` environment variables are applied last so that the
scheduled jobs can inject the bucket URL and heartbeat endpoint without a
config file.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import UserConfigError
from .naming import DEFAULT_URL_TEMPLATE
from .render import DEFAULT_INTRO, DEFAULT_TITLE

__all__ = [
    "StorageSettings",
    "HttpSettings",
    "LoggingConfiguration",
    "SiteSettings",
    "ArchiveConfig",
    "EnvironmentOverrides",
    "get_env_overrides",
    "get_default_config",
    "invalidate_default_config_cache",
    "build_config",
    "load_raw_yaml",
    "load_config",
]

LOGGER = logging.getLogger("NSArchive.settings")


class StorageSettings(BaseModel):
    """Object storage location and public URL layout."""

    url: str = Field(default="memory://nsarchive", description="fsspec URL of the bucket root")
    public_url_template: str = Field(
        default=DEFAULT_URL_TEMPLATE,
        description="Public URL for a stored object; '{name}' is replaced by the object name",
    )
    index_name: str = Field(default="index.html", description="Object name of the catalog page")

    @field_validator("public_url_template")
    @classmethod
    def validate_template(cls, value: str) -> str:
        """Require the ``{name}`` placeholder."""

        if "{name}" not in value:
            raise ValueError("public_url_template must contain '{name}'")
        return value

    @field_validator("index_name")
    @classmethod
    def validate_index_name(cls, value: str) -> str:
        if not value.strip() or value.endswith("/"):
            raise ValueError("index_name must be a non-empty object name")
        return value.strip()

    model_config = {"validate_assignment": True, "extra": "forbid"}


class HttpSettings(BaseModel):
    """HTTP client, retry, and politeness settings for NationStates requests."""

    user_agent: str = Field(default="nsarchive by upc", min_length=1)
    timeout_sec: float = Field(default=60.0, gt=0.0, le=3600.0)
    connect_timeout_sec: float = Field(default=10.0, gt=0.0, le=120.0)
    max_retries: int = Field(default=5, ge=1, le=20)
    max_retry_delay_sec: float = Field(default=120.0, gt=0.0, le=3600.0)
    page_delay_sec: float = Field(default=2.0, ge=0.0, description="Pause between happenings pages")
    dump_delay_sec: float = Field(default=5.0, ge=0.0, description="Pause between dump downloads")

    model_config = {"validate_assignment": True, "extra": "forbid"}


class LoggingConfiguration(BaseModel):
    """Logging-related configuration."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    max_log_size_mb: int = Field(default=10, gt=0, description="Maximum size of rotated log files")
    retention_days: int = Field(default=30, ge=1, description="Retention period for log files")
    log_dir: Optional[Path] = Field(default=None, description="Directory for JSON log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}")
        return upper

    model_config = {"validate_assignment": True, "extra": "forbid"}


class SiteSettings(BaseModel):
    """Catalog page content and post-publish heartbeat."""

    title: str = Field(default=DEFAULT_TITLE, min_length=1)
    intro_html: str = Field(default=DEFAULT_INTRO)
    heartbeat_url: Optional[str] = Field(default=None)

    model_config = {"validate_assignment": True, "extra": "forbid"}


class ArchiveConfig(BaseModel):
    """Composite configuration for all archive jobs."""

    storage: StorageSettings = Field(default_factory=StorageSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    site: SiteSettings = Field(default_factory=SiteSettings)

    model_config = {"validate_assignment": True, "extra": "forbid"}


class EnvironmentOverrides(BaseSettings):
    """Pydantic settings model exposing environment-derived overrides."""

    storage_url: Optional[str] = Field(default=None)
    public_url_template: Optional[str] = Field(default=None)
    log_level: Optional[str] = Field(default=None)
    log_dir: Optional[Path] = Field(default=None)
    heartbeat_url: Optional[str] = Field(default=None)
    user_agent: Optional[str] = Field(default=None)
    timeout_sec: Optional[float] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="NSARCHIVE_", case_sensitive=False, extra="ignore")


_OVERRIDE_TARGETS = {
    "storage_url": ("storage", "url"),
    "public_url_template": ("storage", "public_url_template"),
    "log_level": ("logging", "level"),
    "log_dir": ("logging", "log_dir"),
    "heartbeat_url": ("site", "heartbeat_url"),
    "user_agent": ("http", "user_agent"),
    "timeout_sec": ("http", "timeout_sec"),
}

_DEFAULT_CONFIG_LOCK = threading.RLock()
_DEFAULT_CONFIG_CACHE: Optional[ArchiveConfig] = None


def get_env_overrides() -> Dict[str, str]:
    """Return environment-derived overrides as stringified key/value pairs."""

    env = EnvironmentOverrides()
    return {key: str(value) for key, value in env.model_dump(exclude_none=True).items()}


def _apply_env_overrides(config: ArchiveConfig) -> None:
    """Mutate ``config`` in-place using values from :class:`EnvironmentOverrides`."""

    env = EnvironmentOverrides()
    for key, value in env.model_dump(exclude_none=True).items():
        section_name, attribute = _OVERRIDE_TARGETS[key]
        section = getattr(config, section_name)
        try:
            setattr(section, attribute, value)
        except ValidationError as exc:
            raise UserConfigError(f"Invalid value for NSARCHIVE_{key.upper()}: {exc}") from exc
        shown = "***masked***" if key == "heartbeat_url" else value
        LOGGER.info("Config overridden: %s=%s", key, shown, extra={"stage": "config"})


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = " -> ".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}")
    return "Configuration validation failed:\n  " + "\n  ".join(messages)


def build_config(raw_config: Mapping[str, object]) -> ArchiveConfig:
    """Materialise an :class:`ArchiveConfig` from a raw mapping and the environment."""

    try:
        config = ArchiveConfig.model_validate(dict(raw_config))
    except ValidationError as exc:
        raise UserConfigError(_format_validation_error(exc)) from exc
    _apply_env_overrides(config)
    return config


def get_default_config(*, copy: bool = False) -> ArchiveConfig:
    """Return a memoised :class:`ArchiveConfig` constructed from defaults."""

    global _DEFAULT_CONFIG_CACHE  # noqa: PLW0603

    with _DEFAULT_CONFIG_LOCK:
        if _DEFAULT_CONFIG_CACHE is None:
            _DEFAULT_CONFIG_CACHE = build_config({})
        cached = _DEFAULT_CONFIG_CACHE
    if copy:
        return cached.model_copy(deep=True)
    return cached


def invalidate_default_config_cache() -> None:
    """Invalidate the cached default configuration."""

    global _DEFAULT_CONFIG_CACHE  # noqa: PLW0603

    with _DEFAULT_CONFIG_LOCK:
        _DEFAULT_CONFIG_CACHE = None


def load_raw_yaml(config_path: Path) -> Mapping[str, object]:
    """Read a YAML configuration file and return its top-level mapping."""

    path = Path(config_path).expanduser()
    if not path.exists():
        raise UserConfigError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserConfigError(f"Configuration file '{path}' contains invalid YAML") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise UserConfigError("Configuration file must contain a mapping at the root")
    return data


def load_config(config_path: Optional[Path] = None) -> ArchiveConfig:
    """Load configuration from ``config_path``, or defaults when it is ``None``."""

    if config_path is None:
        return get_default_config(copy=True)
    return build_config(load_raw_yaml(config_path))
