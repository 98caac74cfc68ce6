"""Configuration system for embedframe using pydantic-settings.

Supports layered configuration:
1. Built-in defaults (lowest priority)
2. pyproject.toml [tool.embedframe] section (project-level)
3. ./embedframe.toml (project-level, explicit)
4. File named by EMBEDFRAME_CONFIG_FILE
5. Environment variables (highest priority)

Section environment variables use the EMBEDFRAME_<SECTION>__ prefix.
Example: EMBEDFRAME_BUNDLE__DIST_DIR, EMBEDFRAME_LOG__LEVEL

Build variables injected into the widget runtime keep the names the
front-end toolchain uses: API_ENDPOINT, GIT_REF and NODE_ENV.
"""

from __future__ import annotations

import os
import tomllib

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import BuildConfigError, ConfigurationError
from .log import warn


def _find_config_files() -> list[Path]:
    """Find all configuration files in order of precedence (lowest first)."""
    files = []

    pyproject = Path("pyproject.toml")
    if pyproject.exists():
        files.append(pyproject)

    embedframe_toml = Path("embedframe.toml")
    if embedframe_toml.exists():
        files.append(embedframe_toml)

    env_config = os.environ.get("EMBEDFRAME_CONFIG_FILE")
    if env_config:
        env_path = Path(env_config)
        if env_path.exists():
            files.append(env_path)

    return files


def _load_toml_config() -> dict[str, Any]:
    """Load and merge all TOML configuration files."""
    merged: dict[str, Any] = {}

    for config_file in _find_config_files():
        try:
            data = tomllib.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            warn(f"Ignoring unreadable config file {config_file}: {e}")
            continue

        if config_file.name == "pyproject.toml":
            data = data.get("tool", {}).get("embedframe", {})

        merged = _deep_merge(merged, data)

    return merged


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class BuildSettings(BaseSettings):
    """Values injected into the widget runtime at build time.

    No prefix: reads API_ENDPOINT, GIT_REF and NODE_ENV directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
    )

    api_endpoint: str | None = None
    # Build identifier, used for error reporting
    git_ref: str | None = None
    node_env: str = "development"

    @field_validator("git_ref", mode="before")
    @classmethod
    def _empty_git_ref_is_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def mode(self) -> Literal["production", "development"]:
        """Build mode derived from NODE_ENV."""
        return "production" if self.node_env == "production" else "development"

    @property
    def is_production(self) -> bool:
        """Whether this is a production build."""
        return self.mode == "production"

    def require_valid(self) -> BuildSettings:
        """Fail if the build identifier is missing in production mode.

        Returns
        -------
        BuildSettings
            ``self``, for chaining.

        Raises
        ------
        BuildConfigError
            If ``GIT_REF`` is unset for a production build.
        """
        if self.is_production and not self.git_ref:
            raise BuildConfigError("Missing git ref for production environment", mode=self.mode)
        return self


class BundleSettings(BaseSettings):
    """Bundler input and output locations.

    Environment prefix: EMBEDFRAME_BUNDLE__
    Example: EMBEDFRAME_BUNDLE__DIST_DIR=build
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDFRAME_BUNDLE__",
        extra="ignore",
    )

    dist_dir: str = "dist"
    shell_name: str = "index.html"
    script_name: str = "app.js"
    output_name: str = "iframe-app.html"
    backup_name: str = "original.html"
    watch_debounce_ms: int = Field(default=200, ge=10)


class WidgetSettings(BaseSettings):
    """Embedded widget runtime settings.

    Environment prefix: EMBEDFRAME_WIDGET__
    Example: EMBEDFRAME_WIDGET__ROOT_ELEMENT_ID=comments
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDFRAME_WIDGET__",
        extra="ignore",
    )

    host_url_param: str = "host_url"
    root_element_id: str = "parlezvous-comments"
    session_token_key: str = "sessionToken"
    anonymous_username_key: str = "anonymousUsername"


class LogSettings(BaseSettings):
    """Logging settings.

    Environment prefix: EMBEDFRAME_LOG__
    Example: EMBEDFRAME_LOG__LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDFRAME_LOG__",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


class EmbedFrameSettings(BaseSettings):
    """Main settings aggregating all configuration sections.

    Environment prefix: EMBEDFRAME__
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDFRAME__",
        env_nested_delimiter="__",
        extra="ignore",
    )

    build: BuildSettings = Field(default_factory=BuildSettings)
    bundle: BundleSettings = Field(default_factory=BundleSettings)
    widget: WidgetSettings = Field(default_factory=WidgetSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    def __init__(self, **data: Any) -> None:
        toml_config = _load_toml_config()
        for name, section_cls in _SECTIONS.items():
            values = toml_config.get(name)
            if isinstance(values, dict):
                toml_config[name] = _env_over_toml(section_cls, values)

        # Explicit keyword arguments take precedence over everything else
        merged = _deep_merge(toml_config, data)
        super().__init__(**merged)

    def to_display(self) -> str:
        """Render the effective configuration, one section per block."""
        lines: list[str] = []
        for section_name in _SECTIONS:
            lines.append(f"[{section_name}]")
            section = getattr(self, section_name)
            for field_name, value in section.model_dump().items():
                lines.append(f"  {field_name:24} = {value!r}")
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"


_SECTIONS: dict[str, type[BaseSettings]] = {
    "build": BuildSettings,
    "bundle": BundleSettings,
    "widget": WidgetSettings,
    "log": LogSettings,
}


def _env_over_toml(section_cls: type[BaseSettings], values: dict[str, Any]) -> BaseSettings:
    """Build a section from TOML values, letting environment variables win."""
    from_env = section_cls()
    overrides = {name: getattr(from_env, name) for name in from_env.model_fields_set}
    return section_cls(**{**values, **overrides})


@lru_cache(maxsize=1)
def get_settings() -> EmbedFrameSettings:
    """Get the global settings instance (cached).

    Call clear_settings() to reload configuration.

    Raises
    ------
    ConfigurationError
        If a configuration file or environment variable holds an invalid value.
    """
    try:
        return EmbedFrameSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", error_count=e.error_count()) from e


def clear_settings() -> None:
    """Clear the cached settings to force reload."""
    get_settings.cache_clear()


def reload_settings() -> EmbedFrameSettings:
    """Reload settings from all sources."""
    clear_settings()
    return get_settings()
