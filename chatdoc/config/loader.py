"""Load configuration from YAML and environment variables. API keys come from env only."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatdoc.core.errors import ConfigurationError

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY")
DEFAULT_MODEL = "gemini-2.5-flash"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def api_key_from_env() -> str:
    """First non-empty of GOOGLE_API_KEY, GEMINI_API_KEY."""
    for name in API_KEY_ENV_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return ""


class ApiSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GEMINI_", extra="ignore", env_ignore_empty=True, populate_by_name=True
    )
    api_key: str = Field(default="", validation_alias=AliasChoices(*API_KEY_ENV_VARS))
    model: str = DEFAULT_MODEL
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    connect_timeout: float = 10.0


class SessionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHATDOC_", extra="ignore")
    flush_interval_ms: int = 100
    auto_scroll: bool = False
    show_spinner: bool = False
    spinner_interval_ms: int = 80


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHATDOC_LOG_", extra="ignore")
    level: str = "INFO"
    json_format: bool = False


_SECTIONS: dict[str, type[BaseSettings]] = {
    "api": ApiSettings,
    "session": SessionSettings,
    "logging": LoggingSettings,
}


class Config(BaseSettings):
    """Application config: YAML + env. Secrets from env only."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    api: ApiSettings = Field(default_factory=ApiSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        yaml_data = _load_yaml(_DEFAULT_CONFIG_PATH)
        if config_path:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(config_path)))
        # Sections built from YAML dicts do not read env on their own: env wins
        for section, settings_cls in _SECTIONS.items():
            from_env = settings_cls().model_dump(exclude_unset=True)
            if from_env:
                yaml_data[section] = _deep_merge(yaml_data.get(section) or {}, from_env)
        yaml_data.setdefault("api", {})["api_key"] = api_key_from_env()
        return cls(**yaml_data)

    def require_api_key(self) -> str:
        if not self.api.api_key:
            raise ConfigurationError(
                "GOOGLE_API_KEY or GEMINI_API_KEY environment variable not set"
            )
        return self.api.api_key


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)
