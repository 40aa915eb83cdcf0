"""Configuration loading, validation, and access."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from quotedl.core.exceptions import ConfigError

TOKEN_ENV_VAR = "TIINGO_API_TOKEN"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class HttpConfig(BaseModel):
    """HTTP client settings shared by every provider."""

    model_config = ConfigDict(frozen=True)

    timeout: float = 10.0
    user_agent: str = "quotedl/0.4"
    page_delay: float = 1.0

    @field_validator("timeout")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be > 0")
        return v

    @field_validator("page_delay")
    @classmethod
    def page_delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("page_delay must be >= 0")
        return v


class TiingoConfig(BaseModel):
    """Tiingo API credentials."""

    model_config = ConfigDict(frozen=True)

    token: str | None = None

    @field_validator("token", mode="before")
    @classmethod
    def token_as_string(cls, v: object) -> str | None:
        # env auto-casting turns all-digit tokens into ints
        if v is None or v == "":
            return None
        return str(v)


class LogConfig(BaseModel):
    """Where library log records go."""

    model_config = ConfigDict(frozen=True)

    destination: str = "stdout"
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def level_known(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return upper


class QuoteConfig(BaseModel):
    """Root configuration passed explicitly into fetch and batch calls."""

    model_config = ConfigDict(frozen=True)

    delay_ms: int = 100
    http: HttpConfig = HttpConfig()
    tiingo: TiingoConfig = TiingoConfig()
    log: LogConfig = LogConfig()

    @field_validator("delay_ms")
    @classmethod
    def delay_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("delay_ms must be >= 0")
        return v

    @property
    def delay(self) -> float:
        """Inter-request delay in seconds."""
        return self.delay_ms / 1000.0

    @property
    def tiingo_token(self) -> str | None:
        """Configured Tiingo token, falling back to TIINGO_API_TOKEN."""
        return self.tiingo.token or os.environ.get(TOKEN_ENV_VAR) or None



# --- Loading ---

CONFIG_ENV_VAR = "QUOTEDL_CONFIG"
DEFAULT_CONFIG_FILE = "quotedl.yml"


def load_config(
    config_path: str | None = None,
    env_prefix: str = "QUOTEDL_",
) -> QuoteConfig:
    """Build the settings the command line runs with.

    Three layers are stacked, each overriding the one before:

    - the model defaults above
    - a YAML file (see ``find_config_file``)
    - ``QUOTEDL_*`` environment variables, ``__`` between nested keys, e.g.
      ``QUOTEDL_HTTP__PAGE_DELAY=0`` or ``QUOTEDL_TIINGO__TOKEN=abc``

    Environment values are passed through as strings and coerced by the
    models, so an all-digit token stays a string.

    Raises:
        ConfigError: The file is missing, unreadable or not a mapping, or a
            setting fails validation.
    """
    path = find_config_file(config_path)
    settings = read_config_file(path) if path is not None else {}
    _overlay(settings, _env_settings(env_prefix))
    try:
        return QuoteConfig.model_validate(settings)
    except ValidationError as e:
        raise ConfigError(
            f"invalid configuration: {e}",
            context={"field": "config", "value": str(path) if path else None},
        ) from e


def find_config_file(explicit: str | None = None) -> Path | None:
    """Locate the YAML settings file.

    ``explicit`` (``--config``) wins, then ``$QUOTEDL_CONFIG``. A file named
    there must exist. Without either, ``./quotedl.yml`` is used when present.
    """
    if explicit:
        path, origin = Path(explicit), "--config"
    elif os.environ.get(CONFIG_ENV_VAR):
        path, origin = Path(os.environ[CONFIG_ENV_VAR]), CONFIG_ENV_VAR
    else:
        default = Path(DEFAULT_CONFIG_FILE)
        return default if default.is_file() else None

    if not path.is_file():
        raise ConfigError(
            f"config file {path} given by {origin} not found",
            context={"field": origin, "value": str(path)},
        )
    return path


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse ``path`` as YAML; an empty file means no settings."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            f"cannot read config file {path}: {e}",
            context={"field": "config_file", "value": str(path)},
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"config file {path} must be a mapping of settings, got {type(data).__name__}",
            context={"field": "config_file", "value": str(path)},
        )
    return data


def _env_settings(prefix: str) -> dict[str, Any]:
    """Nested settings dict from ``<prefix>SECTION__KEY=value`` variables."""
    settings: dict[str, Any] = {}
    for name, value in sorted(os.environ.items()):
        if not name.startswith(prefix):
            continue
        key = name[len(prefix):].lower()
        if not key or name == CONFIG_ENV_VAR:
            continue
        *sections, leaf = key.split("__")
        node = settings
        for section in sections:
            node = node.setdefault(section, {})
            if not isinstance(node, dict):
                raise ConfigError(
                    f"{name} conflicts with {prefix}{section.upper()}",
                    context={"field": name, "value": value},
                )
        node[leaf] = value
    return settings


def _overlay(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    # merges sections key by key; scalars in ``extra`` replace ``base``
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _overlay(base[key], value)
        else:
            base[key] = value
    return base
