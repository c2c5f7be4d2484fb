"""Client configuration.

Settings come from three layers, later layers winning:

1. a YAML file (``--config`` or the ``PROVQL_CONFIG`` environment variable)
2. ``PROVQL_<FIELD>`` environment variables
3. explicit overrides, typically command-line flags

Uses Pydantic Settings v2 with a custom :class:`YamlSettingsSource` for
the file layer.

Example file::

    host: provenance.example.org
    port: 19999
    storage: Neo4j
    storage_identifier_key: storage_identifier
    cafile: /etc/provql/server.pem
    certfile: /etc/provql/client.pem
    keyfile: /etc/provql/client.key
    timeout: 30
    fan_out_policy: continue
"""
from __future__ import annotations

import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVQL_"
CONFIG_ENV_VAR = "PROVQL_CONFIG"
FAN_OUT_POLICIES = ("continue", "abort")


class ConfigError(ValueError):
    """Raised when configuration is missing, unreadable or invalid."""


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a YAML mapping file."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if yaml_path is not None:
            self._data = _read_yaml(yaml_path)
            logger.debug("Loaded configuration from %s", yaml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the whole file for Pydantic to merge; unknown keys are rejected later."""
        return self._data


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")
    return data


# YAML path for the Settings instance under construction.
_tls = threading.local()


class Settings(BaseSettings):
    """Validated client settings."""

    model_config = SettingsConfigDict(frozen=True, env_prefix=ENV_PREFIX, extra="forbid")

    host: str = "localhost"
    port: int = 19999
    storage: str = "Neo4j"
    storage_identifier_key: str = "storage_identifier"
    cafile: str | None = None
    certfile: str | None = None
    keyfile: str | None = None
    insecure: bool = False
    timeout: float | None = None
    fan_out_policy: str = "continue"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Overrides, then environment, then the YAML file."""
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls, getattr(_tls, "yaml_path", None)),
        )

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("timeout")
    @classmethod
    def _timeout_positive(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("fan_out_policy", mode="before")
    @classmethod
    def _known_policy(cls, value: object) -> str:
        policy = str(value).strip().lower()
        if policy not in FAN_OUT_POLICIES:
            raise ValueError(
                f"fan_out_policy must be one of {', '.join(FAN_OUT_POLICIES)}, got {value!r}"
            )
        return policy

    @field_validator("host", "storage", "storage_identifier_key")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    def with_overrides(self, overrides: Mapping[str, object]) -> "Settings":
        """Return a copy with every non-``None`` override applied and validated."""
        values = {k: v for k, v in overrides.items() if v is not None}
        try:
            return type(self)(**{**self.model_dump(), **values})
        except ValidationError as exc:
            raise ConfigError(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        where = ".".join(str(part) for part in error["loc"])
        if error["type"] == "extra_forbidden":
            problems.append(f"Unknown configuration key {where!r}")
        else:
            problems.append(f"{where}: {error['msg']}")
    return "; ".join(problems)


def load_settings(
    path: str | Path | None = None,
    overrides: Mapping[str, object] | None = None,
) -> Settings:
    """Load settings from file, environment and overrides.

    Parameters
    ----------
    path:
        YAML file to read.  Falls back to ``$PROVQL_CONFIG``; with neither,
        only defaults, environment and overrides apply.
    overrides:
        Highest-priority values; ``None`` entries are ignored.

    Raises
    ------
    ConfigError
        If the file cannot be read or any value is invalid.
    """
    if path is None and os.environ.get(CONFIG_ENV_VAR):
        path = os.environ[CONFIG_ENV_VAR]
    values = {k: v for k, v in (overrides or {}).items() if v is not None}

    _tls.yaml_path = Path(path) if path is not None else None
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigError(_describe(exc)) from exc
    finally:
        _tls.yaml_path = None
