"""Unit tests for provql.config — layered settings."""
from __future__ import annotations

import os

import pytest
from pydantic import ValidationError

from provql.config import ConfigError, Settings, load_settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove PROVQL_* variables inherited from the caller's environment."""
    for name in list(os.environ):
        if name.startswith("PROVQL_"):
            monkeypatch.delenv(name)
    return monkeypatch


def test_defaults() -> None:
    settings = load_settings()
    assert settings == Settings()
    assert settings.port == 19999
    assert settings.storage == "Neo4j"
    assert settings.fan_out_policy == "continue"


def test_yaml_file(tmp_path) -> None:
    path = tmp_path / "provql.yaml"
    path.write_text("host: prov.example.org\nport: 20000\ntimeout: 5\n", encoding="utf-8")
    settings = load_settings(path)
    assert settings.host == "prov.example.org"
    assert settings.port == 20000
    assert settings.timeout == 5.0


def test_config_path_from_environment(tmp_path, clean_environment) -> None:
    path = tmp_path / "provql.yaml"
    path.write_text("storage: PostgreSQL\n", encoding="utf-8")
    clean_environment.setenv("PROVQL_CONFIG", str(path))
    assert load_settings().storage == "PostgreSQL"


def test_layers_override_in_order(tmp_path, clean_environment) -> None:
    path = tmp_path / "provql.yaml"
    path.write_text("host: from-file\nport: 1000\nstorage: FileStore\n", encoding="utf-8")
    clean_environment.setenv("PROVQL_HOST", "from-env")
    clean_environment.setenv("PROVQL_PORT", "2000")

    settings = load_settings(path, overrides={"port": "3000", "storage": None})

    assert settings.host == "from-env"
    assert settings.port == 3000
    assert settings.storage == "FileStore"


@pytest.mark.parametrize("raw, expected", [("yes", True), ("true", True), ("0", False), ("off", False)])
def test_insecure_from_environment(clean_environment, raw: str, expected: bool) -> None:
    clean_environment.setenv("PROVQL_INSECURE", raw)
    assert load_settings().insecure is expected


def test_invalid_environment_value(clean_environment) -> None:
    clean_environment.setenv("PROVQL_PORT", "99999")
    with pytest.raises(ConfigError, match="between 1 and 65535"):
        load_settings()


def test_empty_file_is_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(path) == Settings()


@pytest.mark.parametrize(
    "content, message",
    [
        ("port: 0\n", "between 1 and 65535"),
        ("port: http\n", "integer"),
        ("timeout: -1\n", "positive"),
        ("fan_out_policy: sometimes\n", "fan_out_policy"),
        ("colour: blue\n", "Unknown configuration key 'colour'"),
        ("host: ''\n", "must not be empty"),
        ("- a\n- b\n", "mapping"),
        ("port: [1\n", "Invalid YAML"),
    ],
)
def test_invalid_files(tmp_path, content: str, message: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_settings(path)


def test_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigError, match="Cannot read"):
        load_settings(tmp_path / "missing.yaml")


def test_unknown_override_rejected() -> None:
    with pytest.raises(ConfigError, match="Unknown configuration key"):
        load_settings(overrides={"colour": "blue"})


def test_settings_are_frozen() -> None:
    with pytest.raises(ValidationError):
        Settings().port = 1  # type: ignore[misc]


def test_with_overrides_validates() -> None:
    assert Settings().with_overrides({"fan_out_policy": "ABORT"}).fan_out_policy == "abort"
    with pytest.raises(ConfigError):
        Settings().with_overrides({"port": 70000})
