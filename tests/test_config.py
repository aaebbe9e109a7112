from __future__ import annotations

from pathlib import Path

import pytest

from metabase_explorer.config import (
    ClientConfig,
    Profile,
    default_config_path,
    load_config,
    resolve_configuration,
)
from metabase_explorer.errors import ConfigError

CONFIG_YAML = """\
default_profile: work
profiles:
  work:
    url: https://work.example.com
    token: mb_work
  home:
    url: https://home.example.com
    token: mb_home
"""


def _write_config(tmp_path: Path, text: str = CONFIG_YAML) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config_path_honours_xdg(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_config_path() == tmp_path / "mbx" / "config.yaml"


def test_default_config_path_falls_back_to_home(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    assert default_config_path() == tmp_path / ".config" / "mbx" / "config.yaml"


def test_load_config_missing_file_is_empty(tmp_path) -> None:
    config = load_config(tmp_path / "absent.yaml")

    assert config.default_profile == ""
    assert config.profiles == {}


def test_load_config_reads_profiles(tmp_path) -> None:
    config = load_config(_write_config(tmp_path))

    assert config.default_profile == "work"
    assert config.profiles["home"] == Profile(
        url="https://home.example.com", token="mb_home"
    )


def test_load_config_rejects_malformed_yaml(tmp_path) -> None:
    path = _write_config(tmp_path, "profiles: [unterminated")

    with pytest.raises(ConfigError, match="failed to load config"):
        load_config(path)


def test_load_config_rejects_non_mapping(tmp_path) -> None:
    path = _write_config(tmp_path, "- just\n- a list\n")

    with pytest.raises(ConfigError, match="expected a mapping"):
        load_config(path)


def test_resolve_uses_default_profile(tmp_path) -> None:
    resolved = resolve_configuration(config_path=_write_config(tmp_path))

    assert resolved == ClientConfig(
        base_url="https://work.example.com", api_token="mb_work"
    )


def test_resolve_uses_named_profile(tmp_path) -> None:
    resolved = resolve_configuration(
        profile="home", config_path=_write_config(tmp_path)
    )

    assert resolved.base_url == "https://home.example.com"
    assert resolved.api_token == "mb_home"


def test_flags_override_profile(tmp_path) -> None:
    resolved = resolve_configuration(
        token="mb_flag", config_path=_write_config(tmp_path)
    )

    assert resolved.base_url == "https://work.example.com"
    assert resolved.api_token == "mb_flag"


def test_flags_alone_are_enough(tmp_path) -> None:
    resolved = resolve_configuration(
        url="https://flag.example.com",
        token="mb_flag",
        config_path=tmp_path / "absent.yaml",
    )

    assert resolved.base_url == "https://flag.example.com"
    assert resolved.timeout_seconds == 30.0


def test_unknown_profile_is_an_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="profile 'staging' not found"):
        resolve_configuration(profile="staging", config_path=_write_config(tmp_path))


def test_missing_values_are_reported(tmp_path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        resolve_configuration(
            url="https://flag.example.com", config_path=tmp_path / "absent.yaml"
        )

    assert str(excinfo.value) == "missing configuration: URL=✓, Token=✗"


def test_load_config_rejects_profiles_list(tmp_path) -> None:
    path = _write_config(tmp_path, "profiles:\n  - work\n")

    with pytest.raises(ConfigError, match="profiles must be a mapping"):
        load_config(path)


def test_load_config_rejects_undecodable_file(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_bytes(b"profiles:\n  work:\n    url: \xff\xfe\n")

    with pytest.raises(ConfigError, match="failed to load config"):
        load_config(path)
