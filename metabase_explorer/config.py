from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from metabase_explorer.errors import ConfigError

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class Profile:
    url: str = ""
    token: str = ""


@dataclass(frozen=True)
class Config:
    default_profile: str = ""
    profiles: dict[str, Profile] = field(default_factory=dict)


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    api_token: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def default_config_dir() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "mbx"


def default_config_path() -> Path:
    return default_config_dir() / "config.yaml"


def load_config(path: Path) -> Config:
    """Read the profile file; a missing file is an empty configuration."""
    if not path.exists():
        return Config()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to load config {path}: {exc}") from exc

    if raw is None:
        return Config()
    if not isinstance(raw, dict):
        raise ConfigError(f"failed to load config {path}: expected a mapping")

    raw_profiles = raw.get("profiles") or {}
    if not isinstance(raw_profiles, dict):
        raise ConfigError(
            f"failed to load config {path}: profiles must be a mapping"
        )

    profiles: dict[str, Profile] = {}
    for name, values in raw_profiles.items():
        if not isinstance(values, dict):
            raise ConfigError(f"profile {name!r} in {path} must be a mapping")
        profiles[str(name)] = Profile(
            url=str(values.get("url") or ""),
            token=str(values.get("token") or ""),
        )

    return Config(
        default_profile=str(raw.get("default_profile") or ""),
        profiles=profiles,
    )


def _mark(present: bool) -> str:
    return "✓" if present else "✗"


def resolve_configuration(
    *,
    url: str | None = None,
    token: str | None = None,
    profile: str | None = None,
    config_path: Path | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> ClientConfig:
    """Combine CLI flags with the selected profile; flags take precedence."""
    base_url = url or ""
    api_token = token or ""

    if not base_url or not api_token:
        config = load_config(config_path or default_config_path())
        profile_name = profile or config.default_profile
        selected = config.profiles.get(profile_name) if profile_name else None
        if profile and selected is None:
            raise ConfigError(f"profile {profile!r} not found")
        if selected is not None:
            base_url = base_url or selected.url
            api_token = api_token or selected.token

    if not base_url or not api_token:
        raise ConfigError(
            f"missing configuration: URL={_mark(bool(base_url))}, "
            f"Token={_mark(bool(api_token))}"
        )

    return ClientConfig(
        base_url=base_url,
        api_token=api_token,
        timeout_seconds=timeout_seconds,
    )
