from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from . import console

APP_NAME = "firebase-rest"
CONFIG_FILENAME = "config.toml"
DEFAULT_TIMEOUT_S = 10.0
ENV_BASE_URL = "FIREBASE_REST_URL"
ENV_TOKEN = "FIREBASE_REST_TOKEN"

_WARNED_BASE_URL_SCHEME = False


@dataclass
class AuthConfig:
    token: str = ""


@dataclass
class ProfileConfig:
    base_url: str | None = None
    token: str | None = None
    timeout_s: float | None = None


@dataclass
class AppConfig:
    base_url: str
    auth: AuthConfig
    timeout_s: float = DEFAULT_TIMEOUT_S
    verify_tls: bool = False
    profiles: dict[str, ProfileConfig] = field(default_factory=dict)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig(
        base_url="",
        auth=AuthConfig(token=""),
        timeout_s=DEFAULT_TIMEOUT_S,
        verify_tls=False,
        profiles={},
    )


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    if not _is_interactive():
        return
    console.warn(f"base_url missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def _is_interactive() -> bool:
    import sys
    return bool(sys.stderr.isatty() or sys.stdout.isatty())


def _coerce_timeout(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) and value > 0:
        return float(value)
    return None


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return _prune_none(
        {
            "base_url": cfg.base_url,
            "timeout_s": cfg.timeout_s,
            "verify_tls": cfg.verify_tls,
            "auth": {
                "token": cfg.auth.token,
            },
            "profiles": {
                name: {
                    "base_url": p.base_url,
                    "token": p.token,
                    "timeout_s": p.timeout_s,
                }
                for name, p in cfg.profiles.items()
            },
        }
    )


def _prune_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune_none(item) for item in value if item is not None]
    return value


def from_toml(data: dict[str, Any]) -> AppConfig:
    cfg = default_config()
    cfg.base_url = normalize_base_url(str(data.get("base_url") or ""), warn=True)
    cfg.timeout_s = _coerce_timeout(data.get("timeout_s")) or DEFAULT_TIMEOUT_S
    cfg.verify_tls = data.get("verify_tls") is True

    auth_raw = data.get("auth") or {}
    if isinstance(auth_raw, dict):
        cfg.auth.token = str(auth_raw.get("token") or "")

    profiles_raw = data.get("profiles") or {}
    if isinstance(profiles_raw, dict):
        for name, v in profiles_raw.items():
            if not isinstance(v, dict):
                continue
            base_url = normalize_base_url(str(v.get("base_url") or ""), warn=True)
            token = v.get("token")
            cfg.profiles[str(name)] = ProfileConfig(
                base_url=base_url or None,
                token=token if isinstance(token, str) else None,
                timeout_s=_coerce_timeout(v.get("timeout_s")),
            )
    return cfg


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def apply_profile(cfg: AppConfig, profile: str | None) -> AppConfig:
    if not profile:
        return cfg
    prof = cfg.profiles.get(profile)
    if prof is None:
        return cfg
    return AppConfig(
        base_url=prof.base_url or cfg.base_url,
        auth=AuthConfig(token=prof.token if prof.token is not None else cfg.auth.token),
        timeout_s=prof.timeout_s or cfg.timeout_s,
        verify_tls=cfg.verify_tls,
        profiles=cfg.profiles,
    )


def resolve_base_url(cfg: AppConfig) -> str:
    env_value = os.getenv(ENV_BASE_URL, "").strip()
    if env_value:
        return normalize_base_url(env_value)
    return cfg.base_url


def resolve_token(cfg: AppConfig) -> str:
    env_value = os.getenv(ENV_TOKEN, "").strip()
    if env_value:
        return env_value
    return cfg.auth.token


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path
