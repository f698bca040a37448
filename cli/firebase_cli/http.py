from __future__ import annotations

from firebase_client import FirebaseClient
from firebase_client.config_types import ClientConfig

from .config import AppConfig, apply_profile, normalize_base_url, resolve_base_url, resolve_token


def make_client(
    cfg: AppConfig,
    *,
    profile: str | None,
    base_url_override: str | None,
    token_override: str | None = None,
) -> FirebaseClient:
    effective_cfg = apply_profile(cfg, profile)
    base_url = normalize_base_url(base_url_override, warn=True) or resolve_base_url(effective_cfg)
    token = token_override if token_override is not None else resolve_token(effective_cfg)
    return FirebaseClient.from_config(
        ClientConfig(
            base_uri=base_url,
            token=token,
            timeout_s=effective_cfg.timeout_s,
            verify_tls=effective_cfg.verify_tls,
        )
    )
