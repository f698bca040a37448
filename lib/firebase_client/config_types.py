from __future__ import annotations
from dataclasses import dataclass

DEFAULT_TIMEOUT_S = 10.0


def normalize_base_uri(uri: str) -> str:
    return uri if uri.endswith("/") else f"{uri}/"


@dataclass
class ClientConfig:
    base_uri: str
    token: str = ""
    timeout_s: float = DEFAULT_TIMEOUT_S
    verify_tls: bool = False
