from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import ApiError, AuthError, NetworkError
from .errors_utils import extract_error_message


def split_header_body(raw: bytes, header_size: int) -> tuple[bytes, bytes]:
    """Split a curl-style ``headers + body`` blob at ``header_size`` bytes.

    A non-positive size means the header block is missing and the whole
    input is treated as body.
    """
    if header_size <= 0:
        return b"", raw
    return raw[:header_size], raw[header_size:]


def _render_one(response: httpx.Response) -> bytes:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}".encode("ascii")]
    for name, value in response.headers.raw:
        lines.append(name + b": " + value)
    return b"\r\n".join(lines) + b"\r\n\r\n"


def render_header_block(response: httpx.Response) -> bytes:
    """Header blocks of every redirect hop followed by the final one."""
    return b"".join(_render_one(hop) for hop in [*response.history, response])


@dataclass(frozen=True)
class FirebaseResponse:
    body: str | None
    headers: str = ""
    status_code: int | None = None
    error: NetworkError | None = None

    @classmethod
    def failure(cls, error: NetworkError) -> "FirebaseResponse":
        return cls(body=None, headers="", status_code=None, error=error)

    @property
    def failed(self) -> bool:
        return self.error is not None or self.body is None

    @property
    def ok(self) -> bool:
        return not self.failed and self.status_code is not None and 200 <= self.status_code < 300

    def json(self) -> Any:
        if self.body is None:
            return None
        return json.loads(self.body)

    def header(self, name: str) -> str | None:
        # Only the last block counts when redirects were followed.
        blocks = [b for b in self.headers.split("\r\n\r\n") if b.strip()]
        if not blocks:
            return None
        wanted = name.strip().lower()
        for line in blocks[-1].split("\r\n")[1:]:
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == wanted:
                return value.strip()
        return None

    def raise_for_error(self) -> "FirebaseResponse":
        if self.error is not None:
            raise self.error
        if self.status_code is not None and self.status_code >= 400:
            msg = extract_error_message(self.body) or f"request failed with {self.status_code}"
            details = (self.body or "")[:1000] or None
            if self.status_code in (401, 403):
                raise AuthError(self.status_code, msg, details)
            raise ApiError(self.status_code, msg, details)
        return self
