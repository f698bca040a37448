from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any
from urllib.parse import urlencode

import httpx

from .config_types import DEFAULT_TIMEOUT_S, ClientConfig, normalize_base_uri
from .errors import ClientClosedError, ConfigurationError, NetworkError, SerializationError
from .response import FirebaseResponse, split_header_body
from .transport import Transport

log = logging.getLogger(__name__)

DECODING_HEADER = "X-Firebase-Decoding"
JSON_CONTENT_TYPE = "application/json"


def encode_json(data: Any) -> bytes:
    try:
        text = json.dumps(data, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode write payload as JSON: {e}") from e
    return text.encode("utf-8")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _base_headers(headers: Mapping[str, Any] | None) -> httpx.Headers:
    if not isinstance(headers, Mapping):
        headers = {}
    # values go out as UTF-8 bytes; httpx only str-encodes ASCII
    return httpx.Headers([(str(k), str(v).encode("utf-8")) for k, v in headers.items()])


class FirebaseClient:
    """Blocking client for a Firebase Realtime Database style REST tree.

    Every data operation is one HTTP round trip on a single persistent
    ``httpx.Client`` and returns a :class:`FirebaseResponse`. Transport
    failures are reported on the result instead of being raised.

    Instances are not thread-safe: use one client per thread.
    """

    def __init__(
            self,
            base_uri: str = "",
            token: str = "",
            *,
            timeout_s: float = DEFAULT_TIMEOUT_S,
            verify_tls: bool = False,
            transport: httpx.BaseTransport | None = None,
    ):
        self._cfg = ClientConfig(base_uri="", verify_tls=verify_tls)
        self.set_base_uri(base_uri)
        self.set_timeout(timeout_s)
        self.set_token(token)
        self._t = Transport(verify_tls=verify_tls, transport=transport)
        self._last_headers = ""

    @classmethod
    def from_config(cls, cfg: ClientConfig, *, transport: httpx.BaseTransport | None = None) -> "FirebaseClient":
        return cls(
            cfg.base_uri,
            cfg.token,
            timeout_s=cfg.timeout_s,
            verify_tls=cfg.verify_tls,
            transport=transport,
        )

    def __enter__(self) -> "FirebaseClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- configuration ---
    @property
    def config(self) -> ClientConfig:
        return replace(self._cfg)

    @property
    def base_uri(self) -> str:
        return self._cfg.base_uri

    @property
    def token(self) -> str:
        return self._cfg.token

    @property
    def timeout_s(self) -> float:
        return self._cfg.timeout_s

    def set_base_uri(self, uri: str) -> None:
        if not uri:
            raise ConfigurationError("You must provide a base URI.")
        self._cfg.base_uri = normalize_base_uri(uri)

    def set_token(self, token: str) -> None:
        self._cfg.token = token or ""

    def set_timeout(self, seconds: float) -> None:
        self._cfg.timeout_s = float(seconds)

    def close(self) -> None:
        self._t.close()

    @property
    def closed(self) -> bool:
        return self._t.closed

    def last_response_headers(self) -> str:
        return self._last_headers

    get_header = last_response_headers

    # --- request plumbing ---
    def json_path(self, path: str, options: Mapping[str, Any] | None = None) -> str:
        query: dict[str, Any] = {}
        if self._cfg.token:
            query["auth"] = self._cfg.token
        # explicit caller options override the configured token
        for key, value in (options or {}).items():
            if value is None:
                continue
            query[str(key)] = value
        path = str(path).lstrip("/")
        encoded = urlencode({k: _query_value(v) for k, v in query.items()})
        return f"{self._cfg.base_uri}{path}.json?{encoded}"

    def _redacted(self, url: str) -> str:
        if not self._cfg.token:
            return url
        return url.replace(urlencode({"auth": self._cfg.token}), "auth=***")

    def _request(
            self,
            method: str,
            path: str,
            options: Mapping[str, Any] | None,
            headers: httpx.Headers,
            content: bytes | None = None,
    ) -> FirebaseResponse:
        if self._t.closed:
            raise ClientClosedError("client is closed")

        url = self.json_path(path, options)
        headers[DECODING_HEADER] = "1"
        log.debug("%s %s", method, self._redacted(url))

        try:
            raw = self._t.request(method, url, headers=headers, content=content, timeout_s=self._cfg.timeout_s)
        except NetworkError as e:
            log.debug("%s %s failed: %s", method, self._redacted(url), e)
            result = FirebaseResponse.failure(e)
        else:
            head, body = split_header_body(raw.data, raw.header_size)
            result = FirebaseResponse(
                body=body.decode(raw.encoding, errors="replace"),
                headers=head.decode("iso-8859-1"),
                status_code=raw.status_code,
            )
        self._last_headers = result.headers
        return result

    def write_data(
            self,
            path: str,
            data: Any,
            method: str = "PUT",
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        body = encode_json(data)
        h = _base_headers(headers)
        if "Content-Type" not in h:
            h["Content-Type"] = JSON_CONTENT_TYPE
        h["Content-Length"] = str(len(body))
        return self._request(method, path, options, h, content=body)

    # --- data operations ---
    def read(
            self,
            path: str,
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        return self._request("GET", path, options, _base_headers(headers))

    def write(
            self,
            path: str,
            data: Any,
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        """Overwrite the document at ``path`` (PUT)."""
        return self.write_data(path, data, "PUT", options, headers)

    def append(
            self,
            path: str,
            data: Any,
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        """Create a child with a server-generated key under ``path`` (POST)."""
        return self.write_data(path, data, "POST", options, headers)

    def patch(
            self,
            path: str,
            data: Any,
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        """Merge ``data`` into the document at ``path`` (PATCH)."""
        return self.write_data(path, data, "PATCH", options, headers)

    def remove(
            self,
            path: str,
            options: Mapping[str, Any] | None = None,
            headers: Mapping[str, Any] | None = None,
    ) -> FirebaseResponse:
        return self._request("DELETE", path, options, _base_headers(headers))

    get = read
    set = write
    push = append
    update = patch
    delete = remove
