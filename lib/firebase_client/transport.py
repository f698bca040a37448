from __future__ import annotations

from dataclasses import dataclass

import httpx

from .errors import NetworkError, RequestTimeout
from .response import render_header_block


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    data: bytes
    header_size: int
    encoding: str = "utf-8"


class Transport:
    def __init__(self, *, verify_tls: bool = False, transport: httpx.BaseTransport | None = None):
        headers = {"User-Agent": "firebase-rest/0.1.0"}
        self._client = httpx.Client(
            headers=headers,
            verify=verify_tls,
            follow_redirects=True,
            transport=transport,
        )
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._client.close()
        self._closed = True

    def request(
            self,
            method: str,
            url: str,
            *,
            headers: httpx.Headers,
            content: bytes | None = None,
            timeout_s: float,
    ) -> RawResponse:
        try:
            r = self._client.request(
                method,
                url,
                headers=headers,
                content=content,
                timeout=httpx.Timeout(timeout_s),
            )
        except httpx.TimeoutException as e:
            raise RequestTimeout(str(e) or "request timed out") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise NetworkError(str(e) or type(e).__name__) from e

        head = render_header_block(r)
        return RawResponse(
            status_code=r.status_code,
            data=head + r.content,
            header_size=len(head),
            encoding=r.encoding or "utf-8",
        )
