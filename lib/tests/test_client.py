from __future__ import annotations

import json

import httpx
import pytest

from firebase_client import (
    ClientClosedError,
    ConfigurationError,
    FirebaseClient,
    NetworkError,
    RequestTimeout,
    SerializationError,
)
from firebase_client.config_types import ClientConfig


class _Recorder:
    def __init__(self, status: int = 200, body: object = None) -> None:
        self.requests: list[httpx.Request] = []
        self.status = status
        self.body = {"ok": True} if body is None else body

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _client(recorder, *, token: str = "", base_uri: str = "https://example.com/db") -> FirebaseClient:
    return FirebaseClient(base_uri, token, transport=httpx.MockTransport(recorder))


def test_requires_base_uri() -> None:
    with pytest.raises(ConfigurationError):
        FirebaseClient("")


def test_set_base_uri_adds_single_trailing_slash() -> None:
    client = _client(_Recorder())
    client.set_base_uri("https://example.com/db")
    assert client.base_uri == "https://example.com/db/"
    client.set_base_uri(client.base_uri)
    assert client.base_uri == "https://example.com/db/"


def test_leading_slash_in_path_is_ignored() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.read("/a/b", {}, {})
    client.read("a/b", {}, {})
    assert rec.requests[0].url == rec.requests[1].url
    assert rec.last.url.path == "/db/a/b.json"


def test_token_is_injected_into_every_operation() -> None:
    rec = _Recorder()
    client = _client(rec, token="tok123")
    client.read("x")
    client.write("x", {"a": 1})
    client.append("x", {"a": 1})
    client.patch("x", {"a": 1})
    client.remove("x")
    assert len(rec.requests) == 5
    for request in rec.requests:
        assert request.url.params["auth"] == "tok123"


def test_empty_token_sends_no_auth() -> None:
    rec = _Recorder()
    client = _client(rec, token="tok123")
    client.set_token("")
    client.read("x", {"shallow": True})
    assert "auth" not in rec.last.url.params
    assert rec.last.url.params["shallow"] == "true"


def test_caller_auth_option_wins_over_token() -> None:
    rec = _Recorder()
    client = _client(rec, token="configured")
    client.read("x", {"auth": "explicit", "orderBy": '"$key"'})
    assert rec.last.url.params["auth"] == "explicit"
    assert rec.last.url.params["orderBy"] == '"$key"'


def test_write_sets_json_headers() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.write("x", {"a": 1}, {}, {})
    assert rec.last.headers["Content-Type"] == "application/json"
    assert rec.last.headers["Content-Length"] == str(len(b'{"a":1}'))
    assert rec.last.content == b'{"a":1}'


def test_write_keeps_content_type_but_recomputes_length() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.write("x", {"a": 1}, {}, {"Content-Type": "text/plain", "Content-Length": "999"})
    assert rec.last.headers["Content-Type"] == "text/plain"
    assert rec.last.headers["Content-Length"] == "7"


def test_write_ignores_non_mapping_headers() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.write_data("x", [1, 2], "PUT", None, "not-a-mapping")  # type: ignore[arg-type]
    assert rec.last.headers["Content-Type"] == "application/json"
    assert rec.last.headers["Content-Length"] == "5"


def test_content_length_counts_bytes() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.write("x", "é")
    assert rec.last.headers["Content-Length"] == str(len(rec.last.content))


@pytest.mark.parametrize(
    ("call", "method"),
    [
        (lambda c: c.read("x"), "GET"),
        (lambda c: c.write("x", 1), "PUT"),
        (lambda c: c.append("x", 1), "POST"),
        (lambda c: c.patch("x", {"a": 1}), "PATCH"),
        (lambda c: c.remove("x"), "DELETE"),
        (lambda c: c.get("x"), "GET"),
        (lambda c: c.set("x", 1), "PUT"),
        (lambda c: c.push("x", 1), "POST"),
        (lambda c: c.update("x", {"a": 1}), "PATCH"),
        (lambda c: c.delete("x"), "DELETE"),
    ],
)
def test_verb_mapping(call, method) -> None:
    rec = _Recorder()
    client = _client(rec)
    call(client)
    assert rec.last.method == method


def test_decoding_header_on_every_request() -> None:
    rec = _Recorder()
    client = _client(rec)
    custom = {"X-Firebase-Decoding": "0", "X-Extra": "yes"}
    client.read("x", {}, custom)
    client.write("x", 1, {}, custom)
    client.append("x", 1, {}, custom)
    client.patch("x", {}, {}, custom)
    client.remove("x", {}, custom)
    for request in rec.requests:
        assert request.headers["X-Firebase-Decoding"] == "1"
        assert request.headers["X-Extra"] == "yes"


def test_read_sends_no_body_defaults() -> None:
    rec = _Recorder()
    client = _client(rec)
    client.read("x")
    assert rec.last.content == b""
    assert "Content-Type" not in rec.last.headers


def test_response_body_and_headers_are_split() -> None:
    rec = _Recorder(body={"name": "Ann"})
    client = _client(rec)
    result = client.read("users/1")
    assert json.loads(result.body) == {"name": "Ann"}
    assert result.status_code == 200
    assert result.ok
    assert result.headers.startswith("HTTP/1.1 200 OK\r\n")
    assert result.headers.endswith("\r\n\r\n")
    assert client.last_response_headers() == result.headers
    assert result.header("content-type") == "application/json"


def test_server_error_body_is_returned_as_is() -> None:
    rec = _Recorder(status=401, body={"error": "Permission denied"})
    client = _client(rec)
    result = client.read("secret")
    assert not result.failed
    assert not result.ok
    assert result.status_code == 401
    assert result.json() == {"error": "Permission denied"}


def test_redirect_headers_include_every_hop() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "old.example.com":
            return httpx.Response(307, headers={"Location": "https://new.example.com/db/x.json"})
        return httpx.Response(200, json=1)

    client = FirebaseClient("https://old.example.com/db", transport=httpx.MockTransport(handler))
    result = client.read("x")
    assert result.body == "1"
    assert result.headers.startswith("HTTP/1.1 307 Temporary Redirect\r\n")
    assert "HTTP/1.1 200 OK\r\n" in result.headers
    assert result.status_code == 200


def test_connection_failure_returns_sentinel() -> None:
    state = {"fail": True}

    def handler(request: httpx.Request) -> httpx.Response:
        if state["fail"]:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"ok": True})

    client = FirebaseClient("https://example.com/db", transport=httpx.MockTransport(handler))
    for result in (client.read("x"), client.write("x", 1), client.remove("x")):
        assert result.body is None
        assert result.failed
        assert isinstance(result.error, NetworkError)
        assert client.last_response_headers() == ""

    state["fail"] = False
    result = client.read("x")
    assert result.ok
    assert json.loads(result.body) == {"ok": True}


def test_timeout_is_typed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    client = FirebaseClient("https://example.com/db", transport=httpx.MockTransport(handler))
    client.set_timeout(0.5)
    result = client.read("x")
    assert isinstance(result.error, RequestTimeout)
    assert client.timeout_s == 0.5


def test_timeout_applies_to_connect_and_total() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.extensions["timeout"])
        return httpx.Response(200, json=None)

    client = FirebaseClient("https://example.com/db", transport=httpx.MockTransport(handler))
    client.set_timeout(3)
    client.read("x")
    assert seen["connect"] == 3.0
    assert seen["read"] == 3.0


def test_unserializable_payload_raises() -> None:
    rec = _Recorder()
    client = _client(rec)
    with pytest.raises(SerializationError):
        client.write("x", {"when": object()})
    with pytest.raises(SerializationError):
        client.append("x", float("nan"))
    assert rec.requests == []


def test_close_is_terminal() -> None:
    client = _client(_Recorder())
    client.close()
    client.close()
    assert client.closed
    with pytest.raises(ClientClosedError):
        client.read("x")


def test_context_manager_closes() -> None:
    with _client(_Recorder()) as client:
        assert client.read("x").ok
    assert client.closed


def test_from_config() -> None:
    rec = _Recorder()
    cfg = ClientConfig(base_uri="https://example.com/db", token="tok", timeout_s=4)
    client = FirebaseClient.from_config(cfg, transport=httpx.MockTransport(rec))
    client.set_token("other")
    assert cfg.token == "tok"
    assert client.config.timeout_s == 4.0


def test_end_to_end_write() -> None:
    rec = _Recorder(body={"name": "Ann"})
    client = _client(rec, token="tok")
    result = client.write("users/1", {"name": "Ann"})
    request = rec.last
    assert str(request.url) == "https://example.com/db/users/1.json?auth=tok"
    assert request.method == "PUT"
    assert request.content == b'{"name":"Ann"}'
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Content-Length"] == "15"
    assert request.headers["X-Firebase-Decoding"] == "1"
    assert result.json() == {"name": "Ann"}


def test_non_ascii_header_values_are_sent_as_utf8() -> None:
    rec = _Recorder()
    client = _client(rec)
    for call in (
        lambda: client.read("x", {}, {"X-Name": "Zoë"}),
        lambda: client.write("x", 1, {}, {"X-Name": "Zoë"}),
        lambda: client.remove("x", {}, {"X-Name": "Zoë"}),
    ):
        assert call().ok
    for request in rec.requests:
        assert dict(request.headers.raw)[b"X-Name"] == "Zoë".encode("utf-8")


def test_invalid_url_is_a_typed_failure() -> None:
    rec = _Recorder()
    client = _client(rec)
    result = client.read("a\x00b")
    assert result.failed
    assert isinstance(result.error, NetworkError)
    assert rec.requests == []
    assert client.read("ok").ok


def test_none_options_are_dropped() -> None:
    rec = _Recorder()
    client = _client(rec, token="tok")
    client.read("x", {"orderBy": None, "auth": None, "limitToFirst": 2})
    assert "orderBy" not in rec.last.url.params
    assert rec.last.url.params["auth"] == "tok"
    assert rec.last.url.params["limitToFirst"] == "2"
