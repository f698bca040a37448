from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import typer

from firebase_client import ApiError, ConfigurationError, FirebaseResponse, SerializationError

from .. import console
from ..config import load_config
from ..http import make_client

PROFILE_OPT = typer.Option(None, "--profile", help="Settings profile to use.")
BASE_URL_OPT = typer.Option(None, "--base-url", help="Override database URL.")
TOKEN_OPT = typer.Option(None, "--token", help="Override auth token.")
QUERY_OPT = typer.Option(None, "--query", "-q", help="Query option KEY=VALUE (repeatable).")
HEADER_OPT = typer.Option(None, "--header", "-H", help="Request header KEY=VALUE (repeatable).")
RAW_OPT = typer.Option(False, "--raw", help="Print the response body verbatim.")
SHOW_HEADERS_OPT = typer.Option(False, "--show-headers", help="Print response headers before the body.")
FILE_OPT = typer.Option(None, "--file", "-f", help="Read JSON payload from file.")


def _parse_pairs(values: list[str] | None, *, what: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            console.err(f"Invalid {what} '{item}', expected KEY=VALUE.")
            raise typer.Exit(code=2)
        out[key] = value
    return out


def _load_payload(data: str | None, file: Path | None) -> Any:
    if file is not None:
        try:
            text = file.read_text(encoding="utf-8")
        except OSError as e:
            console.err(f"Cannot read {file}: {e}")
            raise typer.Exit(code=2)
    elif data == "-":
        text = sys.stdin.read()
    elif data is not None:
        text = data
    else:
        console.err("Provide DATA, '-' for stdin, or --file.")
        raise typer.Exit(code=2)
    try:
        return json.loads(text)
    except ValueError as e:
        console.err(f"Payload is not valid JSON: {e}")
        raise typer.Exit(code=2)


def _render(result: FirebaseResponse, *, raw: bool, show_headers: bool) -> None:
    if result.failed:
        console.err(f"Request failed: {result.error}")
        raise typer.Exit(code=1)
    if show_headers:
        console.print_raw(result.headers.rstrip("\r\n"))
        console.print_raw("")
    try:
        result.raise_for_error()
    except ApiError as e:
        console.err(f"HTTP {e.status_code}: {e}")
        raise typer.Exit(code=1)
    body = result.body or ""
    if raw or not body:
        console.print_raw(body)
        return
    try:
        console.print_json(result.json())
    except ValueError:
        console.print_raw(body)


def _run(
        op: str,
        path: str,
        *,
        payload: Any = None,
        profile: str | None,
        base_url: str | None,
        token: str | None,
        query: list[str] | None,
        header: list[str] | None,
        raw: bool,
        show_headers: bool,
) -> None:
    options = _parse_pairs(query, what="query option")
    headers = _parse_pairs(header, what="header")
    try:
        client = make_client(load_config(), profile=profile, base_url_override=base_url, token_override=token)
    except ConfigurationError:
        console.err("Database URL is not configured. Run `fbrest settings set --base-url ...` first.")
        raise typer.Exit(code=2)
    try:
        if op in ("read", "remove"):
            result = getattr(client, op)(path, options, headers)
        else:
            result = getattr(client, op)(path, payload, options, headers)
    except SerializationError as e:
        console.err(str(e))
        raise typer.Exit(code=2)
    finally:
        client.close()
    _render(result, raw=raw, show_headers=show_headers)


def get_value(
        path: str = typer.Argument(..., help="Node path, e.g. users/1"),
        profile: str | None = PROFILE_OPT,
        base_url: str | None = BASE_URL_OPT,
        token: str | None = TOKEN_OPT,
        query: list[str] | None = QUERY_OPT,
        header: list[str] | None = HEADER_OPT,
        raw: bool = RAW_OPT,
        show_headers: bool = SHOW_HEADERS_OPT,
):
    """Read the document at PATH."""
    _run("read", path, profile=profile, base_url=base_url, token=token, query=query, header=header,
         raw=raw, show_headers=show_headers)


def set_value(
        path: str = typer.Argument(..., help="Node path, e.g. users/1"),
        data: str | None = typer.Argument(None, help="JSON payload, or '-' for stdin."),
        file: Path | None = FILE_OPT,
        profile: str | None = PROFILE_OPT,
        base_url: str | None = BASE_URL_OPT,
        token: str | None = TOKEN_OPT,
        query: list[str] | None = QUERY_OPT,
        header: list[str] | None = HEADER_OPT,
        raw: bool = RAW_OPT,
        show_headers: bool = SHOW_HEADERS_OPT,
):
    """Overwrite the document at PATH."""
    _run("write", path, payload=_load_payload(data, file), profile=profile, base_url=base_url, token=token,
         query=query, header=header, raw=raw, show_headers=show_headers)


def push_value(
        path: str = typer.Argument(..., help="Parent node path, e.g. messages"),
        data: str | None = typer.Argument(None, help="JSON payload, or '-' for stdin."),
        file: Path | None = FILE_OPT,
        profile: str | None = PROFILE_OPT,
        base_url: str | None = BASE_URL_OPT,
        token: str | None = TOKEN_OPT,
        query: list[str] | None = QUERY_OPT,
        header: list[str] | None = HEADER_OPT,
        raw: bool = RAW_OPT,
        show_headers: bool = SHOW_HEADERS_OPT,
):
    """Append a child with a generated key under PATH."""
    _run("append", path, payload=_load_payload(data, file), profile=profile, base_url=base_url, token=token,
         query=query, header=header, raw=raw, show_headers=show_headers)


def update_value(
        path: str = typer.Argument(..., help="Node path, e.g. users/1"),
        data: str | None = typer.Argument(None, help="JSON object to merge, or '-' for stdin."),
        file: Path | None = FILE_OPT,
        profile: str | None = PROFILE_OPT,
        base_url: str | None = BASE_URL_OPT,
        token: str | None = TOKEN_OPT,
        query: list[str] | None = QUERY_OPT,
        header: list[str] | None = HEADER_OPT,
        raw: bool = RAW_OPT,
        show_headers: bool = SHOW_HEADERS_OPT,
):
    """Merge fields into the document at PATH."""
    _run("patch", path, payload=_load_payload(data, file), profile=profile, base_url=base_url, token=token,
         query=query, header=header, raw=raw, show_headers=show_headers)


def delete_value(
        path: str = typer.Argument(..., help="Node path, e.g. users/1"),
        yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
        profile: str | None = PROFILE_OPT,
        base_url: str | None = BASE_URL_OPT,
        token: str | None = TOKEN_OPT,
        query: list[str] | None = QUERY_OPT,
        header: list[str] | None = HEADER_OPT,
        raw: bool = RAW_OPT,
        show_headers: bool = SHOW_HEADERS_OPT,
):
    """Delete the document at PATH."""
    if not yes and not typer.confirm(f"Delete '{path}'?", default=False):
        console.info("Aborted.")
        raise typer.Exit(code=0)
    _run("remove", path, profile=profile, base_url=base_url, token=token, query=query, header=header,
         raw=raw, show_headers=show_headers)
