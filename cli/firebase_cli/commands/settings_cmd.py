from __future__ import annotations

import os

import typer

from .. import console
from ..config import config_path, default_config, load_config, normalize_base_url, save_config

app = typer.Typer(help="Manage local settings (~/.config/firebase-rest/config.toml).")


@app.command("init")
def init_settings(
        force: bool = typer.Option(False, "--force", help="Overwrite existing config."),
        base_url: str = typer.Option(
            ...,
            "--base-url",
            prompt="Database URL",
            help="Database URL like https://my-app.firebaseio.com",
        ),
        token: str = typer.Option("", "--token", help="Database secret or ID token."),
):
    path = config_path()
    if os.path.exists(path) and not force:
        console.info(f"Config already exists: {path}")
        console.info("Use --force to overwrite.")
        return

    cfg = default_config()
    cfg.base_url = normalize_base_url(base_url, warn=True)
    if not cfg.base_url:
        console.err("Database URL cannot be empty.")
        raise typer.Exit(code=2)
    cfg.auth.token = token.strip()
    saved = save_config(cfg)
    console.ok(f"Config written: {saved}")


@app.command("show")
def show_settings():
    cfg = load_config()
    token_state = "(set)" if (cfg.auth.token or "").strip() else "(empty)"
    console.console.print(
        f"base_url={cfg.base_url or '(unset)'} token={token_state} timeout_s={cfg.timeout_s:g} "
        f"verify_tls={str(cfg.verify_tls).lower()}",
        markup=False,
    )
    for name, prof in sorted(cfg.profiles.items()):
        console.console.print(
            f"profile {name}: base_url={prof.base_url or '-'} token={'(set)' if prof.token else '-'}",
            markup=False,
        )


@app.command("get")
def get_setting(
        key: str = typer.Argument(..., help="Setting key (base_url, timeout_s, verify_tls)."),
):
    cfg = load_config()
    k = key.strip().lower()
    if k == "base_url":
        console.console.print(cfg.base_url, markup=False)
        return
    if k == "timeout_s":
        console.console.print(f"{cfg.timeout_s:g}")
        return
    if k == "verify_tls":
        console.console.print(str(cfg.verify_tls).lower())
        return
    console.err(f"Unknown setting: {key}")
    raise typer.Exit(code=2)


def _parse_switch(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"on", "true", "yes", "1"}:
        return True
    if lowered in {"off", "false", "no", "0"}:
        return False
    console.err(f"Expected on or off, got '{value}'.")
    raise typer.Exit(code=2)


@app.command("set")
def set_setting(
        base_url: str | None = typer.Option(None, "--base-url", help="Set database URL."),
        token: str | None = typer.Option(None, "--token", help="Set auth token ('' clears it)."),
        timeout_s: float | None = typer.Option(None, "--timeout", help="Set request timeout in seconds."),
        verify_tls: str | None = typer.Option(None, "--verify-tls", help="TLS certificate checks: on or off."),
):
    cfg = load_config()
    if base_url is not None:
        cfg.base_url = normalize_base_url(base_url, warn=True)
    if token is not None:
        cfg.auth.token = token.strip()
    if timeout_s is not None:
        if timeout_s <= 0:
            console.err("Timeout must be positive.")
            raise typer.Exit(code=2)
        cfg.timeout_s = float(timeout_s)
    if verify_tls is not None:
        cfg.verify_tls = _parse_switch(verify_tls)
    saved = save_config(cfg)
    console.ok(f"Settings updated: {saved}")
