from __future__ import annotations

import typer

from .commands import data_cmd, settings_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="fbrest",
        help="Read and write a Firebase Realtime Database over REST.",
        no_args_is_help=True,
    )

    app.add_typer(settings_cmd.app, name="settings")
    app.command("get")(data_cmd.get_value)
    app.command("set")(data_cmd.set_value)
    app.command("push")(data_cmd.push_value)
    app.command("update")(data_cmd.update_value)
    app.command("delete")(data_cmd.delete_value)

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()
