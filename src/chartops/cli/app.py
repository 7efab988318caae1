"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

app = typer.Typer(
    name="chartops",
    help="chartops - Install and upgrade charts from cluster-registered Helm repositories.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
    )


# Options may follow the positional arguments (chartops get URL -n ns).
_SUBCOMMAND_CONTEXT = {"allow_interspersed_args": True}


def _register_commands() -> None:
    from chartops.cli.commands.get_cmd import app as get_app
    from chartops.cli.commands.install_cmd import app as install_app
    from chartops.cli.commands.upgrade_cmd import app as upgrade_app

    app.add_typer(
        get_app, name="get", help="Download and inspect a chart by archive URL",
        context_settings=_SUBCOMMAND_CONTEXT,
    )
    app.add_typer(
        install_app, name="install", help="Install a chart as a new release",
        context_settings=_SUBCOMMAND_CONTEXT,
    )
    app.add_typer(
        upgrade_app, name="upgrade", help="Upgrade an existing release",
        context_settings=_SUBCOMMAND_CONTEXT,
    )


_register_commands()


def main() -> None:
    app()
