"""chartops install <release> <url> - Install a chart."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from chartops.cli.options import (
    CleanupOption, ContextOption, NamespaceOption, OutputOption, ValuesOption, load_values,
)
from chartops.config.settings import settings
from chartops.core.orchestrator import build_orchestrator
from chartops.errors import ChartOpsError
from chartops.output.formatters import output_release

app = typer.Typer()


@app.callback(invoke_without_command=True)
def install(
    release: str = typer.Argument(help="Release name"),
    url: str = typer.Argument(help="Chart archive URL"),
    output: str = OutputOption,
    namespace: str = NamespaceOption,
    context: Optional[str] = ContextOption,
    values: Optional[Path] = ValuesOption,
    cleanup: Optional[bool] = CleanupOption,
) -> None:
    """Install the chart at URL as a new release."""
    orchestrator = build_orchestrator(settings, context=context)
    try:
        rel = orchestrator.install_chart(
            namespace, release, url, values=load_values(values), files_cleanup=cleanup,
        )
    except ChartOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    output_release(rel, output)
