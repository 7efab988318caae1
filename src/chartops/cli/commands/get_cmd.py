"""chartops get <url> - Download and inspect a chart."""

from __future__ import annotations

from typing import Optional

import typer

from chartops.cli.options import CleanupOption, ContextOption, NamespaceOption, OutputOption
from chartops.config.settings import settings
from chartops.core.orchestrator import build_orchestrator
from chartops.errors import ChartOpsError
from chartops.output.formatters import output_chart

app = typer.Typer()


@app.callback(invoke_without_command=True)
def get(
    url: str = typer.Argument(help="Chart archive URL"),
    output: str = OutputOption,
    namespace: str = NamespaceOption,
    context: Optional[str] = ContextOption,
    repo: str = typer.Option("", "--repo", help="Repository name (skips URL matching)"),
    repo_namespace: str = typer.Option("", "--repo-namespace", help="Namespace of a project repository"),
    cleanup: Optional[bool] = CleanupOption,
) -> None:
    """Resolve the repository serving URL and load the chart."""
    orchestrator = build_orchestrator(settings, context=context)
    try:
        chart = orchestrator.get_chart(
            url, namespace, repo_name=repo, repo_namespace=repo_namespace, files_cleanup=cleanup,
        )
    except ChartOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    output_chart(chart, output)
