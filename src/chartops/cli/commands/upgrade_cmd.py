"""chartops upgrade <release> [url] - Upgrade a release."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from chartops.cli.options import (
    CleanupOption, ContextOption, NamespaceOption, OutputOption, ValuesOption, load_values,
)
from chartops.config.settings import settings
from chartops.core.orchestrator import build_orchestrator
from chartops.errors import ChartOpsError, ReleaseNotFound, ReleaseRevisionNotFound
from chartops.output.formatters import output_release

app = typer.Typer()


@app.callback(invoke_without_command=True)
def upgrade(
    release: str = typer.Argument(help="Release name"),
    url: str = typer.Argument("", help="Chart archive URL (default: the URL recorded at install)"),
    output: str = OutputOption,
    namespace: str = NamespaceOption,
    context: Optional[str] = ContextOption,
    repo: str = typer.Option("", "--repo", help="Repository name (skips URL matching)"),
    values: Optional[Path] = ValuesOption,
    cleanup: Optional[bool] = CleanupOption,
) -> None:
    """Upgrade a release, reusing its recorded chart URL when none is given."""
    orchestrator = build_orchestrator(settings, context=context)
    try:
        rel = orchestrator.upgrade_release(
            namespace, release, url, values=load_values(values), repo_name=repo, files_cleanup=cleanup,
        )
    except ReleaseNotFound:
        typer.echo(f"Release '{release}' not found. Install it first.", err=True)
        raise typer.Exit(code=1)
    except ReleaseRevisionNotFound:
        typer.echo(
            f"Release '{release}' has no deployed revision. "
            "Consider rollback or uninstall before upgrading.",
            err=True,
        )
        raise typer.Exit(code=1)
    except ChartOpsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    output_release(rel, output)
