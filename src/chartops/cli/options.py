"""Shared CLI options and helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
import yaml

OutputOption = typer.Option("table", "--output", "-o", help="Output format: table, json, yaml")
NamespaceOption = typer.Option("", "--namespace", "-n", help="Kubernetes namespace")
ContextOption = typer.Option(None, "--context", help="Kubernetes context name")
ValuesOption = typer.Option(None, "--values", "-f", help="YAML file with values overrides")
CleanupOption = typer.Option(
    None, "--cleanup/--keep-files", help="Remove staged TLS files afterwards (default: HELM_CLEANUP)",
)


def load_values(path: Optional[Path]) -> dict[str, Any]:
    if path is None:
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        typer.echo(f"Cannot read values file {path}: {e}", err=True)
        raise typer.Exit(code=2)
    if data is None:
        return {}
    if not isinstance(data, dict):
        typer.echo(f"Values file {path} must contain a mapping.", err=True)
        raise typer.Exit(code=2)
    return data
