"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import json
from typing import Any

import yaml
from rich.console import Console

from chartops.models.chart import ChartArchive
from chartops.models.release import HelmRelease

console = Console()


def _chart_to_dict(c: ChartArchive) -> dict[str, Any]:
    return {
        "name": c.name,
        "version": c.version,
        "app_version": c.metadata.app_version,
        "description": c.metadata.description,
        "dependencies": [d.name for d in c.metadata.dependencies],
        "digest": c.digest,
    }


def _release_to_dict(r: HelmRelease) -> dict[str, Any]:
    return {
        "name": r.name,
        "namespace": r.namespace,
        "status": r.status.value,
        "revision": r.version,
        "chart": r.chart_name,
        "chart_version": r.chart_version,
        "chart_url": r.chart_url,
    }


def _emit(data: dict[str, Any], fmt: str) -> bool:
    if fmt == "json":
        console.print_json(json.dumps(data, indent=2))
        return True
    if fmt == "yaml":
        console.print(yaml.dump(data, default_flow_style=False))
        return True
    return False


def output_chart(chart: ChartArchive, fmt: str) -> None:
    if not _emit(_chart_to_dict(chart), fmt):
        from chartops.output.tables import chart_info_panel
        console.print(chart_info_panel(chart))


def output_release(release: HelmRelease, fmt: str) -> None:
    if not _emit(_release_to_dict(release), fmt):
        from chartops.output.tables import release_info_panel
        console.print(release_info_panel(release))
