"""Rich panels for chart and release output."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from chartops.models.chart import ChartArchive
from chartops.models.release import HelmRelease, ReleaseStatus

_STATUS_STYLES = {
    ReleaseStatus.DEPLOYED: "green",
    ReleaseStatus.FAILED: "red bold",
    ReleaseStatus.SUPERSEDED: "dim",
    ReleaseStatus.UNKNOWN: "red",
}


def _status_text(status: ReleaseStatus) -> str:
    # pending-* and uninstall states share one style
    style = _STATUS_STYLES.get(status, "yellow")
    return f"[{style}]{status.value}[/{style}]"


def chart_info_panel(chart: ChartArchive) -> Panel:
    meta = chart.metadata
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Chart", meta.name)
    table.add_row("Version", meta.version)
    table.add_row("App Version", meta.app_version or "-")
    table.add_row("Description", meta.description or "-")
    if meta.home:
        table.add_row("Home", meta.home)
    if meta.dependencies:
        deps = ", ".join(f"{d.name}@{d.version}" for d in meta.dependencies)
        table.add_row("Dependencies", deps)
    table.add_row("Files", str(len(chart.files)))
    table.add_row("Digest", chart.digest or "-")

    return Panel(table, title=f"[bold]Chart: {meta.name}[/bold]", border_style="blue")


def release_info_panel(release: HelmRelease) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Release", release.name)
    table.add_row("Namespace", release.namespace)
    table.add_row("Status", _status_text(release.status))
    table.add_row("Revision", str(release.version))
    table.add_row("Chart", f"{release.chart_name}-{release.chart_version}")
    table.add_row("Chart URL", release.chart_url or "-")
    if release.info.description:
        table.add_row("Description", release.info.description)

    return Panel(table, title=f"[bold]Release: {release.name}[/bold]", border_style="green")
