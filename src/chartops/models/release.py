"""Helm release models."""

from __future__ import annotations

import base64
import enum
from dataclasses import dataclass, field
from typing import Any

from chartops.models.chart import ChartArchive, ChartMetadata


class ReleaseStatus(enum.Enum):
    DEPLOYED = "deployed"
    FAILED = "failed"
    SUPERSEDED = "superseded"
    PENDING_INSTALL = "pending-install"
    PENDING_UPGRADE = "pending-upgrade"
    PENDING_ROLLBACK = "pending-rollback"
    UNINSTALLING = "uninstalling"
    UNINSTALLED = "uninstalled"
    UNKNOWN = "unknown"

    @classmethod
    def from_str(cls, s: str) -> ReleaseStatus:
        for member in cls:
            if member.value == s:
                return member
        return cls.UNKNOWN


@dataclass
class ReleaseInfo:
    first_deployed: str = ""
    last_deployed: str = ""
    status: ReleaseStatus = ReleaseStatus.UNKNOWN
    description: str = ""
    notes: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ReleaseInfo:
        if not d:
            return cls()
        return cls(
            first_deployed=d.get("first_deployed", ""),
            last_deployed=d.get("last_deployed", ""),
            status=ReleaseStatus.from_str(d.get("status", "unknown")),
            description=d.get("description", ""),
            notes=d.get("notes", ""),
        )


def _chart_from_release(chart_raw: dict[str, Any]) -> ChartArchive:
    """Rebuild the chart stored inside a release payload."""
    files: dict[str, bytes] = {}
    for section in ("templates", "files"):
        for item in chart_raw.get(section) or []:
            name = item.get("name", "")
            if name:
                files[name] = base64.b64decode(item.get("data", "") or "")
    return ChartArchive(
        metadata=ChartMetadata.from_dict(chart_raw.get("metadata", {})),
        values=chart_raw.get("values") or {},
        files=files,
    )


@dataclass
class HelmRelease:
    name: str = ""
    namespace: str = ""
    version: int = 0
    info: ReleaseInfo = field(default_factory=ReleaseInfo)
    archive: ChartArchive = field(default_factory=ChartArchive)
    config: dict = field(default_factory=dict)
    manifest: str = ""

    @property
    def chart(self) -> ChartMetadata:
        return self.archive.metadata

    @property
    def chart_name(self) -> str:
        return self.chart.name

    @property
    def chart_version(self) -> str:
        return self.chart.version

    @property
    def chart_url(self) -> str:
        return self.chart.chart_url

    @property
    def status(self) -> ReleaseStatus:
        return self.info.status

    @classmethod
    def from_dict(cls, d: dict) -> HelmRelease:
        return cls(
            name=d.get("name", ""),
            namespace=d.get("namespace", ""),
            version=d.get("version", 0),
            info=ReleaseInfo.from_dict(d.get("info", {})),
            archive=_chart_from_release(d.get("chart", {}) or {}),
            config=d.get("config", {}) or {},
            manifest=d.get("manifest", ""),
        )
