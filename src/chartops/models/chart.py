"""Chart metadata and archive models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CHART_URL_ANNOTATION = "chart_url"


@dataclass
class Maintainer:
    name: str = ""
    email: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Maintainer:
        return cls(
            name=d.get("name", ""),
            email=d.get("email", ""),
            url=d.get("url", ""),
        )


@dataclass
class ChartDependency:
    name: str = ""
    version: str = ""
    repository: str = ""
    condition: str = ""
    alias: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ChartDependency:
        return cls(
            name=d.get("name", ""),
            version=d.get("version", ""),
            repository=d.get("repository", ""),
            condition=d.get("condition", ""),
            alias=d.get("alias", ""),
        )


@dataclass
class ChartMetadata:
    name: str = ""
    version: str = ""
    app_version: str = ""
    description: str = ""
    api_version: str = ""
    chart_type: str = ""
    home: str = ""
    keywords: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    maintainers: list[Maintainer] = field(default_factory=list)
    dependencies: list[ChartDependency] = field(default_factory=list)
    annotations: dict[str, str] | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def chart_url(self) -> str:
        return (self.annotations or {}).get(CHART_URL_ANNOTATION, "")

    def stamp_chart_url(self, url: str) -> None:
        """Record the archive URL the chart was installed from."""
        if self.annotations is None:
            self.annotations = {}
        self.annotations[CHART_URL_ANNOTATION] = url

    def to_dict(self) -> dict[str, Any]:
        """Render back to Chart.yaml form, keeping fields this model does not track."""
        d = dict(self.raw)
        d["name"] = self.name
        d["version"] = self.version
        if self.api_version:
            d["apiVersion"] = self.api_version
        if self.annotations is not None:
            d["annotations"] = dict(self.annotations)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> ChartMetadata:
        if not d:
            return cls()
        return cls(
            name=d.get("name", ""),
            version=str(d.get("version", "")),
            app_version=str(d.get("appVersion", "")),
            description=d.get("description", ""),
            api_version=d.get("apiVersion", ""),
            chart_type=d.get("type", ""),
            home=d.get("home", ""),
            keywords=d.get("keywords", []) or [],
            sources=d.get("sources", []) or [],
            maintainers=[Maintainer.from_dict(m) for m in d.get("maintainers", []) or []],
            dependencies=[ChartDependency.from_dict(dep) for dep in d.get("dependencies", []) or []],
            annotations=d.get("annotations"),
            raw=dict(d),
        )


@dataclass(frozen=True)
class ChartInfo:
    name: str
    version: str = ""


@dataclass
class ChartArchive:
    """A loaded chart package."""

    metadata: ChartMetadata = field(default_factory=ChartMetadata)
    values: dict[str, Any] = field(default_factory=dict)
    files: dict[str, bytes] = field(default_factory=dict, repr=False)
    dependencies: list[ChartArchive] = field(default_factory=list)
    digest: str = ""

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version
