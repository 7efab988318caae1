"""Chart repository models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chartops.models import RepositoryScope


@dataclass(frozen=True)
class TLSClientConfig:
    secret_name: str
    secret_namespace: str = ""

    @classmethod
    def from_dict(cls, d: dict | None) -> TLSClientConfig | None:
        if not d or not d.get("name"):
            return None
        return cls(secret_name=d["name"], secret_namespace=d.get("namespace", "") or "")


@dataclass(frozen=True)
class CAConfig:
    config_map_name: str

    @classmethod
    def from_dict(cls, d: dict | None) -> CAConfig | None:
        if not d or not d.get("name"):
            return None
        return cls(config_map_name=d["name"])


@dataclass(frozen=True)
class ConnectionConfig:
    base_url: str = ""
    tls_client_config: TLSClientConfig | None = None
    ca_config: CAConfig | None = None

    @property
    def needs_credentials(self) -> bool:
        return self.tls_client_config is not None or self.ca_config is not None

    @classmethod
    def from_dict(cls, d: dict | None) -> ConnectionConfig:
        if not d:
            return cls()
        return cls(
            base_url=d.get("url", "") or "",
            tls_client_config=TLSClientConfig.from_dict(d.get("tlsClientConfig")),
            ca_config=CAConfig.from_dict(d.get("ca")),
        )


@dataclass(frozen=True)
class RepositoryRecord:
    """Snapshot of a HelmChartRepository / ProjectHelmChartRepository resource."""

    name: str
    namespace: str = ""
    scope: RepositoryScope = RepositoryScope.CLUSTER
    display_name: str = ""
    disabled: bool = False
    url_prefix_override: str = ""
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)

    @property
    def base_url(self) -> str:
        return self.connection.base_url

    @property
    def match_prefix(self) -> str:
        return self.url_prefix_override or self.base_url

    @classmethod
    def from_dict(
        cls,
        d: dict[str, Any],
        scope: RepositoryScope,
        prefix_annotation: str = "helm.openshift.io/url-prefix",
    ) -> RepositoryRecord:
        metadata = d.get("metadata", {}) or {}
        spec = d.get("spec", {}) or {}
        annotations = metadata.get("annotations", {}) or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "") if scope == RepositoryScope.PROJECT else "",
            scope=scope,
            display_name=spec.get("name", ""),
            disabled=bool(spec.get("disabled", False)),
            url_prefix_override=annotations.get(prefix_annotation, ""),
            connection=ConnectionConfig.from_dict(spec.get("connectionConfig")),
        )


@dataclass(frozen=True)
class IndexEntry:
    """One published chart version from a repository's index.yaml."""

    name: str
    version: str
    urls: tuple[str, ...] = ()
    digest: str = ""
