"""Shared fakes and fixtures."""

from __future__ import annotations

import copy
import io
import tarfile
from pathlib import Path
from typing import Any

import pytest
import requests
import yaml

from chartops.config.settings import Settings
from chartops.core.materializer import CredentialMaterializer
from chartops.core.orchestrator import PackageOrchestrator
from chartops.core.chart_loader import HelmChartLoader
from chartops.core.repo_resolver import RepoResolver
from chartops.errors import CredentialObjectNotFound, ReleaseNotFound, ReleaseRevisionNotFound
from chartops.models import RepositoryScope
from chartops.models.chart import ChartArchive
from chartops.models.release import HelmRelease, ReleaseInfo, ReleaseStatus
from chartops.models.repo import IndexEntry, RepositoryRecord


def make_chart_tgz(
    name: str,
    version: str,
    values: dict | None = None,
    dependencies: list[dict] | None = None,
    subcharts: dict[str, bytes] | None = None,
    include_chart_yaml: bool = True,
) -> bytes:
    """Build a gzipped chart tarball in memory."""
    meta: dict[str, Any] = {"apiVersion": "v2", "name": name, "version": version}
    if dependencies:
        meta["dependencies"] = dependencies
    files: dict[str, bytes] = {
        "values.yaml": yaml.safe_dump(values or {"replicaCount": 1}).encode(),
        "templates/configmap.yaml": b"apiVersion: v1\nkind: ConfigMap\n",
    }
    if include_chart_yaml:
        files["Chart.yaml"] = yaml.safe_dump(meta).encode()
    for sub_name, sub_bytes in (subcharts or {}).items():
        files[f"charts/{sub_name}"] = sub_bytes

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, content in sorted(files.items()):
            info = tarfile.TarInfo(f"{name}/{rel}")
            info.size = len(content)
            info.mtime = 0
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


class FakeResponse:
    def __init__(self, url: str, status_code: int = 200, content: bytes = b""):
        self.url = url
        self.status_code = status_code
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for url {self.url}", response=self)


class FakeSession:
    """Serves canned bodies by URL and records every request."""

    def __init__(self, routes: dict[str, bytes] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, dict]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))
        if url not in self.routes:
            return FakeResponse(url, 404)
        return FakeResponse(url, 200, self.routes[url])


class FakeRepositoryStore:
    def __init__(self, records: list[RepositoryRecord], fail_list: bool = False):
        self.records = records
        self.fail_list = fail_list
        self.list_calls = 0

    def get(self, scope: RepositoryScope, namespace: str, name: str) -> RepositoryRecord | None:
        for r in self.records:
            if r.scope == scope and r.name == name and (scope == RepositoryScope.CLUSTER or r.namespace == namespace):
                return r
        return None

    def list(self, namespace: str) -> list[RepositoryRecord]:
        from chartops.errors import RepositoryListFailed

        self.list_calls += 1
        if self.fail_list:
            raise RepositoryListFailed(namespace, "forbidden")
        return [
            r for r in self.records
            if r.scope == RepositoryScope.CLUSTER or r.namespace == namespace
        ]


class FakeCredentialStore:
    def __init__(
        self,
        secrets: dict[tuple[str, str], dict[str, bytes]] | None = None,
        config_maps: dict[tuple[str, str], dict[str, str]] | None = None,
    ):
        self.secrets = secrets or {}
        self.config_maps = config_maps or {}

    def get_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        if (namespace, name) not in self.secrets:
            raise CredentialObjectNotFound("secret", name, namespace, "not found")
        return dict(self.secrets[(namespace, name)])

    def get_config_map(self, namespace: str, name: str) -> dict[str, str]:
        if (namespace, name) not in self.config_maps:
            raise CredentialObjectNotFound("configmap", name, namespace, "not found")
        return dict(self.config_maps[(namespace, name)])


class FakeIndexFetcher:
    def __init__(self, entries: dict[str, list[IndexEntry]] | None = None, failing: set[str] | None = None):
        self.entries = entries or {}
        self.failing = failing or set()
        self.bundles: dict[str, Any] = {}

    def fetch(self, repo: RepositoryRecord, bundle) -> list[IndexEntry]:
        self.bundles[repo.name] = bundle
        if repo.name in self.failing:
            raise requests.ConnectionError(f"cannot reach {repo.base_url}")
        return self.entries.get(repo.name, [])


class InMemoryReleaseStore:
    """Release store keeping every revision in memory, numbered like helm."""

    def __init__(self):
        self.releases: dict[str, list[HelmRelease]] = {}

    def add(self, release: HelmRelease) -> None:
        self.releases.setdefault(release.name, []).append(release)

    def get_latest(self, name: str, namespace: str) -> HelmRelease:
        revisions = self.releases.get(name)
        if not revisions:
            raise ReleaseNotFound(name, namespace)
        if not any(r.status in (ReleaseStatus.DEPLOYED, ReleaseStatus.SUPERSEDED) for r in revisions):
            raise ReleaseRevisionNotFound(name, namespace)
        return max(revisions, key=lambda r: r.version)

    def run_install(self, name: str, namespace: str, archive: ChartArchive, values: dict) -> HelmRelease:
        release = HelmRelease(
            name=name,
            namespace=namespace,
            version=1,
            info=ReleaseInfo(status=ReleaseStatus.DEPLOYED),
            archive=copy.deepcopy(archive),
            config=dict(values),
        )
        self.add(release)
        return release

    def run_upgrade(self, name: str, namespace: str, archive: ChartArchive, values: dict) -> HelmRelease:
        prior = self.get_latest(name, namespace)
        prior.info.status = ReleaseStatus.SUPERSEDED
        release = HelmRelease(
            name=name,
            namespace=namespace,
            version=prior.version + 1,
            info=ReleaseInfo(status=ReleaseStatus.DEPLOYED),
            archive=copy.deepcopy(archive),
            config=dict(values),
        )
        self.add(release)
        return release


def repo(
    name: str,
    url: str,
    namespace: str = "",
    tls_secret: str = "",
    tls_namespace: str = "",
    ca: str = "",
    prefix: str = "",
    disabled: bool = False,
) -> RepositoryRecord:
    """Build a RepositoryRecord the way the cluster store would."""
    scope = RepositoryScope.PROJECT if namespace else RepositoryScope.CLUSTER
    conn: dict[str, Any] = {"url": url}
    if tls_secret:
        conn["tlsClientConfig"] = {"name": tls_secret}
        if tls_namespace:
            conn["tlsClientConfig"]["namespace"] = tls_namespace
    if ca:
        conn["ca"] = {"name": ca}
    obj: dict[str, Any] = {
        "metadata": {"name": name},
        "spec": {"connectionConfig": conn, "disabled": disabled},
    }
    if namespace:
        obj["metadata"]["namespace"] = namespace
    if prefix:
        obj["metadata"]["annotations"] = {"helm.openshift.io/url-prefix": prefix}
    return RepositoryRecord.from_dict(obj, scope)


TLS_SECRET = {"tls.crt": b"-----CERT-----\n", "tls.key": b"-----KEY-----\n"}
CA_CONFIG_MAP = {"ca-bundle.crt": "-----CA-----\n"}


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    staged = tmp_path / "staged"
    staged.mkdir()
    return Settings(
        helm_cache_dir=tmp_path / "cache",
        config_namespace="openshift-config",
        files_cleanup=True,
        temp_dir=staged,
    )


@pytest.fixture
def credentials() -> FakeCredentialStore:
    return FakeCredentialStore(
        secrets={
            ("openshift-config", "my-repo"): TLS_SECRET,
            ("test", "my-repo"): TLS_SECRET,
        },
        config_maps={("openshift-config", "my-repo"): CA_CONFIG_MAP},
    )


@pytest.fixture
def materializer(credentials: FakeCredentialStore, settings: Settings) -> CredentialMaterializer:
    return CredentialMaterializer(credentials, settings)


@pytest.fixture
def chart_server() -> FakeSession:
    """A chart museum on localhost:8080 without TLS and one on 8443 with TLS."""
    mariadb = make_chart_tgz("mariadb", "7.3.5")
    influx_old = make_chart_tgz("influxdb", "3.0.1")
    influx = make_chart_tgz("influxdb", "3.0.2")
    mychart = make_chart_tgz("mychart", "0.1.0")
    index = {
        "apiVersion": "v1",
        "entries": {
            "mariadb": [{"name": "mariadb", "version": "7.3.5", "urls": ["charts/mariadb-7.3.5.tgz"]}],
            "influxdb": [
                {"name": "influxdb", "version": "3.0.1", "urls": ["charts/influxdb-3.0.1.tgz"]},
                {"name": "influxdb", "version": "3.0.2", "urls": ["charts/influxdb-3.0.2.tgz"]},
            ],
        },
    }
    return FakeSession({
        "http://localhost:8080/index.yaml": yaml.safe_dump(index).encode(),
        "http://localhost:8080/charts/mariadb-7.3.5.tgz": mariadb,
        "http://localhost:8080/charts/influxdb-3.0.1.tgz": influx_old,
        "http://localhost:8080/charts/influxdb-3.0.2.tgz": influx,
        "https://localhost:8443/charts/mychart-0.1.0.tgz": mychart,
        "https://localhost:8443/charts/mariadb-7.3.5.tgz": mariadb,
    })


@pytest.fixture
def releases() -> InMemoryReleaseStore:
    return InMemoryReleaseStore()


def build(
    settings: Settings,
    records: list[RepositoryRecord],
    credentials: FakeCredentialStore,
    session: FakeSession,
    releases: InMemoryReleaseStore,
    index: FakeIndexFetcher | None = None,
    **kwargs: Any,
) -> PackageOrchestrator:
    materializer = CredentialMaterializer(credentials, settings)
    resolver = RepoResolver(FakeRepositoryStore(records), index or FakeIndexFetcher(), materializer)
    return PackageOrchestrator(
        resolver=resolver,
        materializer=materializer,
        loader=HelmChartLoader(settings, session=session),
        releases=releases,
        settings=settings,
        **kwargs,
    )
