"""Get, install and upgrade charts from cluster-registered repositories."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from chartops.config.settings import Settings
from chartops.core.chart_loader import PackageLoader, check_dependencies
from chartops.core.materializer import CredentialMaterializer
from chartops.core.release_store import ReleaseStore
from chartops.core.repo_resolver import RepoResolver
from chartops.errors import ApplyFailed, ChartOpsError
from chartops.models import OperationState
from chartops.models.chart import ChartArchive
from chartops.models.release import HelmRelease
from chartops.utils.tempfiles import EphemeralFiles, parse_chart_info

logger = logging.getLogger(__name__)

ChartHook = Callable[[str, str], None]
DependencyCheck = Callable[[ChartArchive], None]


def log_chart_event(event: str) -> ChartHook:
    """Default metrics hook: record the event in the log only."""
    def hook(name: str, version: str) -> None:
        logger.info("chart %s: %s %s", event, name, version)
    return hook


class _Operation:
    """Tracks the state an operation has reached, for logging and error context."""

    def __init__(self, action: str, target: str):
        self.action = action
        self.target = target
        self.state = OperationState.RESOLVING

    def advance(self, state: OperationState) -> None:
        logger.debug("%s %s: %s -> %s", self.action, self.target, self.state.value, state.value)
        self.state = state


class PackageOrchestrator:
    """Compose repository resolution, credential staging, chart loading and release apply.

    Every staged credential file lives in an ``EphemeralFiles`` scope that
    closes after the apply step, on success and on failure alike.
    """

    def __init__(
        self,
        resolver: RepoResolver,
        materializer: CredentialMaterializer,
        loader: PackageLoader,
        releases: ReleaseStore,
        settings: Settings,
        dependency_check: DependencyCheck = check_dependencies,
        on_installed: ChartHook | None = None,
        on_upgraded: ChartHook | None = None,
    ):
        self.resolver = resolver
        self.materializer = materializer
        self.loader = loader
        self.releases = releases
        self.settings = settings
        self.dependency_check = dependency_check
        self.on_installed = on_installed or log_chart_event("installed")
        self.on_upgraded = on_upgraded or log_chart_event("upgraded")

    def _files(self, files_cleanup: bool | None) -> EphemeralFiles:
        requested = True if files_cleanup is None else files_cleanup
        # HELM_CLEANUP=0 overrides every caller.
        return EphemeralFiles(
            cleanup=requested and self.settings.files_cleanup,
            directory=self.settings.temp_dir,
        )

    @contextmanager
    def _track(self, action: str, target: str) -> Iterator[_Operation]:
        op = _Operation(action, target)
        try:
            yield op
        except ChartOpsError as e:
            e.state = op.state.value
            logger.debug("%s %s failed while %s: %s", action, target, op.state.value, e)
            op.advance(OperationState.FAILED)
            raise
        op.advance(OperationState.DONE)

    def _fetch(
        self,
        op: _Operation,
        url: str,
        namespace: str,
        files: EphemeralFiles,
        repo_name: str = "",
        repo_namespace: str = "",
    ) -> ChartArchive:
        op.advance(OperationState.RESOLVING)
        repo = self.resolver.resolve(url, namespace, repo_name, repo_namespace, files=files)

        op.advance(OperationState.AUTHENTICATING)
        bundle = self.materializer.materialize(repo.connection, files)

        op.advance(OperationState.LOCATING)
        info = parse_chart_info(url)
        path = self.loader.locate(url, info.version, repo.base_url, bundle)

        op.advance(OperationState.LOADING)
        return self.loader.load(path)

    def get_chart(
        self,
        url: str,
        namespace: str,
        repo_name: str = "",
        repo_namespace: str = "",
        files_cleanup: bool | None = None,
    ) -> ChartArchive:
        """Resolve, authenticate, download and load the chart at ``url``."""
        with self._files(files_cleanup) as files, self._track("get", url) as op:
            return self._fetch(op, url, namespace, files, repo_name, repo_namespace)

    def install_chart(
        self,
        namespace: str,
        release_name: str,
        url: str,
        values: dict[str, Any] | None = None,
        files_cleanup: bool | None = None,
    ) -> HelmRelease:
        """Install the chart at ``url`` as ``release_name``, recording the URL on the chart."""
        with self._files(files_cleanup) as files, self._track("install", release_name) as op:
            archive = self._fetch(op, url, namespace, files)
            archive.metadata.stamp_chart_url(url)

            op.advance(OperationState.APPLYING)
            release = self.releases.run_install(release_name, namespace, archive, values or {})
            self._notify(self.on_installed, archive)
            return release

    def upgrade_release(
        self,
        namespace: str,
        release_name: str,
        url: str = "",
        values: dict[str, Any] | None = None,
        repo_name: str = "",
        files_cleanup: bool | None = None,
    ) -> HelmRelease:
        """Upgrade ``release_name``.

        Without ``url`` the ``chart_url`` annotation of the current release is
        used; without either, the current chart is re-applied with new values.
        """
        with self._files(files_cleanup) as files, self._track("upgrade", release_name) as op:
            current = self.releases.get_latest(release_name, namespace)

            if not url:
                url = current.chart_url
            if url:
                archive = self._fetch(op, url, namespace, files, repo_name, namespace if repo_name else "")
                # Stored releases do not keep subcharts, so only fresh archives are checked.
                if archive.metadata.dependencies:
                    self.dependency_check(archive)
                archive.metadata.stamp_chart_url(url)
            else:
                logger.debug("No chart url for release %s, reusing its current chart", release_name)
                archive = current.archive

            op.advance(OperationState.APPLYING)
            release = self.releases.run_upgrade(release_name, namespace, archive, values or {})
            if release.version != current.version + 1:
                raise ApplyFailed(
                    "upgrade", release_name,
                    f"expected revision {current.version + 1}, store returned {release.version}",
                )
            self._notify(self.on_upgraded, archive)
            return release

    @staticmethod
    def _notify(hook: ChartHook, archive: ChartArchive) -> None:
        if not archive.name or not archive.version:
            return
        try:
            hook(archive.name, archive.version)
        except Exception:
            logger.warning("Chart event hook failed for %s", archive.name, exc_info=True)


def build_orchestrator(settings: Settings, context: str | None = None) -> PackageOrchestrator:
    """Wire the cluster-backed collaborators for one kube context."""
    from chartops.core.chart_loader import HelmChartLoader
    from chartops.core.credential_store import KubeCredentialStore
    from chartops.core.k8s_client import K8sClient
    from chartops.core.release_store import HelmReleaseStore
    from chartops.core.repo_index import HttpIndexFetcher
    from chartops.core.repository_store import KubeRepositoryStore

    k8s = K8sClient(context=context, settings=settings)
    materializer = CredentialMaterializer(KubeCredentialStore(k8s), settings)
    resolver = RepoResolver(
        KubeRepositoryStore(k8s, settings),
        HttpIndexFetcher(settings),
        materializer,
    )
    return PackageOrchestrator(
        resolver=resolver,
        materializer=materializer,
        loader=HelmChartLoader(settings),
        releases=HelmReleaseStore(k8s, settings),
        settings=settings,
    )
