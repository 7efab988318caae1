"""Read release state from the cluster and apply installs/upgrades through helm."""

from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Protocol

import yaml

from chartops.config.settings import Settings
from chartops.core.chart_loader import unpack_chart
from chartops.core.helm_decoder import decode_secret, revision_from_labels
from chartops.core.k8s_client import K8sClient
from chartops.errors import ApplyFailed, ReleaseNotFound, ReleaseRevisionNotFound
from chartops.models.chart import ChartArchive
from chartops.models.release import HelmRelease, ReleaseStatus

logger = logging.getLogger(__name__)


class ReleaseStore(Protocol):
    def get_latest(self, name: str, namespace: str) -> HelmRelease: ...

    def run_install(
        self, name: str, namespace: str, archive: ChartArchive, values: dict[str, Any],
    ) -> HelmRelease: ...

    def run_upgrade(
        self, name: str, namespace: str, archive: ChartArchive, values: dict[str, Any],
    ) -> HelmRelease: ...


class HelmReleaseStore:
    """ReleaseStore reading Helm's release Secrets and shelling out to ``helm``.

    Revision numbering and concurrent-upgrade protection are left to helm,
    which refuses to upgrade a release with an operation already pending.
    """

    def __init__(self, k8s: K8sClient, settings: Settings):
        self.k8s = k8s
        self.settings = settings

    def get_latest(self, name: str, namespace: str) -> HelmRelease:
        """Return the highest revision of ``name``.

        Raises ReleaseNotFound when no revision is stored at all and
        ReleaseRevisionNotFound when none of them was ever deployed.
        """
        objects = self.k8s.list_helm_secrets(namespace=namespace or None, release_name=name)
        if not objects:
            raise ReleaseNotFound(name, namespace)

        revisions: list[HelmRelease] = []
        for obj in sorted(objects, key=revision_from_labels):
            release = decode_secret(obj)
            if release:
                revisions.append(release)
        revisions.sort(key=lambda r: r.version)

        if not any(r.status in (ReleaseStatus.DEPLOYED, ReleaseStatus.SUPERSEDED) for r in revisions):
            raise ReleaseRevisionNotFound(name, namespace)
        return revisions[-1]

    def run_install(
        self, name: str, namespace: str, archive: ChartArchive, values: dict[str, Any],
    ) -> HelmRelease:
        return self._apply("install", name, namespace, archive, values)

    def run_upgrade(
        self, name: str, namespace: str, archive: ChartArchive, values: dict[str, Any],
    ) -> HelmRelease:
        return self._apply("upgrade", name, namespace, archive, values)

    def _apply(
        self,
        action: str,
        name: str,
        namespace: str,
        archive: ChartArchive,
        values: dict[str, Any],
    ) -> HelmRelease:
        with tempfile.TemporaryDirectory(prefix=f"chartops-{action}-") as workdir:
            chart_dir = unpack_chart(archive, Path(workdir) / (archive.name or "chart"))
            values_file = Path(workdir) / "values-override.yaml"
            values_file.write_text(yaml.safe_dump(values or {}, default_flow_style=False), encoding="utf-8")
            args = [action, name, str(chart_dir), "-f", str(values_file), "-o", "json"]
            if namespace:
                args += ["--namespace", namespace]
            result = self._helm(args)

        if result.returncode != 0:
            raise ApplyFailed(action, name, result.stderr.strip()[:500])
        try:
            return HelmRelease.from_dict(json.loads(result.stdout))
        except (ValueError, AttributeError) as e:
            raise ApplyFailed(action, name, f"unreadable helm output: {e}") from e

    def _helm(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = [self.settings.helm_bin] + args
        logger.info("helm> %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=300)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ApplyFailed(args[0], args[1], str(e)) from e
        if result.stderr:
            logger.debug("helm stderr: %s", result.stderr[:800])
        return result
