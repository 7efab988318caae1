"""Lookup of HelmChartRepository and ProjectHelmChartRepository resources."""

from __future__ import annotations

import logging
from typing import Protocol

from kubernetes.client import ApiException

from chartops.config.settings import Settings
from chartops.core.k8s_client import K8sClient
from chartops.errors import RepositoryListFailed
from chartops.models import RepositoryScope
from chartops.models.repo import RepositoryRecord

logger = logging.getLogger(__name__)

CLUSTER_PLURAL = "helmchartrepositories"
PROJECT_PLURAL = "projecthelmchartrepositories"


class RepositoryStore(Protocol):
    def get(self, scope: RepositoryScope, namespace: str, name: str) -> RepositoryRecord | None: ...

    def list(self, namespace: str) -> list[RepositoryRecord]: ...


class KubeRepositoryStore:
    """RepositoryStore reading the helm.openshift.io custom resources.

    Nothing is cached: every call goes back to the API server.
    """

    def __init__(self, k8s: K8sClient, settings: Settings):
        self.k8s = k8s
        self.settings = settings

    def _plural(self, scope: RepositoryScope) -> str:
        return PROJECT_PLURAL if scope == RepositoryScope.PROJECT else CLUSTER_PLURAL

    def get(self, scope: RepositoryScope, namespace: str, name: str) -> RepositoryRecord | None:
        if scope == RepositoryScope.PROJECT and not namespace:
            return None
        try:
            obj = self.k8s.get_custom_resource(
                group=self.settings.repository_group,
                version=self.settings.repository_version,
                plural=self._plural(scope),
                name=name,
                namespace=namespace if scope == RepositoryScope.PROJECT else None,
            )
        except ApiException as e:
            raise RepositoryListFailed(namespace, e.reason or str(e)) from e
        if obj is None:
            return None
        return RepositoryRecord.from_dict(obj, scope, self.settings.url_prefix_annotation)

    def list(self, namespace: str) -> list[RepositoryRecord]:
        """Project-scoped repositories of ``namespace`` followed by cluster-scoped ones."""
        records: list[RepositoryRecord] = []
        try:
            if namespace:
                for obj in self.k8s.list_custom_resources(
                    group=self.settings.repository_group,
                    version=self.settings.repository_version,
                    plural=PROJECT_PLURAL,
                    namespace=namespace,
                ):
                    records.append(RepositoryRecord.from_dict(
                        obj, RepositoryScope.PROJECT, self.settings.url_prefix_annotation,
                    ))
            for obj in self.k8s.list_custom_resources(
                group=self.settings.repository_group,
                version=self.settings.repository_version,
                plural=CLUSTER_PLURAL,
            ):
                records.append(RepositoryRecord.from_dict(
                    obj, RepositoryScope.CLUSTER, self.settings.url_prefix_annotation,
                ))
        except ApiException as e:
            raise RepositoryListFailed(namespace, e.reason or str(e)) from e
        return records
