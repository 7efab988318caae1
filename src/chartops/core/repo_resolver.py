"""Map a chart archive URL to the repository that serves it."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests
import yaml

from chartops.core.materializer import CredentialMaterializer
from chartops.core.repo_index import IndexFetcher
from chartops.core.repository_store import RepositoryStore
from chartops.errors import ChartOpsError, RepositoryNotFound
from chartops.models import RepositoryScope
from chartops.models.credentials import CredentialBundle
from chartops.models.repo import RepositoryRecord
from chartops.utils.tempfiles import EphemeralFiles

logger = logging.getLogger(__name__)

Matcher = Callable[[str, list[RepositoryRecord], Optional[EphemeralFiles]], Optional[RepositoryRecord]]


class RepoResolver:
    """Resolve repositories through an ordered chain of URL matchers.

    An explicit repository name short-circuits URL matching. Otherwise the
    matchers run in order (prefix, then full index scan) over the
    repositories visible from the namespace, project-scoped ones first.
    """

    def __init__(
        self,
        store: RepositoryStore,
        index_fetcher: IndexFetcher,
        materializer: CredentialMaterializer | None = None,
    ):
        self.store = store
        self.index_fetcher = index_fetcher
        self.materializer = materializer
        self.matchers: list[tuple[str, Matcher]] = [
            ("prefix", self._match_prefix),
            ("index", self._match_index),
        ]

    def resolve(
        self,
        url: str,
        namespace: str,
        repo_name: str = "",
        repo_namespace: str = "",
        files: EphemeralFiles | None = None,
    ) -> RepositoryRecord:
        if repo_name:
            return self.get_by_name(repo_name, repo_namespace or namespace)

        repos = self._candidates(namespace)
        for strategy, matcher in self.matchers:
            repo = matcher(url, repos, files)
            if repo is not None:
                logger.debug(
                    "Resolved %s to %s repository %s/%s by %s match",
                    url, repo.scope.value, repo.namespace, repo.name, strategy,
                )
                return repo
        raise RepositoryNotFound(url=url)

    def get_by_name(self, name: str, namespace: str) -> RepositoryRecord:
        """Project-scoped lookup by name+namespace, falling back to cluster scope."""
        repo = None
        if namespace:
            repo = self.store.get(RepositoryScope.PROJECT, namespace, name)
        if repo is None:
            repo = self.store.get(RepositoryScope.CLUSTER, "", name)
        if repo is None:
            raise RepositoryNotFound(name=name, namespace=namespace)
        return repo

    def _candidates(self, namespace: str) -> list[RepositoryRecord]:
        repos = [r for r in self.store.list(namespace) if not r.disabled]
        # Stable sort keeps enumeration order within each scope.
        return sorted(repos, key=lambda r: r.scope != RepositoryScope.PROJECT)

    @staticmethod
    def _match_prefix(
        url: str, repos: list[RepositoryRecord], files: EphemeralFiles | None,
    ) -> RepositoryRecord | None:
        for repo in repos:
            prefix = repo.match_prefix
            if prefix and url.startswith(prefix):
                return repo
        return None

    def _match_index(
        self, url: str, repos: list[RepositoryRecord], files: EphemeralFiles | None,
    ) -> RepositoryRecord | None:
        for repo in repos:
            if not repo.base_url:
                continue
            try:
                bundle = self._index_credentials(repo, files)
                entries = self.index_fetcher.fetch(repo, bundle)
            except (requests.RequestException, yaml.YAMLError, ValueError, ChartOpsError):
                logger.debug("Skipping index of repository %s", repo.name, exc_info=True)
                continue
            for entry in entries:
                if url in entry.urls:
                    return repo
        return None

    def _index_credentials(self, repo: RepositoryRecord, files: EphemeralFiles | None) -> CredentialBundle:
        if not repo.connection.needs_credentials or self.materializer is None or files is None:
            return CredentialBundle()
        return self.materializer.materialize(repo.connection, files)
