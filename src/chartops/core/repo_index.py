"""Fetch and parse a chart repository's index.yaml."""

from __future__ import annotations

import logging
from typing import Any, Protocol
from urllib.parse import urljoin

import requests
import yaml

from chartops.config.settings import Settings
from chartops.models.credentials import CredentialBundle
from chartops.models.repo import IndexEntry, RepositoryRecord

logger = logging.getLogger(__name__)

# Prefer the C-accelerated YAML loader when available (~10x faster).
_YamlLoader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)


class IndexFetcher(Protocol):
    def fetch(self, repo: RepositoryRecord, bundle: CredentialBundle) -> list[IndexEntry]: ...


def tls_request_kwargs(bundle: CredentialBundle | None) -> dict[str, Any]:
    """Build ``requests`` keyword arguments for a staged credential bundle."""
    kwargs: dict[str, Any] = {}
    if bundle is None:
        return kwargs
    if bundle.client_cert is not None:
        kwargs["cert"] = bundle.client_cert
    if bundle.ca_file is not None:
        kwargs["verify"] = str(bundle.ca_file)
    return kwargs


def resolve_entry_url(base_url: str, url: str) -> str:
    """Index URLs may be relative to the repository base URL."""
    if "://" in url:
        return url
    return urljoin(base_url.rstrip("/") + "/", url)


def parse_index(text: str, base_url: str) -> list[IndexEntry]:
    """Parse index.yaml content into flat entries with absolute download URLs.

    Raises ValueError when ``entries`` is not a mapping. Chart versions or
    ``urls`` of the wrong shape are skipped.
    """
    data = yaml.load(text, Loader=_YamlLoader)
    if not data or not isinstance(data, dict):
        return []
    charts = data.get("entries") or {}
    if not isinstance(charts, dict):
        raise ValueError(f"index entries must be a mapping, got {type(charts).__name__}")
    entries: list[IndexEntry] = []
    for chart_name, versions in charts.items():
        if not isinstance(versions, list):
            continue
        for e in versions:
            if not isinstance(e, dict) or not isinstance(e.get("urls") or [], list):
                continue
            entries.append(IndexEntry(
                name=e.get("name", chart_name),
                version=str(e.get("version", "")),
                urls=tuple(
                    resolve_entry_url(base_url, u) for u in e.get("urls") or [] if isinstance(u, str)
                ),
                digest=e.get("digest", ""),
            ))
    return entries


class HttpIndexFetcher:
    """Download ``<baseURL>/index.yaml`` using the repository's TLS material."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def fetch(self, repo: RepositoryRecord, bundle: CredentialBundle) -> list[IndexEntry]:
        index_url = repo.base_url.rstrip("/") + "/index.yaml"
        logger.debug("Fetching index %s for repository %s", index_url, repo.name)
        resp = self.session.get(
            index_url,
            timeout=self.settings.request_timeout,
            **tls_request_kwargs(bundle),
        )
        resp.raise_for_status()
        return parse_index(resp.text, repo.base_url)
