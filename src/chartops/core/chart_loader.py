"""Locate chart archives in a repository and load them into memory."""

from __future__ import annotations

import hashlib
import io
import logging
import tarfile
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import urlparse

import requests
import yaml
from packaging.version import InvalidVersion, Version

from chartops.config.settings import Settings
from chartops.core.repo_index import parse_index, tls_request_kwargs
from chartops.errors import ChartNotFound, DependencyCheckFailed, PackageLoadFailed, PackageLocateFailed
from chartops.models.chart import ChartArchive, ChartMetadata
from chartops.models.credentials import CredentialBundle
from chartops.models.repo import IndexEntry

logger = logging.getLogger(__name__)


class PackageLoader(Protocol):
    def locate(
        self, name_or_url: str, version: str, repo_url: str, bundle: CredentialBundle,
    ) -> Path: ...

    def load(self, path: Path) -> ChartArchive: ...


class HelmChartLoader:
    """Download charts over HTTP(S) into the local chart cache and read them.

    ``locate`` accepts a full archive URL, a local archive path, or a chart
    name looked up in ``<repo_url>/index.yaml``.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def locate(
        self, name_or_url: str, version: str, repo_url: str, bundle: CredentialBundle,
    ) -> Path:
        if "://" in name_or_url:
            return self._download(name_or_url, name_or_url, version, bundle)

        local = Path(name_or_url)
        if local.is_file():
            return local
        if not repo_url:
            raise ChartNotFound(name_or_url, version)

        archive_url = self._find_in_index(name_or_url, version, repo_url, bundle)
        return self._download(archive_url, name_or_url, version, bundle)

    def _find_in_index(
        self, name: str, version: str, repo_url: str, bundle: CredentialBundle,
    ) -> str:
        index_url = repo_url.rstrip("/") + "/index.yaml"
        try:
            resp = self._get(index_url, bundle)
            entries = parse_index(resp.text, repo_url)
        except requests.HTTPError as e:
            raise PackageLocateFailed(name, f"index {index_url}: {e}") from e
        except (requests.RequestException, yaml.YAMLError, ValueError) as e:
            raise PackageLocateFailed(name, str(e)) from e

        candidates = [e for e in entries if e.name == name and e.urls]
        if version:
            candidates = [e for e in candidates if e.version == version]
        if not candidates:
            raise ChartNotFound(name, version)
        return max(candidates, key=_version_key).urls[0]

    def _get(self, url: str, bundle: CredentialBundle) -> requests.Response:
        resp = self.session.get(
            url,
            timeout=self.settings.request_timeout,
            **tls_request_kwargs(bundle),
        )
        resp.raise_for_status()
        return resp

    def _download(self, url: str, name: str, version: str, bundle: CredentialBundle) -> Path:
        try:
            resp = self._get(url, bundle)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                raise ChartNotFound(name, version) from e
            raise PackageLocateFailed(name, str(e)) from e
        except requests.RequestException as e:
            raise PackageLocateFailed(name, str(e)) from e

        filename = PurePosixPath(urlparse(url).path).name or "chart.tgz"
        dest = self.settings.chart_cache_dir / filename
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(resp.content)
        except OSError as e:
            raise PackageLocateFailed(name, f"cannot cache {dest}: {e}") from e
        logger.debug("Cached %s at %s", url, dest)
        return dest

    def load(self, path: Path) -> ChartArchive:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise PackageLoadFailed(str(path), str(e)) from e
        return load_archive_bytes(data, source=str(path))


def _version_key(entry: IndexEntry) -> tuple[int, Version]:
    """Sort key ranking unparseable versions below every valid one."""
    try:
        return (1, Version(entry.version.removeprefix("v")))
    except InvalidVersion:
        return (0, Version("0"))


def load_archive_bytes(data: bytes, source: str = "<memory>") -> ChartArchive:
    """Read a gzipped chart tarball into a ChartArchive."""
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            raw_files: dict[str, bytes] = {}
            for member in tar.getmembers():
                if not member.isfile():
                    continue
                parts = PurePosixPath(member.name).parts
                if len(parts) < 2 or ".." in parts or PurePosixPath(member.name).is_absolute():
                    continue
                fh = tar.extractfile(member)
                if fh is not None:
                    raw_files["/".join(parts[1:])] = fh.read()
    except (tarfile.TarError, OSError, EOFError) as e:
        raise PackageLoadFailed(source, str(e)) from e

    archive = _archive_from_files(raw_files, source)
    archive.digest = hashlib.sha256(data).hexdigest()
    return archive


def _archive_from_files(files: dict[str, bytes], source: str) -> ChartArchive:
    if "Chart.yaml" not in files:
        raise PackageLoadFailed(source, "Chart.yaml file is missing")
    try:
        meta = yaml.safe_load(files["Chart.yaml"]) or {}
        values = yaml.safe_load(files["values.yaml"]) if "values.yaml" in files else {}
    except yaml.YAMLError as e:
        raise PackageLoadFailed(source, str(e)) from e
    if not isinstance(meta, dict):
        raise PackageLoadFailed(source, "Chart.yaml is not a mapping")

    archive = ChartArchive(
        metadata=ChartMetadata.from_dict(meta),
        values=values or {},
        files=files,
    )
    if not archive.metadata.name:
        raise PackageLoadFailed(source, "chart name is missing in Chart.yaml")

    # Subcharts: packaged (charts/x.tgz) or unpacked (charts/x/Chart.yaml)
    subdirs: dict[str, dict[str, bytes]] = {}
    for name, content in files.items():
        parts = PurePosixPath(name).parts
        if len(parts) == 2 and parts[0] == "charts" and parts[1].endswith(".tgz"):
            archive.dependencies.append(load_archive_bytes(content, source=f"{source}:{name}"))
        elif len(parts) > 2 and parts[0] == "charts":
            subdirs.setdefault(parts[1], {})["/".join(parts[2:])] = content
    for sub, sub_files in sorted(subdirs.items()):
        archive.dependencies.append(_archive_from_files(sub_files, f"{source}:charts/{sub}"))
    return archive


def check_dependencies(archive: ChartArchive) -> None:
    """Fail when Chart.yaml declares dependencies that are not bundled under charts/."""
    bundled = {dep.name for dep in archive.dependencies}
    missing = [d.name for d in archive.metadata.dependencies if d.name not in bundled]
    if missing:
        raise DependencyCheckFailed(archive.name, missing)


def unpack_chart(archive: ChartArchive, dest: Path) -> Path:
    """Write a chart to ``dest`` as a directory helm can install from.

    Chart.yaml is re-rendered from the in-memory metadata so annotation
    changes are carried into the release.
    """
    dest.mkdir(parents=True, exist_ok=True)
    for name, content in archive.files.items():
        target = dest / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    (dest / "Chart.yaml").write_text(
        yaml.safe_dump(archive.metadata.to_dict(), default_flow_style=False), encoding="utf-8",
    )
    if "values.yaml" not in archive.files:
        (dest / "values.yaml").write_text(
            yaml.safe_dump(archive.values or {}, default_flow_style=False), encoding="utf-8",
        )
    return dest
