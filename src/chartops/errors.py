"""Error taxonomy for repository resolution, credential staging and release operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chartops.models.credentials import StagedFile


class ChartOpsError(Exception):
    """Base class for every error raised by chartops.

    ``state`` is filled in by the orchestrator with the operation state that
    was active when the error surfaced (e.g. ``"resolving"``).
    """

    state: str = ""


class RepositoryNotFound(ChartOpsError):
    def __init__(self, url: str = "", name: str = "", namespace: str = ""):
        self.url = url
        self.name = name
        self.namespace = namespace
        if name:
            target = f"repository '{name}'" + (f" in namespace '{namespace}'" if namespace else "")
        else:
            target = f"repository for chart url {url}"
        super().__init__(f"Chart Not Found: no {target}")


class RepositoryListFailed(ChartOpsError):
    def __init__(self, namespace: str, reason: str = ""):
        self.namespace = namespace
        self.reason = reason
        super().__init__(
            f"Error in finding the chart repositories for namespace '{namespace or '<cluster>'}'"
            + (f": {reason}" if reason else "")
        )


class CredentialObjectNotFound(ChartOpsError):
    def __init__(self, kind: str, name: str, namespace: str, reason: str = ""):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.reason = reason
        super().__init__(
            f"Failed to GET {kind} {name} from {namespace}"
            + (f", reason: {reason}" if reason else "")
        )


class CredentialKeyMissing(ChartOpsError):
    def __init__(self, key: str, object_name: str, kind: str = "secret"):
        self.key = key
        self.object_name = object_name
        self.kind = kind
        super().__init__(f"Failed to find {key} key in {kind} {object_name}")


class EphemeralWriteFailed(ChartOpsError):
    """``staged`` is set when the file was created but the write failed."""

    staged: StagedFile | None = None

    def __init__(self, pattern: str, reason: str = ""):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Failed to write temporary file {pattern}: {reason}")


class PackageLocateFailed(ChartOpsError):
    def __init__(self, chart: str, reason: str = ""):
        self.chart = chart
        self.reason = reason
        super().__init__(f"Failed to locate chart {chart}: {reason}")


class ChartNotFound(PackageLocateFailed):
    """The repository answered but does not publish the requested chart."""

    def __init__(self, chart: str, version: str = ""):
        self.version = version
        super().__init__(chart, "Chart Not Found")


class PackageLoadFailed(ChartOpsError):
    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load chart from {path}: {reason}")


class ReleaseNotFound(ChartOpsError):
    def __init__(self, name: str = "", namespace: str = ""):
        self.name = name
        self.namespace = namespace
        super().__init__("release: not found")


class ReleaseRevisionNotFound(ChartOpsError):
    def __init__(self, name: str = "", namespace: str = ""):
        self.name = name
        self.namespace = namespace
        super().__init__("revision for the release not found")


class DependencyCheckFailed(ChartOpsError):
    def __init__(self, chart: str, missing: list[str]):
        self.chart = chart
        self.missing = missing
        super().__init__(
            f"found in Chart.yaml, but missing in charts/ directory: {', '.join(missing)}"
        )


class ApplyFailed(ChartOpsError):
    def __init__(self, action: str, release: str, reason: str = ""):
        self.action = action
        self.release = release
        self.reason = reason
        super().__init__(f"{action} of release '{release}' failed: {reason}")
