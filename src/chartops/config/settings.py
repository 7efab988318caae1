"""Application configuration and defaults."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path


def _default_helm_cache_dir() -> Path:
    """Return the default Helm repository cache directory for the current platform.

    Checks HELM_REPOSITORY_CACHE and HELM_CACHE_HOME env vars first,
    matching helm's own resolution order.
    """
    repo_cache = os.environ.get("HELM_REPOSITORY_CACHE", "")
    if repo_cache:
        return Path(repo_cache)
    cache_home = os.environ.get("HELM_CACHE_HOME", "")
    if cache_home:
        return Path(cache_home) / "repository"
    system = platform.system()
    if system == "Windows":
        # Helm on Windows uses %TEMP%\helm as default cache home
        temp = os.environ.get("TEMP", "")
        if temp:
            candidate = Path(temp) / "helm" / "repository"
            if candidate.exists():
                return candidate
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "helm" / "repository"
        return Path.home() / "AppData" / "Roaming" / "helm" / "repository"
    # Linux / macOS
    xdg = os.environ.get("XDG_CACHE_HOME", "")
    if xdg:
        return Path(xdg) / "helm" / "repository"
    return Path.home() / ".cache" / "helm" / "repository"


def _default_files_cleanup() -> bool:
    """HELM_CLEANUP=0 keeps staged TLS files on disk for inspection."""
    return os.environ.get("HELM_CLEANUP", "") != "0"


def _default_config_namespace() -> str:
    return os.environ.get("CHARTOPS_CONFIG_NAMESPACE", "") or "openshift-config"


def _default_temp_dir() -> Path | None:
    temp = os.environ.get("CHARTOPS_TEMP_DIR", "")
    return Path(temp) if temp else None


@dataclass
class Settings:
    helm_cache_dir: Path = field(default_factory=_default_helm_cache_dir)
    helm_bin: str = field(default_factory=lambda: os.environ.get("HELM_BIN", "") or "helm")
    config_namespace: str = field(default_factory=_default_config_namespace)
    files_cleanup: bool = field(default_factory=_default_files_cleanup)
    temp_dir: Path | None = field(default_factory=_default_temp_dir)
    request_timeout: int = 30
    helm_label_selector: str = "owner=helm"
    secret_type: str = "helm.sh/release.v1"
    repository_group: str = "helm.openshift.io"
    repository_version: str = "v1beta1"
    url_prefix_annotation: str = "helm.openshift.io/url-prefix"

    @property
    def chart_cache_dir(self) -> Path:
        return self.helm_cache_dir / "charts"


# Process-wide default; core components take a Settings argument explicitly.
settings = Settings()
