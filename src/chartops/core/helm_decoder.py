"""Decode Helm v3 release data from Kubernetes Secrets."""

from __future__ import annotations

import base64
import gzip
import json
import logging
from typing import Any

from chartops.models.release import HelmRelease

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"


def decode_release_payload(raw: bytes) -> dict:
    """base64 -> gzip -> json, as written by Helm's secret driver.

    The Python client returns Secret data still base64-encoded, so a second
    base64 layer is peeled off when the first decode is not gzip yet.
    """
    data = base64.b64decode(raw)
    if not data.startswith(_GZIP_MAGIC):
        data = base64.b64decode(data)
    return json.loads(gzip.decompress(data))


def decode_secret(secret: Any) -> HelmRelease | None:
    """Decode a release Secret; undecodable Secrets yield None."""
    data = secret.data or {}
    raw = data.get("release")
    if not raw:
        return None
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    try:
        release = HelmRelease.from_dict(decode_release_payload(raw))
    except (ValueError, AttributeError, OSError, EOFError):
        logger.debug("Failed to decode secret %s", _safe_name(secret), exc_info=True)
        return None
    if not release.namespace and secret.metadata:
        release.namespace = secret.metadata.namespace or ""
    return release


def revision_from_labels(obj: Any) -> int:
    """Read the revision number from Helm's ``version`` label."""
    labels = {}
    if obj.metadata and obj.metadata.labels:
        labels = obj.metadata.labels
    try:
        return int(labels.get("version", "0"))
    except ValueError:
        return 0


def _safe_name(obj: Any) -> str:
    if obj.metadata:
        return obj.metadata.name or "<unknown>"
    return "<unknown>"
