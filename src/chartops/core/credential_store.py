"""Read access to Secrets and ConfigMaps that hold repository credentials."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Protocol

from kubernetes.client import ApiException

from chartops.core.k8s_client import K8sClient
from chartops.errors import CredentialObjectNotFound

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get_secret(self, namespace: str, name: str) -> dict[str, bytes]: ...

    def get_config_map(self, namespace: str, name: str) -> dict[str, str]: ...


class KubeCredentialStore:
    """CredentialStore backed by the core/v1 API."""

    def __init__(self, k8s: K8sClient):
        self.k8s = k8s

    def get_secret(self, namespace: str, name: str) -> dict[str, bytes]:
        try:
            secret = self.k8s.read_secret(name, namespace)
        except ApiException as e:
            raise CredentialObjectNotFound("secret", name, namespace, e.reason or str(e)) from e
        if secret is None:
            raise CredentialObjectNotFound("secret", name, namespace, "not found")
        # The Python client leaves Secret data base64-encoded.
        try:
            return {k: base64.b64decode(v, validate=True) for k, v in (secret.data or {}).items()}
        except binascii.Error as e:
            raise CredentialObjectNotFound("secret", name, namespace, f"undecodable data: {e}") from e

    def get_config_map(self, namespace: str, name: str) -> dict[str, str]:
        try:
            cm = self.k8s.read_config_map(name, namespace)
        except ApiException as e:
            raise CredentialObjectNotFound("configmap", name, namespace, e.reason or str(e)) from e
        if cm is None:
            raise CredentialObjectNotFound("configmap", name, namespace, "not found")
        return dict(cm.data or {})
