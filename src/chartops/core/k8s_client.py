"""Kubernetes API wrapper."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config
from kubernetes.client import ApiException

from chartops.config.settings import Settings, settings as default_settings


class K8sClient:
    """Thin wrapper around the Kubernetes Python client."""

    def __init__(self, context: str | None = None, settings: Settings | None = None):
        self.context = context
        self.settings = settings or default_settings
        self._core_v1: client.CoreV1Api | None = None
        self._custom: client.CustomObjectsApi | None = None
        self._api_client: client.ApiClient | None = None

    def _load_config(self) -> client.ApiClient:
        if self._api_client is not None:
            return self._api_client
        try:
            cfg = client.Configuration()
            config.load_kube_config(
                context=self.context,
                client_configuration=cfg,
            )
            # Prevent indefinite hangs on unreachable clusters
            cfg.retries = 1
            if not cfg.connection_pool_maxsize:
                cfg.connection_pool_maxsize = 4
            self._api_client = client.ApiClient(configuration=cfg)
        except config.ConfigException:
            config.load_incluster_config()
            self._api_client = client.ApiClient()
        return self._api_client

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(api_client=self._load_config())
        return self._core_v1

    @property
    def custom(self) -> client.CustomObjectsApi:
        if self._custom is None:
            self._custom = client.CustomObjectsApi(api_client=self._load_config())
        return self._custom

    def read_secret(self, name: str, namespace: str) -> Any | None:
        """Return the V1Secret or None when it does not exist."""
        try:
            return self.core_v1.read_namespaced_secret(
                name=name, namespace=namespace, _request_timeout=self.settings.request_timeout,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def read_config_map(self, name: str, namespace: str) -> Any | None:
        """Return the V1ConfigMap or None when it does not exist."""
        try:
            return self.core_v1.read_namespaced_config_map(
                name=name, namespace=namespace, _request_timeout=self.settings.request_timeout,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def list_helm_secrets(
        self, namespace: str | None = None, release_name: str | None = None,
    ) -> list[Any]:
        """List Helm release secrets, optionally filtered by namespace and release name."""
        label = self.settings.helm_label_selector
        if release_name:
            label += f",name={release_name}"
        if namespace:
            result = self.core_v1.list_namespaced_secret(
                namespace=namespace,
                label_selector=label,
                field_selector=f"type={self.settings.secret_type}",
                _request_timeout=self.settings.request_timeout,
            )
        else:
            result = self.core_v1.list_secret_for_all_namespaces(
                label_selector=label,
                field_selector=f"type={self.settings.secret_type}",
                _request_timeout=self.settings.request_timeout,
            )
        return result.items

    def get_custom_resource(
        self,
        group: str,
        version: str,
        plural: str,
        name: str,
        namespace: str | None = None,
    ) -> dict | None:
        """Get a namespaced (or cluster-scoped when namespace is None) custom object."""
        try:
            if namespace:
                return self.custom.get_namespaced_custom_object(
                    group=group, version=version, namespace=namespace, plural=plural, name=name,
                )
            return self.custom.get_cluster_custom_object(
                group=group, version=version, plural=plural, name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def list_custom_resources(
        self,
        group: str,
        version: str,
        plural: str,
        namespace: str | None = None,
    ) -> list[dict]:
        """List custom objects; a missing CRD (404) yields an empty list."""
        try:
            if namespace:
                result = self.custom.list_namespaced_custom_object(
                    group=group, version=version, namespace=namespace, plural=plural,
                )
            else:
                result = self.custom.list_cluster_custom_object(
                    group=group, version=version, plural=plural,
                )
            return result.get("items", [])
        except ApiException as e:
            if e.status == 404:
                return []
            raise
