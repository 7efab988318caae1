import base64
from types import SimpleNamespace

import pytest
from kubernetes.client import ApiException

from chartops.core.credential_store import KubeCredentialStore
from chartops.core.repository_store import CLUSTER_PLURAL, PROJECT_PLURAL, KubeRepositoryStore
from chartops.errors import CredentialObjectNotFound, RepositoryListFailed
from chartops.models import RepositoryScope


def _cr(name, url, namespace=None, **spec):
    metadata = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    return {"metadata": metadata, "spec": {"connectionConfig": {"url": url}, **spec}}


class FakeCoreK8s:
    def __init__(self, secrets=None, config_maps=None, error=None):
        self.secrets = secrets or {}
        self.config_maps = config_maps or {}
        self.error = error

    def read_secret(self, name, namespace):
        if self.error:
            raise self.error
        return self.secrets.get((namespace, name))

    def read_config_map(self, name, namespace):
        if self.error:
            raise self.error
        return self.config_maps.get((namespace, name))


class FakeCustomK8s:
    def __init__(self, objects, error=None, get_error=None):
        self.objects = objects
        self.error = error
        self.get_error = get_error
        self.listed = []

    def get_custom_resource(self, group, version, plural, name, namespace=None):
        if self.get_error:
            raise self.get_error
        for obj in self.objects.get(plural, []):
            if obj["metadata"]["name"] == name and obj["metadata"].get("namespace") == namespace:
                return obj
        return None

    def list_custom_resources(self, group, version, plural, namespace=None):
        self.listed.append((plural, namespace))
        if self.error:
            raise self.error
        return [
            o for o in self.objects.get(plural, [])
            if namespace is None or o["metadata"].get("namespace") == namespace
        ]


class TestKubeCredentialStore:
    def test_secret_data_is_decoded(self):
        secret = SimpleNamespace(data={"tls.crt": base64.b64encode(b"CERT").decode()})
        store = KubeCredentialStore(FakeCoreK8s(secrets={("openshift-config", "my-repo"): secret}))
        assert store.get_secret("openshift-config", "my-repo") == {"tls.crt": b"CERT"}

    def test_missing_secret(self):
        with pytest.raises(CredentialObjectNotFound) as exc_info:
            KubeCredentialStore(FakeCoreK8s()).get_secret("openshift-config", "my-repo")
        assert exc_info.value.kind == "secret"
        assert str(exc_info.value) == "Failed to GET secret my-repo from openshift-config, reason: not found"

    def test_forbidden_config_map(self):
        store = KubeCredentialStore(FakeCoreK8s(error=ApiException(status=403, reason="Forbidden")))
        with pytest.raises(CredentialObjectNotFound) as exc_info:
            store.get_config_map("openshift-config", "ca")
        assert exc_info.value.kind == "configmap"
        assert exc_info.value.reason == "Forbidden"

    def test_undecodable_secret_data(self):
        secret = SimpleNamespace(data={"tls.crt": "%%% not base64"})
        store = KubeCredentialStore(FakeCoreK8s(secrets={("openshift-config", "my-repo"): secret}))
        with pytest.raises(CredentialObjectNotFound) as exc_info:
            store.get_secret("openshift-config", "my-repo")
        assert "undecodable data" in exc_info.value.reason

    def test_config_map_data(self):
        cm = SimpleNamespace(data={"ca-bundle.crt": "CA"})
        store = KubeCredentialStore(FakeCoreK8s(config_maps={("openshift-config", "ca"): cm}))
        assert store.get_config_map("openshift-config", "ca") == {"ca-bundle.crt": "CA"}


class TestKubeRepositoryStore:
    @pytest.fixture
    def objects(self):
        return {
            CLUSTER_PLURAL: [_cr("shared", "http://localhost:8080")],
            PROJECT_PLURAL: [
                _cr("team", "http://team:8080", namespace="team-a"),
                _cr("other", "http://other:8080", namespace="team-b"),
            ],
        }

    def test_list_returns_project_repositories_first(self, objects, settings):
        store = KubeRepositoryStore(FakeCustomK8s(objects), settings)
        records = store.list("team-a")
        assert [(r.name, r.scope) for r in records] == [
            ("team", RepositoryScope.PROJECT),
            ("shared", RepositoryScope.CLUSTER),
        ]
        assert records[0].namespace == "team-a"

    def test_list_without_namespace_is_cluster_only(self, objects, settings):
        k8s = FakeCustomK8s(objects)
        records = KubeRepositoryStore(k8s, settings).list("")
        assert [r.name for r in records] == ["shared"]
        assert k8s.listed == [(CLUSTER_PLURAL, None)]

    def test_list_failure(self, settings):
        k8s = FakeCustomK8s({}, error=ApiException(status=403, reason="Forbidden"))
        with pytest.raises(RepositoryListFailed) as exc_info:
            KubeRepositoryStore(k8s, settings).list("team-a")
        assert exc_info.value.namespace == "team-a"

    def test_get_by_scope(self, objects, settings):
        store = KubeRepositoryStore(FakeCustomK8s(objects), settings)
        assert store.get(RepositoryScope.PROJECT, "team-a", "team").base_url == "http://team:8080"
        assert store.get(RepositoryScope.CLUSTER, "", "shared").scope == RepositoryScope.CLUSTER
        assert store.get(RepositoryScope.PROJECT, "team-a", "shared") is None
        assert store.get(RepositoryScope.PROJECT, "", "team") is None

    def test_get_surfaces_api_errors(self, settings):
        denied = ApiException(status=403, reason="Forbidden")
        store = KubeRepositoryStore(FakeCustomK8s({}, get_error=denied), settings)
        with pytest.raises(RepositoryListFailed) as exc_info:
            store.get(RepositoryScope.PROJECT, "team-a", "named")
        assert exc_info.value.reason == "Forbidden"
        assert exc_info.value.__cause__ is denied

    def test_resolver_reports_api_errors_instead_of_not_found(self, settings):
        from chartops.core.repo_resolver import RepoResolver

        denied = ApiException(status=403, reason="Forbidden")
        store = KubeRepositoryStore(FakeCustomK8s({}, get_error=denied), settings)
        resolver = RepoResolver(store, index_fetcher=None)
        with pytest.raises(RepositoryListFailed):
            resolver.resolve("http://localhost:8080/charts/x-1.0.0.tgz", "team-a", repo_name="named")
