"""Turn a repository's connection config into on-disk TLS material."""

from __future__ import annotations

import logging

from chartops.config.settings import Settings
from chartops.core.credential_store import CredentialStore
from chartops.errors import CredentialKeyMissing
from chartops.models.credentials import CredentialBundle
from chartops.models.repo import ConnectionConfig
from chartops.utils.tempfiles import EphemeralFiles

logger = logging.getLogger(__name__)

TLS_CERT_KEY = "tls.crt"
TLS_KEY_KEY = "tls.key"
CA_BUNDLE_KEY = "ca-bundle.crt"

TLS_CERT_PATTERN = "tlscrt-*"
TLS_KEY_PATTERN = "tlskey-*"
CA_CERT_PATTERN = "cacert-*"


class CredentialMaterializer:
    """Stage client cert/key and CA bundle files for one repository.

    Files are staged through the caller's ``EphemeralFiles`` scope, which
    owns their disposal. A failure part-way through leaves the already
    staged files in that scope and returns no bundle.
    """

    def __init__(self, credentials: CredentialStore, settings: Settings):
        self.credentials = credentials
        self.settings = settings

    def materialize(self, cfg: ConnectionConfig, files: EphemeralFiles) -> CredentialBundle:
        bundle = CredentialBundle()

        tls = cfg.tls_client_config
        if tls is not None:
            namespace = tls.secret_namespace or self.settings.config_namespace
            data = self.credentials.get_secret(namespace, tls.secret_name)
            for key in (TLS_CERT_KEY, TLS_KEY_KEY):
                if key not in data:
                    raise CredentialKeyMissing(key, tls.secret_name, kind="secret")
            cert = files.stage(data[TLS_CERT_KEY], TLS_CERT_PATTERN)
            key_file = files.stage(data[TLS_KEY_KEY], TLS_KEY_PATTERN)
            bundle.cert_file = cert.path
            bundle.key_file = key_file.path
            bundle.files.extend([cert, key_file])
            logger.debug("Staged client certificate from secret %s/%s", namespace, tls.secret_name)

        if cfg.ca_config is not None:
            name = cfg.ca_config.config_map_name
            data = self.credentials.get_config_map(self.settings.config_namespace, name)
            if CA_BUNDLE_KEY not in data:
                raise CredentialKeyMissing(CA_BUNDLE_KEY, name, kind="configmap")
            ca = files.stage(data[CA_BUNDLE_KEY].encode("utf-8"), CA_CERT_PATTERN)
            bundle.ca_file = ca.path
            bundle.files.append(ca)
            logger.debug("Staged CA bundle from configmap %s/%s", self.settings.config_namespace, name)

        return bundle
