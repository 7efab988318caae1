"""Staged credential models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class StagedFile:
    path: Path
    pattern: str = ""

    @property
    def name(self) -> str:
        return str(self.path)


@dataclass
class CredentialBundle:
    """TLS material for one repository, staged as ephemeral files."""

    cert_file: Path | None = None
    key_file: Path | None = None
    ca_file: Path | None = None
    files: list[StagedFile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.cert_file is None and self.key_file is None and self.ca_file is None

    @property
    def client_cert(self) -> tuple[str, str] | None:
        """Cert/key pair in the form ``requests`` expects for ``cert=``."""
        if self.cert_file is None or self.key_file is None:
            return None
        return (str(self.cert_file), str(self.key_file))

    @property
    def paths(self) -> list[Path]:
        return [f.path for f in self.files]
