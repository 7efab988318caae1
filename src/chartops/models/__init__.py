"""Data models for chartops."""

from __future__ import annotations

import enum


class RepositoryScope(enum.Enum):
    CLUSTER = "Cluster"
    PROJECT = "Project"


class OperationState(enum.Enum):
    RESOLVING = "resolving"
    AUTHENTICATING = "authenticating"
    LOCATING = "locating"
    LOADING = "loading"
    APPLYING = "applying"
    DONE = "done"
    FAILED = "failed"
