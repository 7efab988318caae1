"""Ephemeral files for staged TLS material, plus chart URL parsing."""

from __future__ import annotations

import logging
import os
import re
import sys
import tempfile
from pathlib import Path
from types import TracebackType
from urllib.parse import urlparse

from chartops.errors import EphemeralWriteFailed
from chartops.models.chart import ChartInfo
from chartops.models.credentials import StagedFile

logger = logging.getLogger(__name__)

_VERSION_BOUNDARY = re.compile(r"-\d")
_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz")


def stage(data: bytes, pattern: str, directory: Path | None = None) -> StagedFile:
    """Write ``data`` to a new uniquely named file and return its handle.

    ``pattern`` follows the ``prefix-*suffix`` convention; the ``*`` is
    replaced by a random string so concurrent calls never collide.
    """
    prefix, _, suffix = pattern.partition("*")
    try:
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=directory)
    except OSError as exc:
        raise EphemeralWriteFailed(pattern, str(exc)) from exc
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        # The file exists on disk; hand it back through the error for cleanup.
        err = EphemeralWriteFailed(pattern, str(exc))
        err.staged = StagedFile(path=Path(path), pattern=pattern)
        raise err from exc
    return StagedFile(path=Path(path), pattern=pattern)


def cleanup_all(handles: list[StagedFile], enabled: bool) -> None:
    """Delete every staged file when ``enabled``; otherwise list the paths on stderr."""
    if not enabled:
        for handle in handles:
            logger.info("Keeping staged file %s", handle.path)
            print(handle.path, file=sys.stderr)
        return
    for handle in handles:
        try:
            handle.path.unlink()
        except FileNotFoundError:
            logger.debug("Staged file %s already removed", handle.path)
        except OSError:
            logger.warning("Could not remove staged file %s", handle.path, exc_info=True)


class EphemeralFiles:
    """Tracks files staged during one operation and disposes of them on exit.

    Used as a context manager so cleanup runs on every return path::

        with EphemeralFiles(cleanup=True) as files:
            cert = files.stage(pem, "tlscrt-*")
            ...
    """

    def __init__(self, cleanup: bool = True, directory: Path | None = None):
        self.cleanup = cleanup
        self.directory = directory
        self.handles: list[StagedFile] = []
        self._closed = False

    @property
    def paths(self) -> list[Path]:
        return [h.path for h in self.handles]

    def stage(self, data: bytes, pattern: str) -> StagedFile:
        try:
            handle = stage(data, pattern, directory=self.directory)
        except EphemeralWriteFailed as exc:
            if exc.staged is not None:
                self.handles.append(exc.staged)
            raise
        self.handles.append(handle)
        return handle

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        cleanup_all(self.handles, self.cleanup)

    def __enter__(self) -> EphemeralFiles:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def parse_chart_info(url: str) -> ChartInfo:
    """Derive chart name and version from the last path segment of ``url``.

    The segment is split at the first ``-<digit>`` boundary scanning left to
    right: ``mariadb-7.3.5.tgz`` gives ``("mariadb", "7.3.5")``. Without a
    boundary the whole segment is the name and the version is empty. Names
    that themselves contain ``-<digit>`` split early.
    """
    path = urlparse(url).path or url
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    for suffix in _ARCHIVE_SUFFIXES:
        if segment.endswith(suffix):
            segment = segment[: -len(suffix)]
            break
    match = _VERSION_BOUNDARY.search(segment)
    if match is None:
        return ChartInfo(name=segment, version="")
    return ChartInfo(name=segment[: match.start()], version=segment[match.start() + 1:])
