"""Filesystem backend implementation for credential storage."""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path

from ..credentials import (
    CredentialConflictError,
    CredentialNotFoundError,
    CredentialStore,
    CredentialStoreError,
)

logger = logging.getLogger(__name__)


class FilesystemBackend(CredentialStore):
    """Filesystem implementation of the credential store.

    The refresh token is kept in a small JSON document. Every read-compare-write
    runs under an exclusive ``flock`` on a sidecar ``.lock`` file, and the new
    document is written to a temp file in the same directory before being
    renamed over the old one, so readers never see a half-written record.
    """

    def __init__(self, path: str | Path):
        """Initialize filesystem backend.

        Args:
            path: Location of the JSON token document
        """
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_path = self._path.with_suffix(self._path.suffix + ".lock")
        logger.info(f"Initialized filesystem credential store at: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold an exclusive lock on the token document for the duration of the block."""
        with open(self._lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> str:
        if not self._path.exists():
            raise CredentialNotFoundError(f"No refresh token stored at {self._path}")

        try:
            with open(self._path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise CredentialStoreError(f"Failed to read credential file {self._path}: {e}") from e

        token = document.get("refresh_token") if isinstance(document, dict) else None
        if not token:
            raise CredentialNotFoundError(f"Credential file {self._path} has no refresh_token")
        return token

    def _write(self, token: str) -> None:
        document = {
            "refresh_token": token,
            "updated_at": datetime.now(UTC).isoformat(),
        }
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise CredentialStoreError(f"Failed to write credential file {self._path}: {e}") from e

    def read(self) -> str:
        """Read the stored refresh token."""
        with self._locked():
            return self._load()

    def swap(self, expected_old: str, new: str) -> None:
        """Atomically replace ``expected_old`` with ``new``."""
        with self._locked():
            current = self._load()
            if current != expected_old:
                raise CredentialConflictError(
                    f"Refresh token in {self._path} was rotated since it was read"
                )
            self._write(new)
        logger.info(f"Rotated refresh token in {self._path}")
