"""Credential storage abstraction for the rotating refresh token.

A credential store holds exactly one logical record: the next unused refresh
token. Backends (filesystem, MongoDB, ...) only have to support reading that
record and replacing it with compare-and-swap semantics.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CredentialStore(ABC):
    """Abstract base class for refresh-token storage backends."""

    @abstractmethod
    def read(self) -> str:
        """Return the stored refresh token.

        Raises:
            CredentialNotFoundError: If no record exists
            CredentialStoreError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def swap(self, expected_old: str, new: str) -> None:
        """Replace the stored token with ``new`` if it still equals ``expected_old``.

        The replacement is atomic with respect to the single record: readers
        observe either the old token or the new one, never a partial write.

        Raises:
            CredentialConflictError: If the stored token is no longer ``expected_old``
            CredentialNotFoundError: If no record exists
            CredentialStoreError: If the backend cannot be written
        """
        pass


# Custom exceptions


class CredentialStoreError(Exception):
    """Base exception for credential storage errors."""

    pass


class CredentialNotFoundError(CredentialStoreError):
    """Raised when no refresh-token record exists."""

    pass


class CredentialConflictError(CredentialStoreError):
    """Raised when the record was rotated elsewhere since it was read."""

    pass
