"""Credential storage abstractions and backends."""

from qtrack.core.storage.credentials import (
    CredentialConflictError,
    CredentialNotFoundError,
    CredentialStore,
    CredentialStoreError,
)
from qtrack.core.storage.registry import (
    BackendConfigError,
    BackendNotFoundError,
    CredentialBackendRegistry,
)

__all__ = [
    # Credential storage
    "CredentialStore",
    "CredentialStoreError",
    "CredentialNotFoundError",
    "CredentialConflictError",
    # Registry
    "CredentialBackendRegistry",
    "BackendConfigError",
    "BackendNotFoundError",
]
