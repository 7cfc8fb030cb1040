"""Backend registry for named credential stores."""

from __future__ import annotations

import logging
import os
from typing import Any

from qtrack.core.storage.backends.filesystem_backend import FilesystemBackend
from qtrack.core.storage.backends.mongodb_backend import MongoDBBackend
from qtrack.core.storage.credentials import CredentialStore
from qtrack.core.utils.config import load_and_resolve_config

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_ENV = "QTRACK_CREDENTIAL_BACKEND"
DEFAULT_BACKEND_NAME = "filesystem"


class BackendConfigError(Exception):
    """Raised when backend configuration is invalid."""

    pass


class BackendNotFoundError(Exception):
    """Raised when a named backend is not found in configuration."""

    pass


class CredentialBackendRegistry:
    """Registry resolving backend names to configured credential stores.

    Examples:
        >>> registry = CredentialBackendRegistry()
        >>> store = registry.get_backend("filesystem")
        >>> store = registry.get_backend()  # $QTRACK_CREDENTIAL_BACKEND or "filesystem"
    """

    def __init__(self, configuration: dict[str, dict[str, Any]] | None = None):
        """Initialize the registry.

        Args:
            configuration: Backend configuration dict. If None, loads and resolves
                          configs/credential_backends.py
        """
        if configuration is None:
            configuration = load_and_resolve_config(
                "configs.credential_backends",
                config_name="CONFIGURATION",
                default={},
            )

        self._config = configuration
        self._backend_cache: dict[str, CredentialStore] = {}

    def create_backend(self, config: dict[str, Any]) -> CredentialStore:
        """Create a backend instance from configuration.

        Raises:
            BackendConfigError: If configuration is invalid
        """
        backend_type = config.get("type")

        if not backend_type:
            raise BackendConfigError("Backend configuration must specify 'type'")

        if backend_type == "filesystem":
            path = config.get("path")
            if not path:
                raise BackendConfigError("Filesystem backend requires 'path'")

            return FilesystemBackend(path=path)

        elif backend_type == "mongodb":
            if not config.get("uri") and not config.get("host"):
                raise BackendConfigError("MongoDB backend requires 'uri' or 'host'")

            options = {k: v for k, v in config.items() if k != "type" and v is not None}
            return MongoDBBackend(**options)

        else:
            raise BackendConfigError(f"Unknown backend type: {backend_type}")

    def get_backend(self, name: str | None = None, use_cache: bool = True) -> CredentialStore:
        """Get a credential store by name.

        Args:
            name: Backend name; defaults to $QTRACK_CREDENTIAL_BACKEND or "filesystem"
            use_cache: Whether to reuse a previously created instance

        Raises:
            BackendNotFoundError: If the name is not configured
            BackendConfigError: If the backend configuration is invalid
        """
        name = name or os.getenv(DEFAULT_BACKEND_ENV, DEFAULT_BACKEND_NAME)

        if use_cache and name in self._backend_cache:
            return self._backend_cache[name]

        if name not in self._config:
            available = ", ".join(self._config.keys())
            raise BackendNotFoundError(
                f"Backend '{name}' not found in configuration. "
                f"Available backends: {available or 'none'}"
            )

        backend = self.create_backend(self._config[name])
        if use_cache:
            self._backend_cache[name] = backend

        logger.info(f"Created credential backend '{name}' ({self._config[name]['type']})")
        return backend

    def list_backends(self) -> list[str]:
        return list(self._config.keys())

    def register(self, name: str, config: dict[str, Any]) -> None:
        """Register (or replace) a backend configuration."""
        self._config[name] = config
        self._backend_cache.pop(name, None)
