"""MongoDB backend implementation for credential storage."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from ..credentials import (
    CredentialConflictError,
    CredentialNotFoundError,
    CredentialStore,
    CredentialStoreError,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "refresh_tokens"


class MongoDBBackend(CredentialStore):
    """MongoDB implementation of the credential store.

    The collection holds a single document with a ``refresh_token`` field.
    ``swap`` filters on the expected old token, so the server performs the
    compare and the write as one atomic document update.
    """

    def __init__(
        self,
        uri: str | None = None,
        host: str = "localhost",
        port: int = 27017,
        database: str = "qtrack",
        collection: str = DEFAULT_COLLECTION,
        username: str | None = None,
        password: str | None = None,
        **kwargs,
    ):
        """Initialize MongoDB backend.

        Args:
            uri: Full connection string (e.g. ``mongodb+srv://...``); overrides host/port
            host: MongoDB host
            port: MongoDB port
            database: Database name
            collection: Collection holding the token document
            username: Optional username for authentication
            password: Optional password for authentication
            **kwargs: Additional arguments passed to MongoClient
        """
        if not uri:
            if username and password:
                uri = f"mongodb://{username}:{password}@{host}:{port}/"
            else:
                uri = f"mongodb://{host}:{port}/"

        try:
            self._client = MongoClient(uri, **kwargs)
            self._client.admin.command("ping")
        except PyMongoError as e:
            raise CredentialStoreError(f"Failed to connect to MongoDB: {e}") from e

        self._collection = self._client[database][collection]
        logger.info(f"Connected to MongoDB credential store: {database}.{collection}")

    def _find(self) -> dict[str, Any] | None:
        try:
            return self._collection.find_one({}, {"refresh_token": True})
        except PyMongoError as e:
            raise CredentialStoreError(f"Failed to read refresh token: {e}") from e

    def read(self) -> str:
        """Read the stored refresh token."""
        document = self._find()
        if not document or not document.get("refresh_token"):
            raise CredentialNotFoundError("No refresh token found in database")
        return document["refresh_token"]

    def swap(self, expected_old: str, new: str) -> None:
        """Replace ``expected_old`` with ``new`` in a single filtered update."""
        try:
            result = self._collection.update_one(
                {"refresh_token": expected_old},
                {"$set": {"refresh_token": new, "updated_at": datetime.now(UTC)}},
            )
        except PyMongoError as e:
            raise CredentialStoreError(f"Failed to update refresh token: {e}") from e

        if result.matched_count == 0:
            if self._find() is None:
                raise CredentialNotFoundError("No refresh token found in database")
            raise CredentialConflictError("Refresh token was rotated since it was read")

        logger.info("Rotated refresh token in MongoDB")

    def close(self) -> None:
        self._client.close()
