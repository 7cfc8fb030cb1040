"""Credential store backend configuration.

This module defines the CONFIGURATION dict which maps backend names to their
connection parameters. The active backend is picked by name:

    export QTRACK_CREDENTIAL_BACKEND=atlas

Configuration inheritance:
    Entries may extend another entry with the "__inherits__" key and override
    only what differs, e.g. "atlas" reuses the "mongodb" database and
    collection but connects through an SRV connection string.

The refresh token itself is never stored here; it lives in the backend.
"""

from __future__ import annotations

import os
from pathlib import Path

from qtrack.core.utils.env import load_env_file_if_present

load_env_file_if_present()


def _default_token_path() -> Path:
    """Return the default location of the filesystem token document."""
    configured_path = os.environ.get("QTRACK_CREDENTIAL_PATH")
    if configured_path:
        return Path(configured_path).expanduser()

    return Path.home() / ".config" / "qtrack" / "refresh_token.json"


def _atlas_uri() -> str | None:
    """Build the Atlas connection string when a database password is configured."""
    password = os.getenv("DB_PASSWORD")
    if not password:
        return None
    cluster = os.getenv("QTRACK_ATLAS_CLUSTER", "cluster0.2dmsm.mongodb.net")
    user = os.getenv("QTRACK_ATLAS_USER", "user")
    return f"mongodb+srv://{user}:{password}@{cluster}/?retryWrites=true&w=majority"


CONFIGURATION = {
    # Local JSON document, the default backend
    "filesystem": {
        "type": "filesystem",
        "path": str(_default_token_path()),
    },
    # Self-hosted MongoDB
    "mongodb": {
        "type": "mongodb",
        "uri": os.getenv("QTRACK_MONGODB_URI"),
        "host": os.getenv("QTRACK_MONGODB_HOST", "localhost"),
        "port": int(os.getenv("QTRACK_MONGODB_PORT", "27017")),
        "database": os.getenv("QTRACK_MONGODB_DATABASE", "questrade_asset_tracker_db"),
        "collection": "refresh_tokens",
    },
    # MongoDB Atlas cluster
    "atlas": {
        "__inherits__": "mongodb",
        "uri": _atlas_uri(),
        "host": None,
    },
}
