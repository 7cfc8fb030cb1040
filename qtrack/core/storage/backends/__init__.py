"""Credential store backend implementations."""

from .filesystem_backend import FilesystemBackend
from .mongodb_backend import MongoDBBackend

__all__ = ["FilesystemBackend", "MongoDBBackend"]
