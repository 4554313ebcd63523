"""Configuration and upload storage."""

from .config_store import ConfigStore, InMemoryConfigStore, JsonConfigStore
from .file_store import FileStore, StoredFile

__all__ = [
    "ConfigStore",
    "InMemoryConfigStore",
    "JsonConfigStore",
    "FileStore",
    "StoredFile",
]
