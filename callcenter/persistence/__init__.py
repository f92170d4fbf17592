"""
Persistence: save storage backends and the save manager.
"""

from .save_manager import DEFAULT_SAVE_KEY, SaveManager
from .storage import FileStore, InMemoryStore, KeyValueStore, create_store

__all__ = [
    "DEFAULT_SAVE_KEY",
    "SaveManager",
    "FileStore",
    "InMemoryStore",
    "KeyValueStore",
    "create_store",
]
