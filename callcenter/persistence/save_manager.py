"""
Save Manager

Persists the full game state as a single versioned JSON document. Every
operation reports success as a boolean; storage and decoding failures are
logged and never propagate into the simulation loop.
"""

import base64
import binascii
import json
import logging
from typing import Optional

from ..config.catalog import Catalog
from ..economy.upgrades import UpgradeManager
from ..models.game_state import SAVE_VERSION, GameState
from .storage import InMemoryStore, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SAVE_KEY = "call_center_save"


class SaveManager:
    """
    Reads and writes one game state under one storage key.

    With a catalog, a successful load also rebuilds the upgrade-effect
    cache from the restored levels. Without one the cache is left as is.
    """

    def __init__(
        self,
        state: GameState,
        store: Optional[KeyValueStore] = None,
        key: str = DEFAULT_SAVE_KEY,
        catalog: Optional[Catalog] = None,
    ):
        self.state = state
        self.store = store if store is not None else InMemoryStore()
        self.key = key
        self.catalog = catalog

    def save(self) -> bool:
        try:
            self.store.set(self.key, json.dumps(self.state.to_json()))
            return True
        except Exception as e:
            logger.error("Failed to save game: %s", e, exc_info=True)
            return False

    def load(self) -> bool:
        """Replace the current state with the stored save, if any."""
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return False
            return self._restore(json.loads(raw))
        except Exception as e:
            logger.error("Failed to load game: %s", e, exc_info=True)
            return False

    def has_save(self) -> bool:
        try:
            return self.store.exists(self.key)
        except Exception as e:
            logger.error("Failed to check for save: %s", e)
            return False

    def delete_save(self) -> bool:
        try:
            self.store.delete(self.key)
            return True
        except Exception as e:
            logger.error("Failed to delete save: %s", e)
            return False

    def export_save(self) -> Optional[str]:
        """Base64-encoded save document for out-of-band transfer."""
        try:
            document = json.dumps(self.state.to_json())
            return base64.b64encode(document.encode("utf-8")).decode("ascii")
        except Exception as e:
            logger.error("Failed to export save: %s", e, exc_info=True)
            return None

    def import_save(self, encoded: str) -> bool:
        try:
            document = base64.b64decode(encoded, validate=True).decode("utf-8")
            return self._restore(json.loads(document))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error("Failed to import save: not a valid export (%s)", e)
            return False
        except Exception as e:
            logger.error("Failed to import save: %s", e, exc_info=True)
            return False

    def _restore(self, data: dict) -> bool:
        if not isinstance(data, dict):
            logger.error("Save document is not an object")
            return False

        version = data.get("version")
        if version != SAVE_VERSION:
            logger.warning(
                "Save version mismatch (found %s, expected %s), loading anyway",
                version,
                SAVE_VERSION,
            )

        # Decode into a scratch state first so a bad document leaves the live one untouched
        scratch = GameState(self.state.defaults)
        scratch.lead_pool.sources = dict(self.state.lead_pool.sources)
        scratch.dialer_manager.dialers = dict(self.state.dialer_manager.dialers)
        scratch.load_from_json(data, self.catalog)

        self.state.load_from_json(data, self.catalog)
        if self.catalog is not None:
            UpgradeManager(self.state, self.catalog.upgrades).recalculate_effects()
        return True
