"""
Session store module.
Durable key-value persistence for the signed-in session.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from .config import SESSION_FILE

logger = logging.getLogger(__name__)


# =============================================================================
# STORE INTERFACE
# =============================================================================

class SessionStore:
    """Key-value slots holding JSON-serializable session snapshots."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class MemorySessionStore(SessionStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self):
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        logger.debug(f"Session set: {key}")

    def delete(self, key: str) -> bool:
        if key in self._data:
            del self._data[key]
            return True
        return False


# =============================================================================
# FILE STORE
# =============================================================================

class FileSessionStore(SessionStore):
    """
    JSON file backed store.

    The whole file is a single JSON object mapping keys to values. It is
    read on every access and rewritten on every change.
    """

    def __init__(self, path: Path = SESSION_FILE):
        self.path = Path(path)

    def _load(self) -> dict:
        """Load all slots from disk; an unreadable file counts as empty."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Session file unreadable, ignoring: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        """Save all slots to disk, removing the file once empty."""
        if not data:
            if self.path.exists():
                self.path.unlink()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Holds bearer tokens: mkstemp creates the file 0600, replace is atomic
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logger.debug(f"Session saved: {key} -> {self.path}")

    def delete(self, key: str) -> bool:
        data = self._load()
        if key not in data:
            return False
        del data[key]
        self._save(data)
        logger.info(f"Session cleared: {key}")
        return True
