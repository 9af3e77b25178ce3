"""
String-keyed, JSON-valued persistent store.

Backs user-facing state such as draw history. Values live in one JSON file
inside the store directory; when that directory cannot be used (missing
permissions, read-only filesystem, no directory configured) every operation
falls back to an in-memory map instead of failing.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STORE_FILE_NAME = "persist.json"


class PersistentStore:
    """
    Durable key/value store with an in-memory fallback.

    Strings are stored verbatim, everything else is JSON-encoded. Reading a
    stored string that is not valid JSON returns the string itself.
    """

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory) if directory else None
        self._memory: Dict[str, str] = {}

    @property
    def path(self) -> Optional[Path]:
        return self.directory / STORE_FILE_NAME if self.directory else None

    def is_available(self) -> bool:
        """True when the durable directory exists (or can be created) and is writable."""
        if self.directory is None:
            return False
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.directory, os.W_OK)

    def _read_file(self) -> Optional[Dict[str, str]]:
        if not self.is_available():
            return None
        try:
            if not self.path.exists():
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read persistent store {self.path}: {e}")
            return None

    def _write_file(self, data: Dict[str, str]) -> bool:
        if not self.is_available():
            return False
        tmp_path = self.path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
            return True
        except OSError as e:
            logger.warning(f"Failed to write persistent store {self.path}: {e}")
            return False

    @staticmethod
    def _serialize(value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, ensure_ascii=False)

    @staticmethod
    def _deserialize(raw: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError:
            return raw

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a value.

        Args:
            key: Store key
            default: Returned when the key is absent from both tiers

        Returns:
            The decoded value or default
        """
        data = self._read_file()
        if data is not None and key in data:
            return self._deserialize(data[key])
        if key in self._memory:
            return self._deserialize(self._memory[key])
        return default

    def set(self, key: str, value: Any) -> None:
        payload = self._serialize(value)
        data = self._read_file()
        if data is not None:
            data[key] = payload
            if self._write_file(data):
                return
        self._memory[key] = payload

    def remove(self, key: str) -> None:
        data = self._read_file()
        if data is not None and key in data:
            del data[key]
            if self._write_file(data):
                return
        self._memory.pop(key, None)

    def clear(self) -> None:
        if self._read_file() is not None:
            self._write_file({})
        self._memory.clear()

    def keys(self) -> List[str]:
        """Keys from the durable file first, then memory-only keys."""
        keys = list(self._read_file() or {})
        keys.extend(key for key in self._memory if key not in keys)
        return keys
