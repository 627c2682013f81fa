"""
Shared key-value store for installation-wide settings.
"""

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to ``path`` via a temp file so a crash never leaves it half-written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(data, indent=2, ensure_ascii=False)

    temp_file = path.with_name(path.name + ".tmp")
    try:
        with open(temp_file, "w", encoding="utf-8") as f:
            f.write(payload)
        os.replace(temp_file, path)
    finally:
        if temp_file.exists():
            try:
                temp_file.unlink()
            except OSError:
                pass


def backup_corrupt_file(path: Path) -> Optional[Path]:
    """Copy an unreadable file aside as ``<name>.bak.<timestamp>``."""
    ts = time.strftime("%Y%m%d_%H%M%S")
    bak = path.with_name(f"{path.name}.bak.{ts}")
    try:
        bak.write_bytes(path.read_bytes())
    except OSError as e:
        logger.error("Could not back up %s: %s", path, e)
        return None
    return bak


class GlobalStore:
    """
    JSON-file store shared by every profile.

    Each call is serialized by a lock and every write replaces the file
    atomically, so a value is either fully persisted or not at all.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root is not an object")
            return data
        except (OSError, ValueError) as e:
            logger.error("Error loading %s, starting empty: %s", self.path, e)
            backup_corrupt_file(self.path)
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            updated = dict(self._data)
            updated[key] = value
            write_json_atomic(self.path, updated)
            self._data = updated
        logger.debug("Global store set: %s", key)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def delete(self, key: str) -> None:
        with self._lock:
            if key not in self._data:
                return
            updated = dict(self._data)
            del updated[key]
            write_json_atomic(self.path, updated)
            self._data = updated
        logger.debug("Global store delete: %s", key)

    def clear(self) -> None:
        with self._lock:
            write_json_atomic(self.path, {})
            self._data = {}

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    @property
    def store(self) -> Dict[str, Any]:
        """Snapshot of every stored key."""
        with self._lock:
            return dict(self._data)
