"""Local UI notification hub, decoupled from the IPC transport."""

import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class UiEvents:
    """Small callback-based event hub used by the UI layer."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}

    def on(self, name: str, callback: Callable[[Any], None]) -> None:
        with self._lock:
            self._listeners.setdefault(name, []).append(callback)

    def off(self, name: str, callback: Callable[[Any], None]) -> None:
        with self._lock:
            callbacks = self._listeners.get(name, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def emit(self, name: str, detail: Any = None) -> None:
        with self._lock:
            callbacks = list(self._listeners.get(name, []))
        for callback in callbacks:
            try:
                callback(detail)
            except Exception as e:
                logger.error("UI event %s callback failed: %s", name, e)


__all__ = ["UiEvents"]
