"""
In-process message channel between the privileged side and the UI side.

Messages are named and carry positional payload arguments. Listeners are
called as ``listener(event, *args)``. Messages can be delivered immediately
with ``send`` or queued from any thread with ``post`` and delivered later on
the consuming thread by ``process_pending``.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

Listener = Callable[..., None]


class IpcError(RuntimeError):
    """Raised when a request has no registered handler."""


@dataclass
class IpcEvent:
    """Envelope passed as the first argument to every listener and handler."""

    name: str
    channel: "IpcChannel"


class IpcChannel:
    """Named publish/subscribe messages plus request/response handlers."""

    def __init__(self):
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[Listener]] = {}
        self._handlers: Dict[str, Callable[..., Any]] = {}
        self._pending: "queue.Queue[Tuple[str, Tuple[Any, ...]]]" = queue.Queue()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on(self, name: str, listener: Listener) -> None:
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)

    def remove_listener(self, name: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(name, None)

    def remove_all_listeners(self, name: Optional[str] = None) -> None:
        with self._lock:
            if name is None:
                self._listeners.clear()
            else:
                self._listeners.pop(name, None)

    def listener_count(self, name: str) -> int:
        with self._lock:
            return len(self._listeners.get(name, []))

    def send(self, name: str, *args: Any) -> int:
        """Deliver a message to its listeners now. Returns how many were called."""
        with self._lock:
            listeners = list(self._listeners.get(name, []))

        event = IpcEvent(name, self)
        for listener in listeners:
            try:
                listener(event, *args)
            except Exception as e:
                logger.error("Listener for %s failed: %s", name, e)
        return len(listeners)

    def post(self, name: str, *args: Any) -> None:
        """Queue a message for delivery by ``process_pending``; safe from any thread."""
        self._pending.put((name, args))

    def process_pending(self, max_messages: Optional[int] = None) -> int:
        """Deliver queued messages on the calling thread. Returns how many were processed."""
        processed = 0
        while max_messages is None or processed < max_messages:
            try:
                name, args = self._pending.get_nowait()
            except queue.Empty:
                break
            self.send(name, *args)
            processed += 1
        return processed

    # ------------------------------------------------------------------
    # Request/response
    # ------------------------------------------------------------------

    def handle(self, name: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        with self._lock:
            self._handlers.pop(name, None)

    def invoke(self, name: str, *args: Any) -> Any:
        with self._lock:
            handler = self._handlers.get(name)
        if handler is None:
            raise IpcError(f"No handler registered for '{name}'")
        return handler(IpcEvent(name, self), *args)
