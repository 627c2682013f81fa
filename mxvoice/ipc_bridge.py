"""
Bridge from IPC messages to UI entry points.

The UI registers a callback for each entry point by name in ``EntryPoints``.
The bridge subscribes one handler per event in ``IPC_ROUTES`` and forwards the
message payload to the matching entry point. Messages that only announce
something (update progress, release notes) become ``UiEvents`` notifications
instead of entry-point calls.

A message can arrive before the UI has registered its entry point. Retryable
routes then try exactly once more after ``IPC["retry_delay_ms"]``. When the
bridge runs context-isolated, a missing entry point means a trusted bridge
already handled the message, so nothing is done.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .channel import IpcChannel
from .constants import IPC, UI_EVENTS
from .ui_events import UiEvents

logger = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], Any]


@dataclass(frozen=True)
class IpcRoute:
    """How one IPC event is dispatched."""

    event: str
    entry_point: Optional[str] = None
    retry: bool = False
    defer_when_isolated: bool = False


IPC_ROUTES: Tuple[IpcRoute, ...] = (
    # Hotkeys and holding tank
    IpcRoute("fkey_load", "populate_hotkeys", retry=True),
    IpcRoute("holding_tank_load", "populate_holding_tank", retry=True),
    IpcRoute("start_hotkey_save", "save_hotkey_file"),
    # Dialogs
    IpcRoute("manage_categories", "open_categories_modal"),
    IpcRoute("show_preferences", "open_preferences_modal"),
    IpcRoute("bulk_add_dialog_load", "show_bulk_add_modal", defer_when_isolated=True),
    IpcRoute("add_dialog_load", "handle_add_dialog_load", defer_when_isolated=True),
    # Song operations
    IpcRoute("delete_selected_song", "delete_selected_song"),
    IpcRoute("edit_selected_song", "edit_selected_song"),
    # View
    IpcRoute("increase_font_size", "increase_font_size"),
    IpcRoute("decrease_font_size", "decrease_font_size"),
    IpcRoute("toggle_wave_form", "toggle_waveform"),
    IpcRoute("toggle_advanced_search", "toggle_advanced_search"),
    IpcRoute("close_all_tabs", "close_all_tabs"),
    # Updates (UI notifications, no entry point)
    IpcRoute("display_release_notes"),
    IpcRoute("update_download_progress"),
    IpcRoute("update_ready"),
)

ENTRY_POINT_NAMES = frozenset(r.entry_point for r in IPC_ROUTES if r.entry_point)


def thread_scheduler(delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
    """Run ``callback`` once on a daemon timer thread."""
    timer = threading.Timer(delay_ms / 1000.0, callback)
    timer.daemon = True
    timer.start()
    return timer


class EntryPoints:
    """Callbacks the UI exposes to the bridge, one per entry-point name."""

    def __init__(self):
        self._lock = threading.Lock()
        self._callbacks: Dict[str, Callable[..., Any]] = {}

    def register(self, name: str, callback: Callable[..., Any]) -> None:
        if name not in ENTRY_POINT_NAMES:
            raise ValueError(f"Unknown UI entry point: {name}")
        with self._lock:
            self._callbacks[name] = callback

    def register_many(self, callbacks: Dict[str, Callable[..., Any]]) -> None:
        for name, callback in callbacks.items():
            self.register(name, callback)

    def unregister(self, name: str) -> None:
        with self._lock:
            self._callbacks.pop(name, None)

    def get(self, name: str) -> Optional[Callable[..., Any]]:
        with self._lock:
            return self._callbacks.get(name)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None


class IpcBridge:
    """Subscribes the fixed route table on an ``IpcChannel``."""

    def __init__(
        self,
        channel: IpcChannel,
        entry_points: Optional[EntryPoints] = None,
        ui_events: Optional[UiEvents] = None,
        context_isolated: bool = False,
        scheduler: Optional[Scheduler] = None,
        retry_delay_ms: int = IPC["retry_delay_ms"],
    ):
        self.channel = channel
        self.entry_points = entry_points if entry_points is not None else EntryPoints()
        self.ui_events = ui_events if ui_events is not None else UiEvents()
        self.context_isolated = context_isolated
        self.scheduler: Scheduler = scheduler or thread_scheduler
        self.retry_delay_ms = retry_delay_ms
        self._handlers: Dict[str, Callable[..., None]] = {
            route.event: self._make_handler(route) for route in IPC_ROUTES
        }

    @classmethod
    def from_context(cls, context, entry_points: Optional[EntryPoints] = None, **kwargs) -> "IpcBridge":
        return cls(
            context.channel,
            entry_points=entry_points,
            ui_events=context.ui_events,
            context_isolated=context.context_isolated,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_ipc_handlers(self) -> None:
        for event, handler in self._handlers.items():
            self.channel.remove_all_listeners(event)
            self.channel.on(event, handler)
        logger.info("IPC handlers registered (%d events)", len(self._handlers))

    def remove_ipc_handlers(self) -> None:
        for event in self._handlers:
            self.channel.remove_all_listeners(event)
        logger.info("IPC handlers removed")

    def get_ipc_handlers(self) -> Dict[str, Callable[..., None]]:
        return dict(self._handlers)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _make_handler(self, route: IpcRoute) -> Callable[..., None]:
        notify = getattr(self, f"_notify_{route.event}", None)

        def handler(_event, *args):
            try:
                if notify is not None:
                    notify(*args)
                else:
                    self._dispatch(route, args)
            except Exception as e:
                logger.error("IPC %s dispatch failed: %s", route.event, e)

        handler.__name__ = f"on_{route.event}"
        return handler

    def _dispatch(self, route: IpcRoute, args: Tuple[Any, ...]) -> None:
        if route.defer_when_isolated and self.context_isolated:
            logger.info("Context isolated, deferring %s to the secure bridge", route.event)
            return

        callback = self.entry_points.get(route.entry_point)
        if callback is not None:
            logger.debug("IPC %s -> %s", route.event, route.entry_point)
            callback(*args)
            return

        if not route.retry:
            logger.debug("IPC %s: %s not registered, ignoring", route.event, route.entry_point)
            return

        if self.context_isolated:
            logger.info("Context isolated, deferring %s to the secure bridge", route.event)
            return

        logger.warning(
            "%s not available for %s, retrying in %d ms",
            route.entry_point,
            route.event,
            self.retry_delay_ms,
        )
        self.scheduler(self.retry_delay_ms, lambda: self._retry(route, args))

    def _retry(self, route: IpcRoute, args: Tuple[Any, ...]) -> None:
        callback = self.entry_points.get(route.entry_point)
        if callback is None:
            logger.error("%s still not available after retry, dropping %s", route.entry_point, route.event)
            return
        try:
            callback(*args)
            logger.info("IPC %s delivered to %s on retry", route.event, route.entry_point)
        except Exception as e:
            logger.error("IPC %s retry dispatch failed: %s", route.event, e)

    def _notify_update_download_progress(self, progress=None, *_):
        self.ui_events.emit(UI_EVENTS["update_download_progress"], progress or {})

    def _notify_update_ready(self, version="", *_):
        self.ui_events.emit(UI_EVENTS["update_ready"], {"version": version})

    def _notify_display_release_notes(self, release_name="", release_notes="", *_):
        logger.info("Displaying release notes for %s", release_name)
        self.ui_events.emit(UI_EVENTS["update_release_notes"], {"name": release_name, "notes": release_notes})
        self.ui_events.emit(UI_EVENTS["show_modal"], {"modal": "new_release"})
