"""
Test suite for the IPC channel, UI events and the IPC bridge.

Run with: python test_ipc_bridge.py
"""

import os
import sys
import tempfile
import threading
import unittest
from unittest.mock import Mock

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from mxvoice.channel import IpcChannel, IpcError, IpcEvent
from mxvoice.config import AppContext
from mxvoice.constants import IPC, UI_EVENTS
from mxvoice.ipc_bridge import IPC_ROUTES, EntryPoints, IpcBridge
from mxvoice.profile_store import ProfileAwareStore
from mxvoice.store_handlers import STORE_CHANNELS, register_store_handlers, remove_store_handlers
from mxvoice.ui_events import UiEvents


class FakeScheduler:
    """Collects deferred callbacks so tests decide when they fire."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay_ms, callback):
        self.pending.append((delay_ms, callback))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()
        return len(pending)


class BridgeTestCase(unittest.TestCase):
    def setUp(self):
        self.channel = IpcChannel()
        self.entry_points = EntryPoints()
        self.ui_events = UiEvents()
        self.scheduler = FakeScheduler()
        self.bridge = self.make_bridge()
        self.bridge.register_ipc_handlers()

    def make_bridge(self, context_isolated=False):
        return IpcBridge(
            self.channel,
            entry_points=self.entry_points,
            ui_events=self.ui_events,
            context_isolated=context_isolated,
            scheduler=self.scheduler,
        )


class TestIpcChannel(unittest.TestCase):
    """Test the message channel itself."""

    def test_send_passes_event_and_payload(self):
        """Listeners receive the event envelope followed by the payload."""
        channel = IpcChannel()
        listener = Mock()
        channel.on("ping", listener)
        self.assertEqual(channel.send("ping", 1, "two"), 1)

        event = listener.call_args[0][0]
        self.assertIsInstance(event, IpcEvent)
        self.assertEqual(event.name, "ping")
        self.assertEqual(listener.call_args[0][1:], (1, "two"))

    def test_failing_listener_does_not_stop_others(self):
        """A raising listener is logged and later listeners still run."""
        channel = IpcChannel()
        second = Mock()
        channel.on("ping", Mock(side_effect=ValueError("bad payload")))
        channel.on("ping", second)
        with self.assertLogs("mxvoice.channel", level="ERROR"):
            channel.send("ping")
        second.assert_called_once()

    def test_remove_listener(self):
        """Removing one listener leaves the others attached."""
        channel = IpcChannel()
        first, second = Mock(), Mock()
        channel.on("ping", first)
        channel.on("ping", second)
        channel.remove_listener("ping", first)
        self.assertEqual(channel.listener_count("ping"), 1)
        channel.send("ping")
        first.assert_not_called()
        second.assert_called_once()

        channel.remove_listener("ping", second)
        self.assertEqual(channel.listener_count("ping"), 0)
        self.assertEqual(channel.send("ping"), 0)

    def test_post_from_worker_thread(self):
        """Posted messages are delivered on the thread that drains the queue."""
        channel = IpcChannel()
        seen = []
        channel.on("progress", lambda _e, value: seen.append((value, threading.current_thread())))

        worker = threading.Thread(target=lambda: [channel.post("progress", i) for i in range(3)])
        worker.start()
        worker.join()

        self.assertEqual(seen, [])
        self.assertEqual(channel.process_pending(), 3)
        self.assertEqual([v for v, _ in seen], [0, 1, 2])
        self.assertTrue(all(t is threading.current_thread() for _, t in seen))

    def test_invoke_without_handler(self):
        """Invoking an unhandled request raises IpcError."""
        channel = IpcChannel()
        with self.assertRaises(IpcError):
            channel.invoke("store-get", "font_size")

    def test_invoke_returns_handler_result(self):
        """Handlers answer requests until they are removed."""
        channel = IpcChannel()
        channel.handle("echo", lambda _e, value: value * 2)
        self.assertEqual(channel.invoke("echo", 21), 42)
        channel.remove_handler("echo")
        with self.assertRaises(IpcError):
            channel.invoke("echo", 1)


class TestUiEvents(unittest.TestCase):
    """Test the local UI notification hub."""

    def test_emit_and_off(self):
        """Callbacks stop receiving events once removed."""
        events = UiEvents()
        callback = Mock()
        events.on("update-ready", callback)
        events.emit("update-ready", {"version": "1.0"})
        events.off("update-ready", callback)
        events.emit("update-ready", {"version": "2.0"})
        callback.assert_called_once_with({"version": "1.0"})


class TestEntryPoints(unittest.TestCase):
    """Test the explicit entry-point registry."""

    def test_unknown_name_rejected(self):
        """Only names from the route table can be registered."""
        with self.assertRaises(ValueError):
            EntryPoints().register("populateHotkeys", Mock())

    def test_register_replaces(self):
        """Registering a name again replaces the earlier callback."""
        entry_points = EntryPoints()
        first, second = Mock(), Mock()
        entry_points.register("populate_hotkeys", first)
        entry_points.register("populate_hotkeys", second)
        self.assertIs(entry_points.get("populate_hotkeys"), second)
        entry_points.unregister("populate_hotkeys")
        self.assertNotIn("populate_hotkeys", entry_points)


class TestRegistration(BridgeTestCase):
    """Test bulk registration and removal."""

    def test_every_route_is_registered_once(self):
        """Registering twice never stacks a second listener."""
        self.bridge.register_ipc_handlers()
        for route in IPC_ROUTES:
            self.assertEqual(self.channel.listener_count(route.event), 1, route.event)
        self.assertEqual(set(self.bridge.get_ipc_handlers()), {r.event for r in IPC_ROUTES})

    def test_remove_stops_all_dispatch(self):
        """No listener is left after removing the handlers."""
        populate = Mock()
        self.entry_points.register("populate_hotkeys", populate)
        self.bridge.remove_ipc_handlers()

        for route in IPC_ROUTES:
            self.assertEqual(self.channel.send(route.event, {}), 0)
        populate.assert_not_called()
        self.assertEqual(self.scheduler.pending, [])


class TestDispatch(BridgeTestCase):
    """Test delivery to entry points."""

    def test_fkey_load_invokes_entry_point_synchronously(self):
        """A registered entry point is called with the payload during send."""
        populate = Mock()
        self.entry_points.register("populate_hotkeys", populate)
        fkeys = {"f1": "101", "f2": "102"}
        self.channel.send("fkey_load", fkeys, "Show 1")
        populate.assert_called_once_with(fkeys, "Show 1")
        self.assertEqual(self.scheduler.pending, [])

    def test_missing_entry_point_retries_once(self):
        """A retryable event is delivered once the entry point appears."""
        populate = Mock()
        self.channel.send("fkey_load", {"f1": "7"}, "Late")

        self.assertEqual(len(self.scheduler.pending), 1)
        self.assertEqual(self.scheduler.pending[0][0], IPC["retry_delay_ms"])

        self.entry_points.register("populate_hotkeys", populate)
        self.assertEqual(self.scheduler.run_all(), 1)
        self.assertEqual(self.scheduler.run_all(), 0)
        populate.assert_called_once_with({"f1": "7"}, "Late")

    def test_retry_gives_up_when_still_missing(self):
        """The retry logs an error when the entry point is still absent."""
        self.channel.send("holding_tank_load", [1, 2, 3])
        with self.assertLogs("mxvoice.ipc_bridge", level="ERROR"):
            self.scheduler.run_all()
        self.assertEqual(self.scheduler.pending, [])

    def test_non_retry_route_ignores_missing_entry_point(self):
        """Non-retryable events are dropped without scheduling anything."""
        self.channel.send("show_preferences")
        self.assertEqual(self.scheduler.pending, [])

    def test_dispatch_failure_keeps_listener(self):
        """A raising entry point is logged and later messages still arrive."""
        populate = Mock(side_effect=[KeyError("f13"), None])
        self.entry_points.register("populate_hotkeys", populate)

        with self.assertLogs("mxvoice.ipc_bridge", level="ERROR"):
            self.channel.send("fkey_load", {"f13": "1"})
        self.assertEqual(self.channel.listener_count("fkey_load"), 1)

        self.channel.send("fkey_load", {"f1": "1"})
        self.assertEqual(populate.call_count, 2)

    def test_toggle_wave_form_maps_to_toggle_waveform(self):
        """The waveform toggle event reaches its differently named entry point."""
        toggle = Mock()
        self.entry_points.register("toggle_waveform", toggle)
        self.channel.send("toggle_wave_form")
        toggle.assert_called_once_with()


class TestContextIsolation(BridgeTestCase):
    """Test the isolated-mode no-ops."""

    def setUp(self):
        super().setUp()
        self.bridge.remove_ipc_handlers()
        self.bridge = self.make_bridge(context_isolated=True)
        self.bridge.register_ipc_handlers()

    def test_missing_entry_point_is_not_retried(self):
        """Isolated bridges leave missing entry points to the secure bridge."""
        self.channel.send("fkey_load", {"f1": "1"})
        self.assertEqual(self.scheduler.pending, [])

    def test_present_entry_point_still_called(self):
        """Isolation does not block registered entry points."""
        populate = Mock()
        self.entry_points.register("populate_holding_tank", populate)
        self.channel.send("holding_tank_load", [4])
        populate.assert_called_once_with([4])

    def test_dialog_loads_are_deferred(self):
        """Add dialogs are skipped under isolation even when registered."""
        bulk_add, add = Mock(), Mock()
        self.entry_points.register("show_bulk_add_modal", bulk_add)
        self.entry_points.register("handle_add_dialog_load", add)
        self.channel.send("bulk_add_dialog_load", "/music")
        self.channel.send("add_dialog_load", "/music/song.mp3")
        bulk_add.assert_not_called()
        add.assert_not_called()


class TestUpdateNotifications(BridgeTestCase):
    """Test events that become local UI notifications."""

    def test_download_progress(self):
        """Download progress becomes a UI event, with an empty dict by default."""
        received = []
        self.ui_events.on(UI_EVENTS["update_download_progress"], received.append)
        self.channel.send("update_download_progress", {"percent": 42.5})
        self.channel.send("update_download_progress", None)
        self.assertEqual(received, [{"percent": 42.5}, {}])

    def test_update_ready(self):
        """Update ready carries the version to UI listeners."""
        received = []
        self.ui_events.on(UI_EVENTS["update_ready"], received.append)
        self.channel.send("update_ready", "4.1.0")
        self.assertEqual(received, [{"version": "4.1.0"}])

    def test_release_notes_then_modal(self):
        """Release notes are published before the modal is requested."""
        order = []
        self.ui_events.on(UI_EVENTS["update_release_notes"], lambda d: order.append(("notes", d)))
        self.ui_events.on(UI_EVENTS["show_modal"], lambda d: order.append(("modal", d)))
        self.channel.send("display_release_notes", "4.1.0", "<p>Fixes</p>")
        self.assertEqual(
            order,
            [("notes", {"name": "4.1.0", "notes": "<p>Fixes</p>"}), ("modal", {"modal": "new_release"})],
        )


class TestThreadScheduler(unittest.TestCase):
    """Test the default timer-based retry."""

    def test_retry_fires_on_timer(self):
        """The default scheduler retries on a real timer thread."""
        channel = IpcChannel()
        entry_points = EntryPoints()
        bridge = IpcBridge(channel, entry_points=entry_points, retry_delay_ms=20)
        bridge.register_ipc_handlers()

        delivered = threading.Event()
        calls = []

        def populate(song_ids):
            calls.append(song_ids)
            delivered.set()

        channel.send("holding_tank_load", [9])
        entry_points.register("populate_holding_tank", populate)
        self.assertTrue(delivered.wait(2.0))
        self.assertEqual(calls, [[9]])


class TestStoreHandlers(unittest.TestCase):
    """Test the privileged-side settings request handlers."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.context = AppContext.create(self._tmp.name, context_isolated=False)
        self.context.profile_manager.perform_migration()
        self.profile_store = ProfileAwareStore(self.context)
        register_store_handlers(self.context.channel, self.profile_store)
        self.channel = self.context.channel

    def tearDown(self):
        self._tmp.cleanup()

    def test_set_get_has_delete(self):
        """Key requests route through the profile-aware store."""
        self.assertEqual(self.channel.invoke("store-set", "font_size", 15), {"success": True, "value": 15})
        self.assertEqual(self.channel.invoke("store-get", "font_size"), {"success": True, "value": 15})
        self.assertEqual(self.channel.invoke("store-has", "font_size"), {"success": True, "has": True})
        self.assertEqual(self.channel.invoke("store-delete", "font_size"), {"success": True})
        self.assertEqual(self.channel.invoke("store-get", "font_size"), {"success": True, "value": 11})

    def test_profile_requests(self):
        """Profile requests read, save and switch documents."""
        self.assertEqual(self.channel.invoke("profile-get-active"), {"success": True, "profile": "Default User"})
        self.assertEqual(self.channel.invoke("profile-switch", "Nobody"), {"success": False})

        saved = self.channel.invoke("profile-save-preferences", {"screen_mode": "dark"})
        self.assertEqual(saved, {"success": True})
        prefs = self.channel.invoke("profile-get-preferences")
        self.assertEqual(prefs["preferences"], {"screen_mode": "dark"})

    def test_handler_errors_become_failures(self):
        """Handler exceptions come back as failure dicts."""
        with self.assertLogs("mxvoice.store_handlers", level="ERROR"):
            result = self.channel.invoke("store-get")
        self.assertFalse(result["success"])
        self.assertIn("error", result)

    def test_remove_store_handlers(self):
        """Removed handlers no longer answer requests."""
        remove_store_handlers(self.channel)
        for name in STORE_CHANNELS:
            with self.assertRaises(IpcError):
                self.channel.invoke(name)


if __name__ == "__main__":
    unittest.main(verbosity=2)
