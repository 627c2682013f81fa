"""
Host window for Mx. Voice.

Registers the UI entry points the IPC bridge dispatches to, shows the hotkey
and holding tank lists, and edits profile preferences through the
profile-aware store.
"""

import logging
import tkinter as tk
from typing import Any, Dict, List, Optional

import customtkinter as ctk

from .config import AppContext
from .constants import HOLDING_TANK_MODES, IPC, SCREEN_MODES, UI, UI_EVENTS
from .ipc_bridge import EntryPoints, IpcBridge
from .logging_setup import apply_debug_preference
from .profile_store import ProfileAwareStore
from .theme import appearance_mode_for, build_palette, resolve_effective_theme, step_font_size

logger = logging.getLogger(__name__)


class MxVoiceApp:
    """Main window wiring the profile store and IPC bridge to widgets."""

    def __init__(self, context: AppContext, profile_store: Optional[ProfileAwareStore] = None):
        self.context = context
        self.profile_store = profile_store or ProfileAwareStore(context)

        self.root = ctk.CTk()
        self.root.title(UI["window_title"])
        self.root.geometry(UI["window_size"])

        self.entry_points = EntryPoints()
        self.bridge = IpcBridge.from_context(context, self.entry_points, scheduler=self._schedule)

        self.hotkey_labels: List[ctk.CTkLabel] = []
        self.hotkey_title_var = tk.StringVar(value="Hotkeys")
        self.status_var = tk.StringVar(value="Ready")
        self.profile_var = tk.StringVar(value=self.context.profile_manager.get_active_profile())
        self._font_size = self.profile_store.get("font_size")
        self._release_notes: Dict[str, Any] = {}
        self._hotkeys: Dict[str, Any] = {}

        self._apply_preferences()
        self._create_ui()
        self._register_entry_points()
        self._subscribe_ui_events()
        self.bridge.register_ipc_handlers()

        self._poll_channel()
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _schedule(self, delay_ms: int, callback) -> Any:
        return self.root.after(delay_ms, callback)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _create_ui(self):
        self.main_frame = ctk.CTkFrame(self.root, corner_radius=0)
        self.main_frame.pack(fill=tk.BOTH, expand=True, padx=UI["padding"], pady=UI["padding"])

        self._create_profile_bar(self.main_frame)

        body = ctk.CTkFrame(self.main_frame, fg_color="transparent")
        body.pack(fill=tk.BOTH, expand=True, pady=(8, 0))
        self._create_hotkey_panel(body)
        self._create_holding_tank_panel(body)

        self._create_status_bar(self.main_frame)
        self._apply_font_size()

    def _create_profile_bar(self, parent):
        bar = ctk.CTkFrame(parent, corner_radius=UI["corner_radius"])
        bar.pack(fill=tk.X)

        ctk.CTkLabel(bar, text="Profile:").pack(side=tk.LEFT, padx=(10, 4), pady=6)
        names = [p.name for p in self.context.profile_manager.get_available_profiles()]
        self.profile_menu = ctk.CTkOptionMenu(
            bar, variable=self.profile_var, values=names or [self.profile_var.get()], command=self._switch_profile
        )
        self.profile_menu.pack(side=tk.LEFT, pady=6)

        ctk.CTkButton(bar, text="Preferences", width=110, command=self._open_preferences_modal).pack(
            side=tk.RIGHT, padx=10, pady=6
        )

    def _create_hotkey_panel(self, parent):
        panel = ctk.CTkFrame(parent, corner_radius=UI["corner_radius"])
        panel.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=(0, 6))

        ctk.CTkLabel(panel, textvariable=self.hotkey_title_var, anchor="w").pack(fill=tk.X, padx=10, pady=(8, 4))
        for idx in range(UI["hotkey_count"]):
            label = ctk.CTkLabel(panel, text=f"F{idx + 1}:", anchor="w")
            label.pack(fill=tk.X, padx=14)
            self.hotkey_labels.append(label)

    def _create_holding_tank_panel(self, parent):
        panel = ctk.CTkFrame(parent, corner_radius=UI["corner_radius"])
        panel.pack(side=tk.LEFT, fill=tk.BOTH, expand=True, padx=(6, 0))

        ctk.CTkLabel(panel, text="Holding Tank", anchor="w").pack(fill=tk.X, padx=10, pady=(8, 4))
        self.holding_tank_box = ctk.CTkTextbox(panel, height=200)
        self.holding_tank_box.pack(fill=tk.BOTH, expand=True, padx=10, pady=(0, 10))
        self.holding_tank_box.configure(state="disabled")

    def _create_status_bar(self, parent):
        status_frame = ctk.CTkFrame(parent, corner_radius=UI["corner_radius"], height=30)
        status_frame.pack(fill=tk.X, pady=(8, 0))

        ctk.CTkLabel(status_frame, textvariable=self.status_var, anchor="w").pack(
            side=tk.LEFT, fill=tk.X, expand=True, padx=10, pady=4
        )
        self.update_progress = ctk.CTkProgressBar(status_frame, width=160)
        self.update_progress.set(0)

    # ------------------------------------------------------------------
    # Entry points and notifications
    # ------------------------------------------------------------------

    def _register_entry_points(self):
        self.entry_points.register_many(
            {
                "populate_hotkeys": self.populate_hotkeys,
                "populate_holding_tank": self.populate_holding_tank,
                "save_hotkey_file": self.save_hotkeys,
                "open_preferences_modal": self._open_preferences_modal,
                "increase_font_size": lambda: self._change_font_size(1),
                "decrease_font_size": lambda: self._change_font_size(-1),
            }
        )

    def _subscribe_ui_events(self):
        events = self.context.ui_events
        events.on(UI_EVENTS["update_download_progress"], self._on_update_progress)
        events.on(UI_EVENTS["update_ready"], self._on_update_ready)
        events.on(UI_EVENTS["update_release_notes"], self._on_release_notes)
        events.on(UI_EVENTS["show_modal"], self._on_show_modal)

    def populate_hotkeys(self, fkeys: Optional[Dict[str, Any]] = None, title: Optional[str] = None):
        fkeys = fkeys or {}
        self.hotkey_title_var.set(title or "Hotkeys")
        for idx, label in enumerate(self.hotkey_labels):
            value = fkeys.get(f"f{idx + 1}") or ""
            label.configure(text=f"F{idx + 1}: {value}")
        self._hotkeys = {k: v for k, v in fkeys.items() if v}

    def populate_holding_tank(self, song_ids: Optional[List[Any]] = None):
        self.holding_tank_box.configure(state="normal")
        self.holding_tank_box.delete("1.0", tk.END)
        for song_id in song_ids or []:
            self.holding_tank_box.insert(tk.END, f"{song_id}\n")
        self.holding_tank_box.configure(state="disabled")

    def save_hotkeys(self):
        if self.profile_store.set("hotkeys", self._hotkeys):
            self.status_var.set("Hotkeys saved")
        else:
            self.status_var.set("Could not save hotkeys")

    def _on_update_progress(self, progress: Dict[str, Any]):
        percent = float(progress.get("percent", 0) or 0)
        if not self.update_progress.winfo_ismapped():
            self.update_progress.pack(side=tk.RIGHT, padx=10)
        self.update_progress.set(max(0.0, min(1.0, percent / 100.0)))
        self.status_var.set(f"Downloading update... {percent:.0f}%")

    def _on_update_ready(self, detail: Dict[str, Any]):
        self.update_progress.pack_forget()
        self.status_var.set(f"Update {detail.get('version', '')} ready - restart to install")

    def _on_release_notes(self, detail: Dict[str, Any]):
        self._release_notes = detail

    def _on_show_modal(self, detail: Dict[str, Any]):
        if detail.get("modal") != "new_release":
            return
        dialog = ctk.CTkToplevel(self.root)
        dialog.title(f"Downloaded New Version: {self._release_notes.get('name', '')}")
        dialog.geometry("480x360")
        notes = ctk.CTkTextbox(dialog)
        notes.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
        notes.insert("1.0", str(self._release_notes.get("notes", "")))
        notes.configure(state="disabled")
        ctk.CTkButton(dialog, text="Close", command=dialog.destroy).pack(pady=(0, 10))

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def _apply_preferences(self):
        screen_mode = self.profile_store.get("screen_mode")
        ctk.set_appearance_mode(appearance_mode_for(screen_mode))
        theme = resolve_effective_theme(screen_mode, ctk.get_appearance_mode())
        self.palette = build_palette(theme)
        self.root.configure(fg_color=self.palette["bg"])
        apply_debug_preference(self.context.debug or bool(self.profile_store.get("debug_log_enabled")))

    def _apply_font_size(self):
        font = ctk.CTkFont(size=step_font_size(self._font_size, 0))
        for label in self.hotkey_labels:
            label.configure(font=font)
        self.holding_tank_box.configure(font=font)

    def _change_font_size(self, delta: int):
        new_size = step_font_size(self._font_size, delta)
        if new_size == self._font_size:
            return
        self._font_size = new_size
        self._apply_font_size()
        if not self.profile_store.set("font_size", new_size):
            logger.warning("Failed to save font size %s", new_size)

    def _switch_profile(self, profile_name: str):
        if not self.profile_store.switch_profile(profile_name):
            self.status_var.set(f"Could not switch to {profile_name}")
            self.profile_var.set(self.context.profile_manager.get_active_profile())
            return
        self._font_size = self.profile_store.get("font_size")
        self._apply_preferences()
        self._apply_font_size()
        self.status_var.set(f"Profile: {profile_name}")

    def _open_preferences_modal(self):
        dialog = ctk.CTkToplevel(self.root)
        dialog.title("Preferences")
        dialog.geometry("360x320")
        dialog.transient(self.root)

        fade_var = tk.StringVar(value=str(self.profile_store.get("fade_out_seconds")))
        mode_var = tk.StringVar(value=self.profile_store.get("screen_mode") or "auto")
        tank_var = tk.StringVar(value=self.profile_store.get("holding_tank_mode") or "storage")
        debug_var = tk.BooleanVar(value=bool(self.profile_store.get("debug_log_enabled")))
        prerelease_var = tk.BooleanVar(value=bool(self.profile_store.get("prerelease_updates")))

        ctk.CTkLabel(dialog, text="Fade out (seconds)").pack(anchor="w", padx=14, pady=(12, 0))
        ctk.CTkEntry(dialog, textvariable=fade_var).pack(fill=tk.X, padx=14)
        ctk.CTkLabel(dialog, text="Screen mode").pack(anchor="w", padx=14, pady=(8, 0))
        ctk.CTkOptionMenu(dialog, variable=mode_var, values=list(SCREEN_MODES)).pack(fill=tk.X, padx=14)
        ctk.CTkLabel(dialog, text="Holding tank mode").pack(anchor="w", padx=14, pady=(8, 0))
        ctk.CTkOptionMenu(dialog, variable=tank_var, values=list(HOLDING_TANK_MODES)).pack(fill=tk.X, padx=14)
        ctk.CTkCheckBox(dialog, text="Debug logging", variable=debug_var).pack(anchor="w", padx=14, pady=(10, 0))
        ctk.CTkCheckBox(dialog, text="Pre-release updates", variable=prerelease_var).pack(anchor="w", padx=14, pady=4)

        def save():
            try:
                fade = float(fade_var.get())
            except ValueError:
                self.status_var.set("Fade out must be a number")
                return
            values = {
                "fade_out_seconds": int(fade) if fade.is_integer() else fade,
                "screen_mode": mode_var.get(),
                "holding_tank_mode": tank_var.get(),
                "debug_log_enabled": debug_var.get(),
                "prerelease_updates": prerelease_var.get(),
            }
            failed = [key for key, value in values.items() if not self.profile_store.set(key, value)]
            self.status_var.set("Preferences saved" if not failed else f"Could not save: {', '.join(failed)}")
            self._apply_preferences()
            dialog.destroy()

        ctk.CTkButton(dialog, text="Save", command=save).pack(pady=12)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def _poll_channel(self):
        """Deliver messages posted from other threads on the Tk thread."""
        self.context.channel.process_pending()
        self._poll_job = self.root.after(IPC["poll_interval_ms"], self._poll_channel)

    def _on_close(self):
        self.bridge.remove_ipc_handlers()
        try:
            self.root.after_cancel(self._poll_job)
        except (AttributeError, tk.TclError):
            pass
        self.root.destroy()

    def run(self):
        """Start the application main loop."""
        self.root.mainloop()
