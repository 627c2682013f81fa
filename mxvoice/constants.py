"""
Constants and static tables for Mx. Voice.

Setting classification, default values, IPC event names and the theme
palette are compiled in here rather than configured at runtime.
"""

from typing import Any, Dict, Tuple


# =============================================================================
# SETTING CLASSIFICATION
# =============================================================================

# Settings stored per profile
PROFILE_SPECIFIC_SETTINGS: Tuple[str, ...] = (
    "fade_out_seconds",
    "screen_mode",
    "font_size",
    "browser_width",
    "browser_height",
    "window_state",
    "debug_log_enabled",
    "prerelease_updates",
    "holding_tank_mode",
    "holding_tank",
    "hotkeys",
)

# Settings shared by every profile on the installation
GLOBAL_SETTINGS: Tuple[str, ...] = (
    "music_directory",
    "hotkey_directory",
    "database_directory",
    "first_run_completed",
    "active_profile",
    "profile_selection_shown",
)

# Defaults returned for profile-specific keys that were never written
PROFILE_SETTING_DEFAULTS: Dict[str, Any] = {
    "fade_out_seconds": 2,
    "screen_mode": "auto",
    "font_size": 11,
    "browser_width": 1280,
    "browser_height": 1024,
    "window_state": None,
    "debug_log_enabled": False,
    "prerelease_updates": False,
    "holding_tank_mode": "storage",
    "holding_tank": None,
    "hotkeys": None,
}

SCOPE_GLOBAL = "global"
SCOPE_PROFILE = "profile"
SCOPE_UNCLASSIFIED = "unclassified"


# =============================================================================
# PROFILES
# =============================================================================

DEFAULT_PROFILE_NAME = "Default User"

PROFILES = {
    "registry_file": "profiles.json",
    "profiles_dir": "profiles",
    "preferences_file": "preferences.json",
    "registry_version": "1.0.0",
    "max_name_length": 50,
}

# Seeded into a newly created profile's preference document
NEW_PROFILE_PREFERENCES: Dict[str, Any] = {
    "fade_out_seconds": 2,
    "screen_mode": "auto",
    "font_size": 11,
    "column_order": None,
    "debug_log_enabled": False,
    "prerelease_updates": False,
    "holding_tank_mode": "storage",
}


# =============================================================================
# FILE/PATH SETTINGS
# =============================================================================

HOME_DIR_NAME = ".mxvoice"
HOME_ENV_VAR = "MXVOICE_HOME"
CONFIG_FILE = "config.json"
LOG_FILE = "mxvoice.log"


# =============================================================================
# IPC SETTINGS
# =============================================================================

IPC = {
    "retry_delay_ms": 1000,
    "poll_interval_ms": 50,
}

# Local UI notifications synthesized from transport messages
UI_EVENTS = {
    "update_download_progress": "update-download-progress",
    "update_ready": "update-ready",
    "update_release_notes": "update-release-notes",
    "show_modal": "show-modal",
}


# =============================================================================
# DISPLAY SETTINGS
# =============================================================================

SCREEN_MODES = ("auto", "light", "dark")

FONT_SIZE = {
    "min": 5,
    "max": 25,
    "default": 11,
}

HOLDING_TANK_MODES = ("storage", "playlist")

UI = {
    "window_title": "Mx. Voice",
    "window_size": "900x640",
    "hotkey_count": 12,
    "corner_radius": 8,
    "padding": 12,
}


class ThemeColors:
    """Base colours for the light and dark themes."""

    LIGHT_BG = "#F4F5F7"
    LIGHT_PANEL = "#FFFFFF"
    LIGHT_ACCENT = "#2F6FED"

    DARK_BG = "#1E1F22"
    DARK_PANEL = "#2B2D31"
    DARK_ACCENT = "#5865F2"

    SUCCESS = "#23A559"
    DANGER = "#DA373C"
    WARNING = "#F0B232"

    TEXT_ON_DARK = "#F2F3F5"
    TEXT_ON_LIGHT = "#1E1F22"
