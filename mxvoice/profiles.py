"""
User profile management.

Profiles let several people share one installation (and one music database)
while keeping their own preferences. Layout under the data directory::

    profiles.json                      registry of known profiles
    profiles/<name>/preferences.json   one preference document per profile

The active profile name lives in the global store under ``active_profile``.
"""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    DEFAULT_PROFILE_NAME,
    NEW_PROFILE_PREFERENCES,
    PROFILE_SPECIFIC_SETTINGS,
    PROFILES,
)
from .global_store import GlobalStore, backup_corrupt_file, write_json_atomic
from .models import MigrationStatus, ProfileInfo, ProfileRegistry, now_ms

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9\s\-_]")


def sanitize_profile_name(name: str) -> str:
    """Strip characters that are unsafe in a directory name."""
    return _UNSAFE_NAME_CHARS.sub("", name).strip()


def default_preferences() -> Dict[str, Any]:
    """Preference document seeded into a newly created profile."""
    prefs = dict(NEW_PROFILE_PREFERENCES)
    prefs["created_at"] = now_ms()
    prefs["last_used"] = now_ms()
    return prefs


def unwrap_value(value: Any) -> Any:
    """Unwrap values that were saved as ``{"success": ..., "value": ...}`` responses."""
    while isinstance(value, dict) and "success" in value and "value" in value:
        value = value["value"]
    return value


class ProfileManager:
    """Reads and writes the profile registry and per-profile preference files."""

    def __init__(self, home: Path, store: GlobalStore):
        self.home = Path(home)
        self.store = store
        self.profiles_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def profiles_dir(self) -> Path:
        return self.home / PROFILES["profiles_dir"]

    @property
    def registry_path(self) -> Path:
        return self.home / PROFILES["registry_file"]

    def profile_dir(self, profile_name: str) -> Path:
        return self.profiles_dir / sanitize_profile_name(profile_name)

    def preferences_path(self, profile_name: str) -> Path:
        return self.profile_dir(profile_name) / PROFILES["preferences_file"]

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def load_registry(self) -> ProfileRegistry:
        """Load the registry, creating the default one on first use."""
        if not self.registry_path.exists():
            registry = ProfileRegistry.default()
            self.save_registry(registry)
            logger.info("Created default profile registry")
            return registry

        try:
            with open(self.registry_path, encoding="utf-8") as f:
                return ProfileRegistry.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, AttributeError) as e:
            logger.error("Failed to load profile registry: %s", e)
            return ProfileRegistry.default()

    def save_registry(self, registry: ProfileRegistry) -> bool:
        try:
            write_json_atomic(self.registry_path, registry.to_dict())
        except (OSError, TypeError) as e:
            logger.error("Failed to save profile registry: %s", e)
            return False
        logger.debug("Profile registry saved (%d profiles)", len(registry.profiles))
        return True

    def get_available_profiles(self) -> List[ProfileInfo]:
        return list(self.load_registry().profiles.values())

    def profile_exists(self, profile_name: str) -> bool:
        return profile_name in self.load_registry().profiles

    def validate_profile_name(self, name: Any) -> Tuple[bool, Optional[str]]:
        """Check a proposed profile name. Returns ``(valid, error_message)``."""
        if not name or not isinstance(name, str):
            return False, "Profile name is required"

        trimmed = name.strip()
        if not trimmed:
            return False, "Profile name cannot be empty"
        if len(trimmed) > PROFILES["max_name_length"]:
            return False, f"Profile name cannot exceed {PROFILES['max_name_length']} characters"
        if not sanitize_profile_name(trimmed):
            return False, "Profile name must contain letters or numbers"

        # Names sharing a sanitized form would share a preferences directory.
        folded = sanitize_profile_name(trimmed).lower()
        if any(sanitize_profile_name(p.name).lower() == folded for p in self.get_available_profiles()):
            return False, "Profile name already exists"

        return True, None

    def create_profile(self, profile_name: str, description: str = "") -> Tuple[bool, Optional[str]]:
        """Register a new profile and seed its preference document."""
        valid, error = self.validate_profile_name(profile_name)
        if not valid:
            return False, error

        profile_name = profile_name.strip()
        if not self.save_profile_preferences(profile_name, default_preferences()):
            return False, "Could not write profile preferences"

        registry = self.load_registry()
        registry.profiles[profile_name] = ProfileInfo(profile_name, description)
        if not self.save_registry(registry):
            return False, "Could not update profile registry"

        logger.info("Profile created: %s", profile_name)
        return True, None

    def delete_profile(self, profile_name: str) -> Tuple[bool, Optional[str]]:
        """Remove a profile and its preference directory."""
        if profile_name == DEFAULT_PROFILE_NAME:
            return False, f"Cannot delete {DEFAULT_PROFILE_NAME} profile"

        registry = self.load_registry()
        if profile_name not in registry.profiles:
            return False, "Profile does not exist"
        if len(registry.profiles) <= 1:
            return False, "Cannot delete the last profile"

        del registry.profiles[profile_name]
        if not self.save_registry(registry):
            return False, "Could not update profile registry"

        profile_dir = self.profile_dir(profile_name)
        if profile_dir.exists():
            shutil.rmtree(profile_dir, ignore_errors=True)

        if self.get_active_profile() == profile_name:
            self.store.set("active_profile", DEFAULT_PROFILE_NAME)

        logger.info("Profile deleted: %s", profile_name)
        return True, None

    def update_profile_last_used(self, profile_name: str) -> bool:
        registry = self.load_registry()
        profile = registry.profiles.get(profile_name)
        if profile is None:
            return False
        profile.last_used = now_ms()
        return self.save_registry(registry)

    # ------------------------------------------------------------------
    # Active profile
    # ------------------------------------------------------------------

    def get_active_profile(self) -> str:
        return self.store.get("active_profile") or DEFAULT_PROFILE_NAME

    def set_active_profile(self, profile_name: str) -> bool:
        if not self.profile_exists(profile_name):
            logger.warning("Cannot activate unknown profile: %s", profile_name)
            return False
        try:
            self.store.set("active_profile", profile_name)
        except (OSError, TypeError) as e:
            logger.error("Failed to set active profile %s: %s", profile_name, e)
            return False
        self.update_profile_last_used(profile_name)
        logger.info("Active profile: %s", profile_name)
        return True

    # ------------------------------------------------------------------
    # Preference documents
    # ------------------------------------------------------------------

    def load_profile_preferences(self, profile_name: str) -> Optional[Dict[str, Any]]:
        """Load a profile's preference document, or None if it has none yet."""
        path = self.preferences_path(profile_name)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                preferences = json.load(f)
            if not isinstance(preferences, dict):
                raise ValueError("preferences root is not an object")
        except (OSError, ValueError) as e:
            logger.error("Failed to load preferences for %s: %s", profile_name, e)
            backup_corrupt_file(path)
            return None

        return {key: unwrap_value(value) for key, value in preferences.items()}

    def save_profile_preferences(self, profile_name: str, preferences: Dict[str, Any]) -> bool:
        try:
            write_json_atomic(self.preferences_path(profile_name), preferences)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save preferences for %s: %s", profile_name, e)
            return False
        logger.debug("Profile preferences saved: %s", profile_name)
        return True

    # ------------------------------------------------------------------
    # Single-user migration
    # ------------------------------------------------------------------

    def needs_migration(self) -> bool:
        return not self.registry_path.exists()

    def get_migration_status(self) -> MigrationStatus:
        needs = self.needs_migration()
        return MigrationStatus(needs_migration=needs, is_complete=not needs)

    def perform_migration(self) -> bool:
        """Turn a single-user installation into a ``Default User`` profile."""
        if not self.needs_migration():
            logger.debug("No profile migration needed")
            return True

        logger.info("Migrating single-user settings to %s profile", DEFAULT_PROFILE_NAME)
        settings = {key: self.store.get(key) for key in PROFILE_SPECIFIC_SETTINGS if self.store.has(key)}
        settings["created_at"] = now_ms()
        settings["last_used"] = now_ms()

        if not self.save_profile_preferences(DEFAULT_PROFILE_NAME, settings):
            return False

        registry = ProfileRegistry.default("Shared settings from previous installation")
        registry.metadata["migrated_from_single_user"] = True
        if not self.save_registry(registry):
            return False

        try:
            self.store.set("active_profile", DEFAULT_PROFILE_NAME)
        except (OSError, TypeError) as e:
            logger.error("Failed to set active profile after migration: %s", e)
            return False

        logger.info("Profile migration completed (%d settings)", len(settings) - 2)
        return True
