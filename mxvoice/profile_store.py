"""
Profile-aware settings store.

Routes each setting key either to the shared global store or to the active
profile's preference document, based on the static tables in ``constants``.
Global and per-profile data never mix: writing a profile key leaves the
global store untouched and vice versa.

Every public operation recovers from internal failures by falling back to the
global store. Only preference-document persistence failures reach the caller,
as a ``False`` return.
"""

import logging
import threading
from typing import Any, Dict, Optional

from .config import AppContext
from .constants import (
    GLOBAL_SETTINGS,
    PROFILE_SETTING_DEFAULTS,
    PROFILE_SPECIFIC_SETTINGS,
    SCOPE_GLOBAL,
    SCOPE_PROFILE,
    SCOPE_UNCLASSIFIED,
)
from .profiles import sanitize_profile_name

logger = logging.getLogger(__name__)


class UnclassifiedSettingError(KeyError):
    """Raised in strict mode for a key that is neither global nor profile-specific."""


def is_profile_specific(key: str) -> bool:
    return key in PROFILE_SPECIFIC_SETTINGS


def is_global_setting(key: str) -> bool:
    return key in GLOBAL_SETTINGS


def classify(key: str) -> str:
    """Return the static scope of a setting key."""
    if is_global_setting(key):
        return SCOPE_GLOBAL
    if is_profile_specific(key):
        return SCOPE_PROFILE
    return SCOPE_UNCLASSIFIED


def get_default_value(key: str) -> Any:
    """Static default for a profile-specific key, or None if it has none."""
    return PROFILE_SETTING_DEFAULTS.get(key)


class ProfileAwareStore:
    """Uniform get/set/has/delete over global settings and profile preferences."""

    def __init__(self, context: AppContext, strict: bool = False):
        self.store = context.store
        self.profile_manager = context.profile_manager
        self.strict = strict
        self._locks_guard = threading.Lock()
        self._profile_locks: Dict[str, threading.Lock] = {}
        logger.info("Profile store initialized (strict=%s)", strict)

    def _profile_lock(self, profile: str) -> threading.Lock:
        """Lock serializing read-modify-write of one profile's document."""
        # Keyed like the document path, so aliases of one file share a lock.
        key = sanitize_profile_name(profile)
        with self._locks_guard:
            lock = self._profile_locks.get(key)
            if lock is None:
                lock = self._profile_locks[key] = threading.Lock()
            return lock

    def _scope(self, key: str) -> str:
        scope = classify(key)
        if scope == SCOPE_UNCLASSIFIED and self.strict:
            raise UnclassifiedSettingError(key)
        return scope

    # ------------------------------------------------------------------
    # Single keys
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any:
        scope = self._scope(key)
        try:
            if scope == SCOPE_PROFILE:
                profile = self.profile_manager.get_active_profile()
                preferences = self.profile_manager.load_profile_preferences(profile)
                if preferences and key in preferences:
                    logger.debug("get %s from profile %s", key, profile)
                    return preferences[key]
                logger.debug("get %s: default for profile %s", key, profile)
                return get_default_value(key)

            value = self.store.get(key)
            logger.debug("get %s (%s)", key, scope)
            return value
        except Exception as e:
            logger.error("Profile store get failed for %s: %s", key, e)
            return self.store.get(key)

    def set(self, key: str, value: Any) -> bool:
        scope = self._scope(key)
        try:
            if scope == SCOPE_PROFILE:
                profile = self.profile_manager.get_active_profile()
                with self._profile_lock(profile):
                    preferences = self.profile_manager.load_profile_preferences(profile) or {}
                    preferences[key] = value
                    success = self.profile_manager.save_profile_preferences(profile, preferences)
                if success:
                    logger.debug("set %s in profile %s", key, profile)
                else:
                    logger.error("Failed to save %s for profile %s", key, profile)
                return bool(success)

            self.store.set(key, value)
            logger.debug("set %s (%s)", key, scope)
            return True
        except Exception as e:
            logger.error("Profile store set failed for %s: %s", key, e)
            try:
                self.store.set(key, value)
                return True
            except Exception as fallback_error:
                logger.error("Fallback global set failed for %s: %s", key, fallback_error)
                return False

    def has(self, key: str) -> bool:
        scope = self._scope(key)
        try:
            if scope == SCOPE_PROFILE:
                profile = self.profile_manager.get_active_profile()
                preferences = self.profile_manager.load_profile_preferences(profile)
                return bool(preferences) and key in preferences
            return self.store.has(key)
        except Exception as e:
            logger.error("Profile store has failed for %s: %s", key, e)
            return self.store.has(key)

    def delete_key(self, key: str) -> bool:
        scope = self._scope(key)
        try:
            if scope == SCOPE_PROFILE:
                profile = self.profile_manager.get_active_profile()
                with self._profile_lock(profile):
                    preferences = self.profile_manager.load_profile_preferences(profile)
                    if preferences and key in preferences:
                        del preferences[key]
                        return bool(self.profile_manager.save_profile_preferences(profile, preferences))
                # Never written: already deleted.
                return True

            self.store.delete(key)
            return True
        except Exception as e:
            logger.error("Profile store delete failed for %s: %s", key, e)
            try:
                self.store.delete(key)
                return True
            except Exception as fallback_error:
                logger.error("Fallback global delete failed for %s: %s", key, fallback_error)
                return False

    # ------------------------------------------------------------------
    # Whole documents
    # ------------------------------------------------------------------

    def get_profile_preferences(self) -> Optional[Dict[str, Any]]:
        try:
            profile = self.profile_manager.get_active_profile()
            return self.profile_manager.load_profile_preferences(profile)
        except Exception as e:
            logger.error("Failed to get profile preferences: %s", e)
            return None

    def save_profile_preferences(self, preferences: Dict[str, Any]) -> bool:
        try:
            profile = self.profile_manager.get_active_profile()
            with self._profile_lock(profile):
                return bool(self.profile_manager.save_profile_preferences(profile, preferences))
        except Exception as e:
            logger.error("Failed to save profile preferences: %s", e)
            return False

    def switch_profile(self, profile_name: str) -> bool:
        logger.info("Switching profile to %s", profile_name)
        try:
            success = bool(self.profile_manager.set_active_profile(profile_name))
        except Exception as e:
            logger.error("Failed to switch profile to %s: %s", profile_name, e)
            return False
        if success:
            logger.info("Profile switched to %s", profile_name)
        return success
