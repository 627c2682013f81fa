"""
Privileged-side request handlers for settings.

The UI side calls ``channel.invoke("store-get", key)`` and similar. Each
handler routes through the profile-aware store and answers with a
``{"success": bool, ...}`` dict instead of raising.
"""

import logging
from typing import Any, Callable, Dict

from .channel import IpcChannel
from .profile_store import ProfileAwareStore

logger = logging.getLogger(__name__)

STORE_CHANNELS = (
    "store-get",
    "store-set",
    "store-has",
    "store-delete",
    "profile-get-preferences",
    "profile-save-preferences",
    "profile-switch",
    "profile-get-active",
)


def _guarded(name: str, fn: Callable[..., Dict[str, Any]]) -> Callable[..., Dict[str, Any]]:
    def handler(_event, *args):
        try:
            return fn(*args)
        except Exception as e:
            logger.error("%s failed: %s", name, e)
            return {"success": False, "error": str(e)}

    handler.__name__ = name.replace("-", "_")
    return handler


def build_store_handlers(profile_store: ProfileAwareStore) -> Dict[str, Callable[..., Dict[str, Any]]]:
    def store_get(key):
        return {"success": True, "value": profile_store.get(key)}

    def store_set(key, value):
        success = profile_store.set(key, value)
        return {"success": success, "value": profile_store.get(key) if success else None}

    def store_has(key):
        return {"success": True, "has": profile_store.has(key)}

    def store_delete(key):
        return {"success": profile_store.delete_key(key)}

    def get_preferences():
        return {"success": True, "preferences": profile_store.get_profile_preferences() or {}}

    def save_preferences(preferences):
        return {"success": profile_store.save_profile_preferences(preferences)}

    def switch(profile_name):
        return {"success": profile_store.switch_profile(profile_name)}

    def get_active():
        return {"success": True, "profile": profile_store.profile_manager.get_active_profile()}

    handlers = {
        "store-get": store_get,
        "store-set": store_set,
        "store-has": store_has,
        "store-delete": store_delete,
        "profile-get-preferences": get_preferences,
        "profile-save-preferences": save_preferences,
        "profile-switch": switch,
        "profile-get-active": get_active,
    }
    return {name: _guarded(name, fn) for name, fn in handlers.items()}


def register_store_handlers(channel: IpcChannel, profile_store: ProfileAwareStore) -> None:
    handlers = build_store_handlers(profile_store)
    for name, handler in handlers.items():
        channel.handle(name, handler)
    logger.info("Store handlers registered (%d channels)", len(handlers))


def remove_store_handlers(channel: IpcChannel) -> None:
    for name in STORE_CHANNELS:
        channel.remove_handler(name)
