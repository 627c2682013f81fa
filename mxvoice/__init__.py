"""
Mx. Voice settings and messaging core.

Profile-aware settings storage and the IPC bridge that forwards messages from
the privileged side of the soundboard to its UI entry points.
"""

from .channel import IpcChannel, IpcError
from .config import AppContext
from .global_store import GlobalStore
from .ipc_bridge import EntryPoints, IpcBridge
from .profile_store import ProfileAwareStore, UnclassifiedSettingError
from .profiles import ProfileManager
from .ui_events import UiEvents

__all__ = [
    "AppContext",
    "EntryPoints",
    "GlobalStore",
    "IpcBridge",
    "IpcChannel",
    "IpcError",
    "ProfileAwareStore",
    "ProfileManager",
    "UiEvents",
    "UnclassifiedSettingError",
]
__version__ = "4.0.0"
