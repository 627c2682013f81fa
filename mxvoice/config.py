"""
Runtime configuration for Mx. Voice.

Collaborators are bundled into an explicit ``AppContext`` that is handed to
each component's constructor.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .channel import IpcChannel
from .constants import CONFIG_FILE, HOME_DIR_NAME, HOME_ENV_VAR
from .global_store import GlobalStore
from .profiles import ProfileManager
from .ui_events import UiEvents


def env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def resolve_home(override: Optional[str] = None) -> Path:
    """Data directory: explicit override, then ``MXVOICE_HOME``, then ``~/.mxvoice``."""
    if override:
        return Path(override).expanduser()
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / HOME_DIR_NAME


@dataclass
class AppContext:
    """Everything the profile store and IPC bridge need, passed explicitly."""

    home: Path
    store: GlobalStore
    profile_manager: ProfileManager
    channel: IpcChannel = field(default_factory=IpcChannel)
    ui_events: UiEvents = field(default_factory=UiEvents)
    context_isolated: bool = False
    debug: bool = False

    @classmethod
    def create(
        cls, home: Optional[str] = None, context_isolated: Optional[bool] = None, debug: bool = False
    ) -> "AppContext":
        """Build a context backed by files under the resolved data directory."""
        root = resolve_home(home)
        root.mkdir(parents=True, exist_ok=True)
        store = GlobalStore(root / CONFIG_FILE)
        if context_isolated is None:
            context_isolated = env_bool("MXVOICE_CONTEXT_ISOLATED", False)
        return cls(
            home=root,
            store=store,
            profile_manager=ProfileManager(root, store),
            context_isolated=context_isolated,
            debug=debug,
        )
