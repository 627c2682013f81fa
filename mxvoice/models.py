"""
Data models for Mx. Voice profiles.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict

from .constants import DEFAULT_PROFILE_NAME, PROFILES


def now_ms() -> int:
    """Milliseconds since the epoch, the timestamp unit used in profile files."""
    return int(time.time() * 1000)


@dataclass
class ProfileInfo:
    """Registry entry for a single user profile."""

    name: str
    description: str = ""
    created_at: int = field(default_factory=now_ms)
    last_used: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "last_used": self.last_used,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileInfo":
        """Create a ProfileInfo from a dictionary."""
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            created_at=data.get("created_at", 0),
            last_used=data.get("last_used", 0),
        )


@dataclass
class ProfileRegistry:
    """All known profiles plus registry metadata."""

    profiles: Dict[str, ProfileInfo] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls, description: str = "Default profile") -> "ProfileRegistry":
        """Registry holding only the default profile."""
        return cls(
            profiles={DEFAULT_PROFILE_NAME: ProfileInfo(DEFAULT_PROFILE_NAME, description)},
            metadata={"version": PROFILES["registry_version"], "created_at": now_ms()},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "profiles": {name: p.to_dict() for name, p in self.profiles.items()},
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProfileRegistry":
        """Create a ProfileRegistry from a dictionary."""
        profiles = {}
        for name, entry in data.get("profiles", {}).items():
            entry = dict(entry)
            entry.setdefault("name", name)
            profiles[name] = ProfileInfo.from_dict(entry)
        return cls(profiles=profiles, metadata=dict(data.get("metadata", {})))


@dataclass
class MigrationStatus:
    """Result of checking for a single-user to multi-profile migration."""

    needs_migration: bool
    is_complete: bool

    @property
    def has_default_user(self) -> bool:
        return not self.needs_migration and self.is_complete
