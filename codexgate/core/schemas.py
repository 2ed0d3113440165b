"""
Data models for Codexgate.

Contains the profile models shared by the registry, the config synthesizer
and the session facade, plus the execution request value.
"""
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import ProfileSource


@dataclass(frozen=True)
class ProfileRow:
    """One (id, name, base_model) row from the profile data source."""
    id: str
    name: str
    base_model: str


class Profile(BaseModel):
    """
    A named execution configuration for codex.

    Built fresh on every registry refresh and never mutated.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Canonical profile identifier")
    name: str = Field(description="Human-readable profile name")
    model: str = Field(description="Underlying model identifier")
    isolated: bool = Field(
        default=False,
        description="Runs under the isolated execution home with restricted settings",
    )


@dataclass(frozen=True)
class ProfileSnapshot:
    """
    Read-only view of the registry after one refresh.

    `profiles` keeps insertion order; the isolated profile, when present,
    lives under the reserved isolated id.
    """
    profiles: dict[str, Profile]
    default_id: Optional[str]
    source: ProfileSource

    @property
    def default(self) -> Optional[Profile]:
        if self.default_id is None:
            return None
        return self.profiles.get(self.default_id)

    @property
    def isolated(self) -> Optional[Profile]:
        for profile in self.profiles.values():
            if profile.isolated:
                return profile
        return None

    def general_profiles(self) -> list[Profile]:
        """Non-isolated profiles in mapping order."""
        return [p for p in self.profiles.values() if not p.isolated]

    def ids(self) -> list[str]:
        return list(self.profiles)


@dataclass
class ExecutionRequest:
    """A single codex execution requested over RPC."""
    prompt: str
    profile: Optional[str] = None
    model: Optional[str] = None
    timeout_seconds: Optional[float] = None
    fresh: bool = True
