"""Weight profile storage.

A weight profile is a named ScoringWeights set. Stores are constructed per
process (the CLI builds one per invocation) and own an explicit capacity;
the built-in ``default`` profile is always present and read-only.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from reposcore.scoring import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
DEFAULT_CAPACITY = 32


@dataclass(frozen=True)
class WeightProfile:
    """Named scoring weights.

    Attributes:
        name: Profile identifier
        weights: Validated weights
        description: Human-readable description
        is_default: True only for the built-in default profile
        updated_at: Last save time (UTC)
    """

    name: str
    weights: ScoringWeights
    description: str = ""
    is_default: bool = False
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "weights": self.weights.to_dict(),
            "description": self.description,
            "is_default": self.is_default,
            "updated_at": self.updated_at.isoformat(),
        }


PRESET_PROFILES: tuple[WeightProfile, ...] = (
    WeightProfile(
        name="security-focused",
        description="Emphasizes security and reliability",
        weights=ScoringWeights(
            craft=0.20, reliability=0.30, documentation=0.10,
            security=0.30, impact=0.05, collaboration=0.05,
        ),
    ),
    WeightProfile(
        name="documentation-focused",
        description="Emphasizes documentation",
        weights=ScoringWeights(
            craft=0.20, reliability=0.20, documentation=0.30,
            security=0.15, impact=0.10, collaboration=0.05,
        ),
    ),
    WeightProfile(
        name="impact-focused",
        description="Emphasizes impact and collaboration",
        weights=ScoringWeights(
            craft=0.15, reliability=0.20, documentation=0.10,
            security=0.15, impact=0.25, collaboration=0.15,
        ),
    ),
)


class WeightProfileStore(ABC):
    """Repository of weight profiles."""

    @abstractmethod
    def get(self, name: str) -> WeightProfile | None:
        """Return the named profile, or None."""

    @abstractmethod
    def list_profiles(self) -> list[WeightProfile]:
        """Return all profiles, default first."""

    @abstractmethod
    def save(self, profile: WeightProfile) -> WeightProfile:
        """Create or replace a profile.

        Raises:
            ValueError: If the profile is read-only or the store is full
        """

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete a profile; returns False if missing or read-only."""

    def resolve(self, name: str | None) -> ScoringWeights:
        """Weights for a profile name (default profile when None).

        Raises:
            KeyError: If no profile has that name
        """
        profile = self.get(name or DEFAULT_PROFILE)
        if profile is None:
            raise KeyError(f"Unknown weight profile: {name}")
        return profile.weights


class InMemoryWeightProfileStore(WeightProfileStore):
    """Process-local store with a fixed capacity for user profiles."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, include_presets: bool = False) -> None:
        """Initialize the store.

        Args:
            capacity: Maximum number of user profiles (the default profile is not counted)
            include_presets: Pre-load the built-in preset profiles
        """
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        self.capacity = capacity
        self._default = WeightProfile(
            name=DEFAULT_PROFILE,
            weights=DEFAULT_WEIGHTS,
            description="Default scoring weights",
            is_default=True,
        )
        self._profiles: dict[str, WeightProfile] = {}
        if include_presets:
            for preset in PRESET_PROFILES:
                self.save(preset)

    def __len__(self) -> int:
        return len(self._profiles)

    def get(self, name: str) -> WeightProfile | None:
        if name == DEFAULT_PROFILE:
            return self._default
        return self._profiles.get(name)

    def list_profiles(self) -> list[WeightProfile]:
        return [self._default, *sorted(self._profiles.values(), key=lambda p: p.name)]

    def save(self, profile: WeightProfile) -> WeightProfile:
        if profile.name == DEFAULT_PROFILE:
            raise ValueError("The default weight profile is read-only")
        if profile.name not in self._profiles and len(self._profiles) >= self.capacity:
            raise ValueError(f"Weight profile store is full (capacity {self.capacity})")

        stored = WeightProfile(
            name=profile.name,
            weights=profile.weights,
            description=profile.description,
        )
        self._profiles[profile.name] = stored
        logger.debug("Saved weight profile %s", profile.name)
        return stored

    def delete(self, name: str) -> bool:
        if name == DEFAULT_PROFILE:
            return False
        return self._profiles.pop(name, None) is not None
