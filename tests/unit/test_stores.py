"""Unit tests for weight profile storage."""

import pytest

from reposcore.scoring import DEFAULT_WEIGHTS, ScoringWeights
from reposcore.stores import PRESET_PROFILES, InMemoryWeightProfileStore, WeightProfile

SECURITY_HEAVY = ScoringWeights(
    craft=0.10, reliability=0.10, documentation=0.10, security=0.50, impact=0.10, collaboration=0.10
)


class TestInMemoryWeightProfileStore:
    """Tests for InMemoryWeightProfileStore."""

    def test_default_profile_always_present(self) -> None:
        """Test an empty store still resolves the default profile."""
        store = InMemoryWeightProfileStore()

        assert len(store) == 0
        assert store.resolve(None) == DEFAULT_WEIGHTS
        assert [p.name for p in store.list_profiles()] == ["default"]

    def test_default_profile_is_read_only(self) -> None:
        """Test the default profile can be neither replaced nor deleted."""
        store = InMemoryWeightProfileStore()

        with pytest.raises(ValueError, match="read-only"):
            store.save(WeightProfile(name="default", weights=SECURITY_HEAVY))
        assert store.delete("default") is False

    def test_save_get_delete(self) -> None:
        """Test the basic profile lifecycle."""
        store = InMemoryWeightProfileStore()

        saved = store.save(WeightProfile(name="strict", weights=SECURITY_HEAVY, is_default=True))

        assert saved.is_default is False
        assert store.resolve("strict") == SECURITY_HEAVY
        assert store.delete("strict") is True
        assert store.get("strict") is None

    def test_capacity_is_enforced(self) -> None:
        """New profiles beyond capacity are rejected; replacing is allowed."""
        store = InMemoryWeightProfileStore(capacity=1)
        store.save(WeightProfile(name="a", weights=SECURITY_HEAVY))

        store.save(WeightProfile(name="a", weights=DEFAULT_WEIGHTS))
        with pytest.raises(ValueError, match="full"):
            store.save(WeightProfile(name="b", weights=SECURITY_HEAVY))
        assert store.resolve("a") == DEFAULT_WEIGHTS

    def test_presets(self) -> None:
        """Presets are listed after the default profile, sorted by name."""
        store = InMemoryWeightProfileStore(include_presets=True)

        assert len(store) == len(PRESET_PROFILES)
        assert [p.name for p in store.list_profiles()] == [
            "default",
            "documentation-focused",
            "impact-focused",
            "security-focused",
        ]

    def test_unknown_profile_raises(self) -> None:
        """Test resolving an unknown name raises KeyError."""
        with pytest.raises(KeyError):
            InMemoryWeightProfileStore().resolve("nope")

    def test_stores_are_independent(self) -> None:
        """Test two stores never share profiles."""
        first = InMemoryWeightProfileStore()
        second = InMemoryWeightProfileStore()

        first.save(WeightProfile(name="strict", weights=SECURITY_HEAVY))

        assert second.get("strict") is None
