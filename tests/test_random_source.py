"""Tests for the RandomSource implementations."""

import random

import pytest

from engine.random_source import RandomSource, StdRandomSource, default_source, seeded


class TestStdRandomSource:

    def test_satisfies_protocol(self) -> None:
        assert isinstance(StdRandomSource(), RandomSource)

    def test_defaults_to_system_random(self) -> None:
        source = StdRandomSource()
        assert isinstance(source._rng, random.SystemRandom)

    @pytest.mark.parametrize("bound", [1, 2, 7, 1000])
    def test_stays_in_range(self, bound: int) -> None:
        source = seeded(5)
        for _ in range(200):
            assert 0 <= source.randbelow(bound) < bound

    def test_bound_of_one_is_always_zero(self) -> None:
        source = StdRandomSource()
        assert all(source.randbelow(1) == 0 for _ in range(50))

    @pytest.mark.parametrize("bound", [0, -1])
    def test_rejects_non_positive_bound(self, bound: int) -> None:
        with pytest.raises(ValueError, match="positive bound"):
            StdRandomSource().randbelow(bound)


class TestSeeding:

    def test_same_seed_same_sequence(self) -> None:
        first = seeded(42)
        second = seeded(42)
        assert [first.randbelow(100) for _ in range(20)] == [second.randbelow(100) for _ in range(20)]

    def test_default_source_with_seed_is_deterministic(self) -> None:
        a = default_source(3)
        b = default_source(3)
        assert [a.randbelow(10) for _ in range(10)] == [b.randbelow(10) for _ in range(10)]

    def test_default_source_without_seed_uses_os_entropy(self) -> None:
        source = default_source()
        assert isinstance(source._rng, random.SystemRandom)
