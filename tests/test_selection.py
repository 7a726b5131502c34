# Copyright (c) 2025 Stephen Clau
#
# This file is part of Voice Teamup.
#
# Voice Teamup is dual-licensed:
#
# 1. GNU Affero General Public License v3.0 (AGPL-3.0)
#    See LICENSE file for full terms
#
# 2. Commercial License
#    For proprietary use without AGPL requirements
#    Contact: licensing@laudiversified.com
#
# SPDX-License-Identifier: AGPL-3.0-only OR Commercial

"""Tests for participant filtering and single-winner selection."""

from collections import Counter

import pytest

from engine.errors import EmptyChannel
from engine.models import Participant
from engine.random_source import seeded
from engine.selection import filter_participants, select_one


class FixedSource:
    """Always returns the same index (clamped to the bound)."""

    def __init__(self, value: int) -> None:
        self.value = value
        self.calls = []

    def randbelow(self, n: int) -> int:
        self.calls.append(n)
        return min(self.value, n - 1)


# ============================================================================
# filter_participants
# ============================================================================

class TestFilterParticipants:
    """Dedup, bot exclusion and the empty check."""

    def test_keeps_order(self, make_participants) -> None:
        raw = make_participants(4)
        assert filter_participants(raw, exclude_automated=True) == raw

    def test_duplicates_keep_first_occurrence(self) -> None:
        first = Participant(id=1, display_name="alice")
        again = Participant(id=1, display_name="alice (2nd tab)")
        other = Participant(id=2, display_name="bob")

        result = filter_participants([first, other, again], exclude_automated=False)

        assert result == [first, other]

    def test_bots_excluded_when_requested(self, make_participants) -> None:
        raw = make_participants(4, bots=(2, 4))
        result = filter_participants(raw, exclude_automated=True)
        assert [p.id for p in result] == [1, 3]

    def test_bots_kept_when_not_requested(self, make_participants) -> None:
        raw = make_participants(3, bots=(2,))
        result = filter_participants(raw, exclude_automated=False)
        assert [p.id for p in result] == [1, 2, 3]

    def test_empty_input_raises(self) -> None:
        with pytest.raises(EmptyChannel) as exc_info:
            filter_participants([], exclude_automated=False)
        assert str(exc_info.value) == "There are no members in the voice channel!"

    def test_only_bots_raises_when_excluded(self, make_participants) -> None:
        raw = make_participants(2, bots=(1, 2))
        with pytest.raises(EmptyChannel):
            filter_participants(raw, exclude_automated=True)

    def test_accepts_generator(self, make_participants) -> None:
        raw = make_participants(3)
        result = filter_participants((p for p in raw), exclude_automated=True)
        assert len(result) == 3


# ============================================================================
# select_one
# ============================================================================

class TestSelectOne:
    """Single draw, uniform pick."""

    def test_empty_raises(self) -> None:
        with pytest.raises(EmptyChannel):
            select_one([], seeded(1))

    def test_single_participant_always_wins(self, make_participants) -> None:
        only = make_participants(1)
        source = seeded(7)
        for _ in range(20):
            assert select_one(only, source) == only[0]

    def test_uses_exactly_one_draw_bounded_by_pool(self, make_participants) -> None:
        pool = make_participants(5)
        source = FixedSource(3)

        winner = select_one(pool, source)

        assert winner == pool[3]
        assert source.calls == [5]

    def test_winner_is_member_of_pool(self, make_participants) -> None:
        pool = make_participants(6)
        source = seeded(99)
        for _ in range(100):
            assert select_one(pool, source) in pool

    def test_uniform_distribution(self, make_participants) -> None:
        pool = make_participants(4)
        source = seeded(20240601)
        trials = 20000

        counts = Counter(select_one(pool, source).id for _ in range(trials))

        assert set(counts) == {1, 2, 3, 4}
        for participant_id in counts:
            assert abs(counts[participant_id] / trials - 0.25) < 0.02
