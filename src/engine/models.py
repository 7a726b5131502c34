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

"""
Value types for the selection and partition engine.

Everything here is a per-invocation snapshot: built from a live presence
read, passed through the pipeline, and dropped once the reply is sent.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Participant:
    """A member captured from a voice channel at command time."""

    id: int
    """Account id, unique within a server."""

    display_name: str
    """Name shown in replies (server nickname when set)."""

    is_automated: bool = False
    """True for bot accounts."""

    @property
    def mention(self) -> str:
        """Discord mention markup for this participant."""
        return f"<@{self.id}>"


@dataclass(frozen=True)
class DestinationChannel:
    """A voice channel a team is moved into."""

    id: int
    name: str


@dataclass(frozen=True)
class PartitionRequest:
    """Participants to split and the ordered destinations they go to."""

    participants: Tuple[Participant, ...]
    destinations: Tuple[DestinationChannel, ...]

    @classmethod
    def build(
        cls,
        participants: Sequence[Participant],
        destinations: Sequence[DestinationChannel],
    ) -> "PartitionRequest":
        return cls(participants=tuple(participants), destinations=tuple(destinations))


@dataclass(frozen=True)
class TeamAssignment:
    """One team: its index, where it goes, and who is in it."""

    team_index: int
    destination: DestinationChannel
    members: Tuple[Participant, ...]

    @property
    def label(self) -> str:
        """1-based team name used in replies."""
        return f"Team {self.team_index + 1}"


@dataclass(frozen=True)
class RelocationOutcome:
    """Result of moving a single participant."""

    participant: Participant
    destination: DestinationChannel
    succeeded: bool
    failure_reason: Optional[str] = None


class RelocationPolicy(str, Enum):
    """What the executor does after a relocation fails."""

    FAIL_FAST = "fail_fast"
    """Stop at the first failure; later members stay where they are."""

    BEST_EFFORT = "best_effort"
    """Attempt every member and report the aggregate."""

    @classmethod
    def parse(cls, value: str) -> "RelocationPolicy":
        normalized = value.strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Invalid relocation policy '{value}'. Must be one of: {valid}")


@dataclass
class ExecutionReport:
    """Everything the executor did for one partition."""

    policy: RelocationPolicy
    outcomes: List[RelocationOutcome] = field(default_factory=list)
    skipped: List[Tuple[Participant, DestinationChannel]] = field(default_factory=list)

    @property
    def failures(self) -> List[RelocationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def moved_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def aborted(self) -> bool:
        """True when fail-fast stopped before every member was attempted."""
        return bool(self.skipped)

    @property
    def all_succeeded(self) -> bool:
        return not self.failures and not self.skipped
