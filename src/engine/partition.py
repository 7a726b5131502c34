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
Channel resolution and balanced random partitioning.

Partitioning is a Fisher-Yates shuffle followed by round-robin dealing:
shuffled position i goes to team i mod k. Team sizes therefore differ by at
most one, and the larger teams are exactly the first n mod k teams.
"""

from typing import Iterable, List, MutableSequence, Sequence, Set, TypeVar

import structlog

from .errors import (
    DuplicateDestination,
    InsufficientParticipants,
    InsufficientTeams,
    NotEnoughParticipantsForTeams,
    UnresolvedChannel,
)
from .models import DestinationChannel, PartitionRequest, Participant, TeamAssignment
from .random_source import RandomSource

logger = structlog.get_logger()

T = TypeVar("T")

MIN_TEAMS = 2
MIN_PARTICIPANTS = 2


# ============================================================================
# Channel resolution
# ============================================================================


def parse_channel_names(raw: str) -> List[str]:
    """Split a comma-separated channel list, trimming and dropping empty entries."""
    return [name.strip() for name in raw.split(",") if name.strip()]


def resolve_channels(
    names: Sequence[str],
    available: Iterable[DestinationChannel],
    reject_duplicates: bool = False,
) -> List[DestinationChannel]:
    """
    Resolve requested names to destination channels, all or nothing.

    Matching is exact and case-sensitive; the first channel with the name wins.
    The returned list is aligned with ``names``, which fixes the team index to
    destination mapping.

    Args:
        names: Requested channel names, in team order
        available: The server's voice-capable channels
        reject_duplicates: Fail when a name is requested twice

    Returns:
        Destinations aligned with names

    Raises:
        DuplicateDestination: A name repeats and reject_duplicates is set
        UnresolvedChannel: No channel carries a requested name
    """
    channels = list(available)

    if reject_duplicates:
        requested: Set[str] = set()
        for name in names:
            if name in requested:
                raise DuplicateDestination(name)
            requested.add(name)

    resolved: List[DestinationChannel] = []
    for name in names:
        match = next((channel for channel in channels if channel.name == name), None)
        if match is None:
            logger.info("channel_unresolved", name=name, candidates=len(channels))
            raise UnresolvedChannel(name)
        resolved.append(match)

    logger.debug("channels_resolved", names=list(names), ids=[c.id for c in resolved])
    return resolved


# ============================================================================
# Partitioning
# ============================================================================


def validate_request(request: PartitionRequest) -> None:
    """
    Check team and participant counts. First failing check wins.

    Raises:
        InsufficientTeams: Fewer than two destinations
        InsufficientParticipants: One participant or none
        NotEnoughParticipantsForTeams: More teams than participants
    """
    teams = len(request.destinations)
    participants = len(request.participants)

    if teams < MIN_TEAMS:
        raise InsufficientTeams()
    if participants < MIN_PARTICIPANTS:
        raise InsufficientParticipants()
    if participants < teams:
        raise NotEnoughParticipantsForTeams()


def shuffle(items: MutableSequence[T], random_source: RandomSource) -> None:
    """In-place Fisher-Yates shuffle; every permutation is equally likely."""
    for i in range(len(items) - 1, 0, -1):
        j = random_source.randbelow(i + 1)
        items[i], items[j] = items[j], items[i]


def partition(request: PartitionRequest, random_source: RandomSource) -> List[TeamAssignment]:
    """
    Split participants into balanced random teams.

    Args:
        request: Participants and destinations (validated here)
        random_source: Drives the shuffle

    Returns:
        One TeamAssignment per destination, index-aligned with destinations
    """
    validate_request(request)

    shuffled: List[Participant] = list(request.participants)
    shuffle(shuffled, random_source)

    team_count = len(request.destinations)
    buckets: List[List[Participant]] = [[] for _ in range(team_count)]
    for position, participant in enumerate(shuffled):
        buckets[position % team_count].append(participant)

    teams = [
        TeamAssignment(team_index=index, destination=destination, members=tuple(bucket))
        for index, (destination, bucket) in enumerate(zip(request.destinations, buckets))
    ]

    logger.debug(
        "participants_partitioned",
        participants=len(shuffled),
        teams=team_count,
        sizes=[len(team.members) for team in teams],
    )
    return teams
