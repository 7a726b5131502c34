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
Participant filtering and single-winner selection.

The winner path calls filter_participants(..., exclude_automated=False) and
the teamup path calls it with exclude_automated=True. Keep the two call sites
separate: a giveaway may include any present account, teams may not.
"""

from typing import Iterable, List, Sequence, Set

import structlog

from .errors import EmptyChannel
from .models import Participant
from .random_source import RandomSource

logger = structlog.get_logger()


def filter_participants(
    raw: Iterable[Participant],
    exclude_automated: bool,
) -> List[Participant]:
    """
    Normalize a raw presence read into eligible participants.

    Duplicates (by id) are dropped keeping the first occurrence, then bot
    accounts are removed when requested.

    Args:
        raw: Presence snapshot for one channel
        exclude_automated: Drop accounts flagged as automated

    Returns:
        Eligible participants in first-seen order

    Raises:
        EmptyChannel: If nobody is left
    """
    seen: Set[int] = set()
    unique: List[Participant] = []
    for participant in raw:
        if participant.id in seen:
            continue
        seen.add(participant.id)
        unique.append(participant)

    eligible = [p for p in unique if not (exclude_automated and p.is_automated)]

    logger.debug(
        "participants_filtered",
        unique=len(unique),
        eligible=len(eligible),
        exclude_automated=exclude_automated,
    )

    if not eligible:
        raise EmptyChannel()
    return eligible


def select_one(participants: Sequence[Participant], random_source: RandomSource) -> Participant:
    """
    Pick one participant with probability 1/n using a single draw.

    Raises:
        EmptyChannel: If participants is empty
    """
    if not participants:
        raise EmptyChannel()

    index = random_source.randbelow(len(participants))
    winner = participants[index]
    logger.debug("participant_selected", pool=len(participants), index=index, winner_id=winner.id)
    return winner
