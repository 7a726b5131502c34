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
Sequential application of a partition.

Members are moved one at a time, teams in index order and members in team
order. Each move is awaited before the next starts; there is no timeout,
no retry, and no rollback of moves that already happened.
"""

from typing import Awaitable, Callable, Optional, Sequence

import structlog

from .errors import ExternalActionError
from .models import (
    DestinationChannel,
    ExecutionReport,
    Participant,
    RelocationOutcome,
    RelocationPolicy,
    TeamAssignment,
)

logger = structlog.get_logger()

RelocateAction = Callable[[Participant, DestinationChannel], Awaitable[None]]
"""Moves one participant into one channel; raises ExternalActionError on failure."""

RELOCATION_POLICY = RelocationPolicy.FAIL_FAST
"""Default failure policy: stop at the first failed move."""


class AssignmentExecutor:
    """Apply TeamAssignments by relocating each member in turn."""

    def __init__(
        self,
        relocate: RelocateAction,
        policy: Optional[RelocationPolicy] = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            relocate: Relocation capability for the current server
            policy: Failure policy (defaults to RELOCATION_POLICY)
        """
        self.relocate = relocate
        self.policy = policy or RELOCATION_POLICY

    async def execute(self, teams: Sequence[TeamAssignment]) -> ExecutionReport:
        """
        Relocate every member of every team.

        Only ExternalActionError counts as a per-member failure; anything
        else propagates to the caller.

        Returns:
            ExecutionReport with one outcome per attempted member and, under
            fail-fast, the members left unmoved
        """
        report = ExecutionReport(policy=self.policy)
        pending = [
            (member, team.destination)
            for team in sorted(teams, key=lambda t: t.team_index)
            for member in team.members
        ]

        for position, (member, destination) in enumerate(pending):
            try:
                await self.relocate(member, destination)
            except ExternalActionError as e:
                report.outcomes.append(
                    RelocationOutcome(
                        participant=member,
                        destination=destination,
                        succeeded=False,
                        failure_reason=str(e),
                    )
                )
                logger.warning(
                    "relocation_failed",
                    member_id=member.id,
                    destination_id=destination.id,
                    error=str(e),
                    policy=self.policy.value,
                )
                if self.policy is RelocationPolicy.FAIL_FAST:
                    report.skipped.extend(pending[position + 1:])
                    break
                continue

            report.outcomes.append(
                RelocationOutcome(participant=member, destination=destination, succeeded=True)
            )
            logger.debug("relocation_succeeded", member_id=member.id, destination_id=destination.id)

        logger.info(
            "assignments_executed",
            policy=self.policy.value,
            attempted=len(report.outcomes),
            moved=report.moved_count,
            failed=len(report.failures),
            skipped=len(report.skipped),
        )
        return report
