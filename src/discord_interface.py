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
Reply rendering for Discord.

EmbedBuilder turns engine results (winner, teams, relocation report) into
discord.Embed payloads and plain-text replies. Nothing here talks to the
network; delivery lives in bot.commands.voice.send_command_response.
"""

from typing import Iterable, Optional, Sequence

import discord
import structlog

from engine.models import ExecutionReport, Participant, TeamAssignment

logger = structlog.get_logger()

# Discord limits
FIELD_VALUE_LIMIT = 1024
MESSAGE_LIMIT = 2000


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, marking the cut with '...'."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class EmbedBuilder:
    """Helper class for creating rich Discord embeds."""

    COLOR_INFO: int = 0x3498DB         # Blue
    COLOR_WARNING: int = 0xFFA500      # Orange
    COLOR_ERROR: int = 0xFF0000        # Red
    COLOR_WINNER: int = 0xFFD700       # Gold
    COLOR_TEAMS: int = 0x00D700        # Green

    WINNER_TITLE: str = "🎉 Congratulations to our Winner! 🎉"

    @staticmethod
    def create_base_embed(
        title: str,
        description: Optional[str] = None,
        color: Optional[int] = None,
    ) -> discord.Embed:
        """Create a base embed with standard styling."""
        return discord.Embed(
            title=title,
            description=description,
            color=color if color is not None else EmbedBuilder.COLOR_INFO,
            timestamp=discord.utils.utcnow(),
        )

    @staticmethod
    def error_embed(message: str) -> discord.Embed:
        """Create error embed.

        Args:
            message: Error message to display

        Returns:
            discord.Embed with error styling
        """
        return EmbedBuilder.create_base_embed(
            title="❌ Error",
            description=message,
            color=EmbedBuilder.COLOR_ERROR,
        )

    @staticmethod
    def cooldown_embed(retry_seconds: int) -> discord.Embed:
        """Create rate limit embed."""
        return EmbedBuilder.create_base_embed(
            title="⏱️ Slow Down!",
            description=f"You're using commands too quickly.\nTry again in {retry_seconds} seconds.",
            color=EmbedBuilder.COLOR_WARNING,
        )

    @staticmethod
    def winner_embed(
        winner: Participant,
        image_url: str,
        event: Optional[str] = None,
        prize: Optional[str] = None,
    ) -> discord.Embed:
        """
        Create the winner announcement.

        Args:
            winner: Selected participant (mentioned in the description)
            image_url: Celebratory image
            event: Optional event name, shown as an "Event" field
            prize: Optional prize, shown as a "Prize" field

        Returns:
            discord.Embed in gold with Prize before Event
        """
        embed = EmbedBuilder.create_base_embed(
            title=EmbedBuilder.WINNER_TITLE,
            description=(
                "Everyone, please give a big round of applause to "
                f"{winner.mention} for winning our contest!"
            ),
            color=EmbedBuilder.COLOR_WINNER,
        )
        embed.set_image(url=image_url)

        if prize:
            embed.add_field(name="Prize", value=truncate(prize, FIELD_VALUE_LIMIT), inline=False)
        if event:
            embed.add_field(name="Event", value=truncate(event, FIELD_VALUE_LIMIT), inline=False)

        return embed

    @staticmethod
    def teams_embed(
        teams: Sequence[TeamAssignment],
        report: Optional[ExecutionReport] = None,
    ) -> discord.Embed:
        """
        Create the teamup summary.

        One inline field per team lists its members. When the report holds
        failures the embed turns orange and gains a "Relocation failures"
        field, plus "Not moved" for members skipped after a fail-fast stop.
        """
        member_count = sum(len(team.members) for team in teams)
        has_problems = report is not None and not report.all_succeeded

        embed = EmbedBuilder.create_base_embed(
            title=f"Splitted {member_count} users into {len(teams)} teams",
            color=EmbedBuilder.COLOR_WARNING if has_problems else EmbedBuilder.COLOR_TEAMS,
        )

        for team in teams:
            members_list = "\n".join(member.display_name for member in team.members)
            embed.add_field(
                name=team.label,
                value=truncate(members_list, FIELD_VALUE_LIMIT),
                inline=True,
            )

        if report is not None and report.failures:
            failures = "\n".join(
                f"{outcome.participant.display_name} → {outcome.destination.name}: "
                f"{outcome.failure_reason or 'unknown error'}"
                for outcome in report.failures
            )
            embed.add_field(
                name="Relocation failures",
                value=truncate(failures, FIELD_VALUE_LIMIT),
                inline=False,
            )

        if report is not None and report.aborted:
            skipped = "\n".join(
                f"{participant.display_name} → {destination.name}"
                for participant, destination in report.skipped
            )
            embed.add_field(
                name="Not moved",
                value=truncate(skipped, FIELD_VALUE_LIMIT),
                inline=False,
            )

        return embed

    @staticmethod
    def channel_members_text(channel_name: str, members: Iterable[Participant]) -> str:
        """Plain-text member list for /list_channel_members."""
        response = f"**Users on {channel_name} channel**\n"
        for member in members:
            response += f"- {member.display_name}\n"
        return truncate(response, MESSAGE_LIMIT)
