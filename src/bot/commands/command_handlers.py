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
Command handlers for the voice channel commands.

Handlers:
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
  👋 Greeting:              static hello
  📋 ListChannelMembers:    who is in my voice channel
  🎉 Winner:                random pick from my voice channel
  🎲 Teamup:                split my voice channel into teams and move them
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Architecture Pattern:
    1. Create handler instance with DI: WinnerCommandHandler(presence, ...)
    2. Register Discord command closure
    3. Closure delegates to handler: await handler.execute(interaction)
    4. Test handler directly with mock dependencies

Winner and teamup run in three phases: read a presence snapshot, validate
it, then act on it. Nothing stops another command from changing the channel
between those phases unless CommandSettings.serialize_channel_commands is on.
"""

from dataclasses import dataclass
from typing import Any, AsyncContextManager, Iterable, List, Optional, Protocol, Tuple

import discord
import structlog

from config import CommandSettings
from engine.errors import EngineError, GuildOnly, InsufficientTeams, NotInVoiceChannel
from engine.executor import AssignmentExecutor, RelocateAction
from engine.models import DestinationChannel, ExecutionReport, Participant, PartitionRequest, TeamAssignment
from engine.partition import MIN_TEAMS, parse_channel_names, partition, resolve_channels
from engine.random_source import RandomSource
from engine.selection import filter_participants, select_one

logger = structlog.get_logger()


# ═════════════════════════════════════════════════════════════════════════════
# DEPENDENCY PROTOCOLS (Define interfaces for injection)
# ═════════════════════════════════════════════════════════════════════════════


class PresenceProvider(Protocol):
    """Interface for voice presence reads and member relocation."""

    def author_voice_channel(self, interaction: discord.Interaction) -> Optional[Any]:
        """Voice channel of the invoking user, or None."""
        ...

    def channel_members(self, guild: discord.Guild, channel_id: int) -> List[Participant]:
        """Members currently present in a voice channel."""
        ...

    def voice_channels(self, guild: discord.Guild) -> List[DestinationChannel]:
        """Every voice channel in the guild."""
        ...

    def relocator(self, guild: discord.Guild) -> RelocateAction:
        """Relocation capability bound to a guild."""
        ...


class RateLimiter(Protocol):
    """Interface for rate limiting."""

    def is_rate_limited(self, user_id: int) -> Tuple[bool, Optional[int]]:
        """Check if user is rate limited. Returns (is_limited, retry_seconds)."""
        ...


class ChannelLocks(Protocol):
    """Interface for optional per-channel serialization."""

    def hold(self, guild_id: int, channel_id: int) -> AsyncContextManager:
        ...


class EmbedBuilderType(Protocol):
    """Interface for embed building utilities."""

    @staticmethod
    def cooldown_embed(retry_seconds: int) -> discord.Embed:
        ...

    @staticmethod
    def error_embed(message: str) -> discord.Embed:
        ...

    @staticmethod
    def winner_embed(
        winner: Participant,
        image_url: str,
        event: Optional[str] = None,
        prize: Optional[str] = None,
    ) -> discord.Embed:
        ...

    @staticmethod
    def teams_embed(
        teams: List[TeamAssignment],
        report: Optional[ExecutionReport] = None,
    ) -> discord.Embed:
        ...

    @staticmethod
    def channel_members_text(channel_name: str, members: Iterable[Participant]) -> str:
        ...


# ═════════════════════════════════════════════════════════════════════════════
# RESULT TYPES (Type-safe command outputs)
# ═════════════════════════════════════════════════════════════════════════════


@dataclass
class CommandResult:
    """Base result type for all command handlers."""

    success: bool
    embed: Optional[discord.Embed] = None
    error_embed: Optional[discord.Embed] = None
    content: Optional[str] = None
    ephemeral: bool = False


def _cooldown_result(
    rate_limiter: RateLimiter,
    embed_builder: EmbedBuilderType,
    interaction: discord.Interaction,
) -> Optional[CommandResult]:
    """Return a failed result when the user is rate limited, else None."""
    is_limited, retry = rate_limiter.is_rate_limited(interaction.user.id)
    if not is_limited:
        return None
    return CommandResult(
        success=False,
        error_embed=embed_builder.cooldown_embed(int(retry or 0)),
        ephemeral=True,
    )


def _error_result(embed_builder: EmbedBuilderType, error: EngineError) -> CommandResult:
    return CommandResult(
        success=False,
        error_embed=embed_builder.error_embed(str(error)),
        ephemeral=True,
    )


def _require_guild(interaction: discord.Interaction) -> discord.Guild:
    if interaction.guild is None:
        raise GuildOnly()
    return interaction.guild


def _require_voice_channel(presence: PresenceProvider, interaction: discord.Interaction) -> Any:
    channel = presence.author_voice_channel(interaction)
    if channel is None:
        raise NotInVoiceChannel()
    return channel


# ═════════════════════════════════════════════════════════════════════════════
# 👋 GREETING
# ═════════════════════════════════════════════════════════════════════════════


class GreetingCommandHandler:
    """Greet the command caller."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        embed_builder_type: type[EmbedBuilderType],
    ):
        self.rate_limiter = rate_limiter
        self.embed_builder = embed_builder_type

    async def execute(self, interaction: discord.Interaction) -> CommandResult:
        """Execute greeting command."""
        logger.info(
            "handler_invoked",
            handler="GreetingCommandHandler",
            user=interaction.user.name,
            user_id=interaction.user.id,
            guild_id=interaction.guild_id,
        )

        limited = _cooldown_result(self.rate_limiter, self.embed_builder, interaction)
        if limited:
            return limited

        return CommandResult(success=True, content=f"hello {interaction.user.name}")


# ═════════════════════════════════════════════════════════════════════════════
# 📋 LIST CHANNEL MEMBERS
# ═════════════════════════════════════════════════════════════════════════════


class ListChannelMembersCommandHandler:
    """List display names of everyone in the caller's voice channel."""

    def __init__(
        self,
        presence: PresenceProvider,
        rate_limiter: RateLimiter,
        embed_builder_type: type[EmbedBuilderType],
    ):
        self.presence = presence
        self.rate_limiter = rate_limiter
        self.embed_builder = embed_builder_type

    async def execute(self, interaction: discord.Interaction) -> CommandResult:
        """Execute list_channel_members command."""
        logger.info(
            "handler_invoked",
            handler="ListChannelMembersCommandHandler",
            user=interaction.user.name,
            user_id=interaction.user.id,
            guild_id=interaction.guild_id,
        )

        limited = _cooldown_result(self.rate_limiter, self.embed_builder, interaction)
        if limited:
            return limited

        try:
            guild = _require_guild(interaction)
            channel = _require_voice_channel(self.presence, interaction)
            members = self.presence.channel_members(guild, channel.id)
        except EngineError as e:
            logger.info("list_channel_members_rejected", user_id=interaction.user.id, reason=str(e))
            return _error_result(self.embed_builder, e)

        logger.info("channel_members_listed", channel_id=channel.id, count=len(members))
        return CommandResult(
            success=True,
            content=self.embed_builder.channel_members_text(channel.name, members),
        )


# ═════════════════════════════════════════════════════════════════════════════
# 🎉 WINNER
# ═════════════════════════════════════════════════════════════════════════════


class WinnerCommandHandler:
    """
    Handler for /winner.

    Pure logic: rate limit → locate caller → snapshot → filter → pick → embed.
    Bot accounts present in the channel stay eligible.
    """

    def __init__(
        self,
        presence: PresenceProvider,
        rate_limiter: RateLimiter,
        embed_builder_type: type[EmbedBuilderType],
        random_source: RandomSource,
        settings: CommandSettings,
        channel_locks: ChannelLocks,
    ):
        """Inject all dependencies explicitly."""
        self.presence = presence
        self.rate_limiter = rate_limiter
        self.embed_builder = embed_builder_type
        self.random_source = random_source
        self.settings = settings
        self.channel_locks = channel_locks

    async def execute(
        self,
        interaction: discord.Interaction,
        event: Optional[str] = None,
        prize: Optional[str] = None,
    ) -> CommandResult:
        """Execute winner command."""
        logger.info(
            "handler_invoked",
            handler="WinnerCommandHandler",
            user=interaction.user.name,
            user_id=interaction.user.id,
            guild_id=interaction.guild_id,
            has_event=event is not None,
            has_prize=prize is not None,
        )

        limited = _cooldown_result(self.rate_limiter, self.embed_builder, interaction)
        if limited:
            return limited

        try:
            guild = _require_guild(interaction)
            channel = _require_voice_channel(self.presence, interaction)

            async with self.channel_locks.hold(guild.id, channel.id):
                raw = self.presence.channel_members(guild, channel.id)
                participants = filter_participants(raw, exclude_automated=False)
                winner = select_one(participants, self.random_source)
        except EngineError as e:
            logger.info("winner_rejected", user_id=interaction.user.id, reason=str(e))
            return _error_result(self.embed_builder, e)

        logger.info(
            "winner_selected",
            guild_id=guild.id,
            channel_id=channel.id,
            pool=len(participants),
            winner_id=winner.id,
        )

        embed = self.embed_builder.winner_embed(
            winner,
            image_url=self.settings.winner_image_url,
            event=event,
            prize=prize,
        )
        return CommandResult(success=True, embed=embed)


# ═════════════════════════════════════════════════════════════════════════════
# 🎲 TEAMUP
# ═════════════════════════════════════════════════════════════════════════════


class TeamupCommandHandler:
    """
    Handler for /teamup.

    Pure logic: rate limit → locate caller → snapshot (bots excluded) →
    parse and resolve destinations → partition → defer → relocate → embed.

    Every check runs before the first move: an unresolved channel name or a
    bad team/member count means nobody is moved.
    """

    def __init__(
        self,
        presence: PresenceProvider,
        rate_limiter: RateLimiter,
        embed_builder_type: type[EmbedBuilderType],
        random_source: RandomSource,
        settings: CommandSettings,
        channel_locks: ChannelLocks,
    ):
        """Inject all dependencies explicitly."""
        self.presence = presence
        self.rate_limiter = rate_limiter
        self.embed_builder = embed_builder_type
        self.random_source = random_source
        self.settings = settings
        self.channel_locks = channel_locks

    async def execute(self, interaction: discord.Interaction, channels: str) -> CommandResult:
        """Execute teamup command."""
        logger.info(
            "handler_invoked",
            handler="TeamupCommandHandler",
            user=interaction.user.name,
            user_id=interaction.user.id,
            guild_id=interaction.guild_id,
            channels=channels,
        )

        limited = _cooldown_result(self.rate_limiter, self.embed_builder, interaction)
        if limited:
            return limited

        try:
            guild = _require_guild(interaction)
            source = _require_voice_channel(self.presence, interaction)

            async with self.channel_locks.hold(guild.id, source.id):
                # Phase 1: snapshot
                raw = self.presence.channel_members(guild, source.id)
                participants = filter_participants(raw, exclude_automated=True)

                # Phase 2: validate
                names = parse_channel_names(channels)
                if len(names) < MIN_TEAMS:
                    raise InsufficientTeams()
                destinations = resolve_channels(
                    names,
                    self.presence.voice_channels(guild),
                    reject_duplicates=self.settings.reject_duplicate_destinations,
                )
                request = PartitionRequest.build(participants, destinations)
                teams = partition(request, self.random_source)

                logger.info(
                    "teamup_partitioned",
                    guild_id=guild.id,
                    source_channel_id=source.id,
                    participants=len(participants),
                    teams=len(teams),
                    destinations=[d.name for d in destinations],
                )

                # Phase 3: execute
                if not interaction.response.is_done():
                    await interaction.response.defer()

                executor = AssignmentExecutor(
                    self.presence.relocator(guild),
                    policy=self.settings.relocation_policy,
                )
                report = await executor.execute(teams)
        except EngineError as e:
            logger.info("teamup_rejected", user_id=interaction.user.id, reason=str(e))
            return _error_result(self.embed_builder, e)

        if not report.all_succeeded:
            logger.warning(
                "teamup_partially_applied",
                guild_id=guild.id,
                moved=report.moved_count,
                failed=len(report.failures),
                skipped=len(report.skipped),
                policy=report.policy.value,
            )

        return CommandResult(
            success=True,
            embed=self.embed_builder.teams_embed(teams, report),
        )
