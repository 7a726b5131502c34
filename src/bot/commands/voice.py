"""Voice channel slash command registration.

Registers the four top-level commands on the bot's CommandTree:
- /greeting
- /list_channel_members
- /winner [event] [prize]
- /teamup <channels>

Each command closure delegates to a handler from command_handlers and hands
the CommandResult to send_command_response.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

import discord
from discord import app_commands
import structlog

from config import CommandSettings
from discord_interface import EmbedBuilder
from engine.random_source import RandomSource
from utils.channel_locks import ChannelLockRegistry
from utils.rate_limiting import QUERY_COOLDOWN, TEAMUP_COOLDOWN

from .command_handlers import (
    CommandResult,
    GreetingCommandHandler,
    ListChannelMembersCommandHandler,
    TeamupCommandHandler,
    WinnerCommandHandler,
)

logger = structlog.get_logger()


# ════════════════════════════════════════════════════════════════════════════
# TYPE PROTOCOL: VoiceBot (for type safety)
# ════════════════════════════════════════════════════════════════════════════

@runtime_checkable
class VoiceBot(Protocol):
    """Protocol defining expected bot attributes for voice commands."""
    presence: Any
    settings: CommandSettings
    random_source: RandomSource
    channel_locks: ChannelLockRegistry
    tree: app_commands.CommandTree


@dataclass
class VoiceCommandHandlers:
    """Handlers wired to one bot instance."""

    greeting: GreetingCommandHandler
    list_channel_members: ListChannelMembersCommandHandler
    winner: WinnerCommandHandler
    teamup: TeamupCommandHandler


# ════════════════════════════════════════════════════════════════════════════
# 🔧 HELPER: Response delivery
# ════════════════════════════════════════════════════════════════════════════

async def send_command_response(interaction: discord.Interaction, result: CommandResult) -> None:
    """
    Deliver a CommandResult, using the followup webhook once the
    interaction has been deferred or answered.
    """
    kwargs: dict[str, Any] = {"ephemeral": result.ephemeral}

    if result.success:
        if result.embed is not None:
            kwargs["embed"] = result.embed
        if result.content is not None:
            kwargs["content"] = result.content
    else:
        kwargs["embed"] = result.error_embed or EmbedBuilder.error_embed(
            "An unexpected error occurred. Please try again later."
        )

    if "embed" not in kwargs and "content" not in kwargs:
        kwargs["embed"] = EmbedBuilder.error_embed("Command produced no output.")

    if interaction.response.is_done():
        await interaction.followup.send(**kwargs)
    else:
        await interaction.response.send_message(**kwargs)


async def _run_safely(interaction: discord.Interaction, command: str, coro: Any) -> None:
    """Await a handler and deliver its result; unexpected errors become an error embed."""
    try:
        result = await coro
        await send_command_response(interaction, result)
    except Exception as e:
        logger.error(f"{command}_command_exception", error=str(e), exc_info=True)
        embed = EmbedBuilder.error_embed(f"{command} command error: {str(e)}")
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)


# ════════════════════════════════════════════════════════════════════════════
# 🔧 HELPER: Initialize All Command Handlers
# ════════════════════════════════════════════════════════════════════════════

def build_handlers(bot: VoiceBot) -> VoiceCommandHandlers:
    """Create all command handlers with dependency injection."""
    handlers = VoiceCommandHandlers(
        greeting=GreetingCommandHandler(
            rate_limiter=QUERY_COOLDOWN,
            embed_builder_type=EmbedBuilder,
        ),
        list_channel_members=ListChannelMembersCommandHandler(
            presence=bot.presence,
            rate_limiter=QUERY_COOLDOWN,
            embed_builder_type=EmbedBuilder,
        ),
        winner=WinnerCommandHandler(
            presence=bot.presence,
            rate_limiter=QUERY_COOLDOWN,
            embed_builder_type=EmbedBuilder,
            random_source=bot.random_source,
            settings=bot.settings,
            channel_locks=bot.channel_locks,
        ),
        teamup=TeamupCommandHandler(
            presence=bot.presence,
            rate_limiter=TEAMUP_COOLDOWN,
            embed_builder_type=EmbedBuilder,
            random_source=bot.random_source,
            settings=bot.settings,
            channel_locks=bot.channel_locks,
        ),
    )
    logger.info("handlers_initialized", total=4)
    return handlers


def register_voice_commands(bot: VoiceBot, handlers: Optional[VoiceCommandHandlers] = None) -> VoiceCommandHandlers:
    """
    Register the voice channel slash commands on ``bot.tree``.

    Args:
        bot: Bot exposing presence, settings, random_source, channel_locks, tree
        handlers: Pre-built handlers (tests); built from ``bot`` when omitted

    Returns:
        The handlers the commands delegate to
    """
    if handlers is None:
        handlers = build_handlers(bot)

    @app_commands.command(name="greeting", description="Greet command caller")
    async def greeting_command(interaction: discord.Interaction) -> None:
        await _run_safely(interaction, "greeting", handlers.greeting.execute(interaction))

    @app_commands.command(
        name="list_channel_members",
        description="Lists members present on the same channel as the command caller",
    )
    @app_commands.guild_only()
    async def list_channel_members_command(interaction: discord.Interaction) -> None:
        await _run_safely(
            interaction,
            "list_channel_members",
            handlers.list_channel_members.execute(interaction),
        )

    @app_commands.command(name="winner", description="Pick winner from your voice channel")
    @app_commands.describe(event="Event name", prize="Prize for winner")
    @app_commands.guild_only()
    async def winner_command(
        interaction: discord.Interaction,
        event: Optional[str] = None,
        prize: Optional[str] = None,
    ) -> None:
        await _run_safely(
            interaction,
            "winner",
            handlers.winner.execute(interaction, event=event, prize=prize),
        )

    @app_commands.command(
        name="teamup",
        description="Split your voice channel into random teams and move them",
    )
    @app_commands.describe(channels="Comma-separated list of voice channels for teams")
    @app_commands.guild_only()
    async def teamup_command(interaction: discord.Interaction, channels: str) -> None:
        await _run_safely(
            interaction,
            "teamup",
            handlers.teamup.execute(interaction, channels=channels),
        )

    for command in (
        greeting_command,
        list_channel_members_command,
        winner_command,
        teamup_command,
    ):
        bot.tree.add_command(command)

    logger.info(
        "voice_commands_registered",
        commands=["greeting", "list_channel_members", "winner", "teamup"],
    )
    return handlers
