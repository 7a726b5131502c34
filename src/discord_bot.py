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

"""Discord bot client.

Owns the gateway connection and the slash command tree, and carries the
per-process collaborators the command handlers are built from:
- bot.presence.GuildPresence: voice presence reads and member moves
- engine.random_source: the shared RandomSource
- utils.channel_locks: optional per-channel serialization
- config.CommandSettings: command-layer settings
"""

import asyncio
from typing import Optional

import discord
from discord import app_commands
import structlog

from bot import GuildPresence
from bot.commands import register_voice_commands
from config import CommandSettings, Config
from engine.random_source import RandomSource, default_source
from utils.channel_locks import ChannelLockRegistry

logger = structlog.get_logger()


class DiscordBot(discord.Client):
    """Discord client exposing the voice channel slash commands in one guild."""

    def __init__(
        self,
        token: str,
        guild_id: int,
        bot_name: str = "Voice Teamup",
        *,
        settings: Optional[CommandSettings] = None,
        random_source: Optional[RandomSource] = None,
        intents: Optional[discord.Intents] = None,
    ):
        """
        Initialize Discord bot.

        Args:
            token: Discord bot token
            guild_id: Guild the commands are synced to
            bot_name: Display name used in logs
            settings: Command settings (defaults if None)
            random_source: Shared RandomSource (built from settings if None)
            intents: Discord intents (auto-configured if None)
        """
        if intents is None:
            intents = discord.Intents.default()
            intents.guilds = True
            intents.voice_states = True  # Voice presence cache
            intents.members = True       # Member cache for display names and moves

        super().__init__(intents=intents)

        self.token = token
        self.guild_id = guild_id
        self.bot_name = bot_name
        self.tree = app_commands.CommandTree(self)
        self._ready = asyncio.Event()
        self._connected = False
        self._connection_task: Optional[asyncio.Task] = None

        self.settings = settings or CommandSettings()
        self.random_source = random_source or default_source(self.settings.random_seed)
        self.presence = GuildPresence(move_reason=f"{bot_name}: teamup")
        self.channel_locks = ChannelLockRegistry(enabled=self.settings.serialize_channel_commands)

        logger.info(
            "discord_bot_initialized",
            bot_name=bot_name,
            guild_id=guild_id,
            relocation_policy=self.settings.relocation_policy.value,
            serialize_channel_commands=self.settings.serialize_channel_commands,
        )

    # ========================================================================
    # Bot Lifecycle
    # ========================================================================

    async def setup_hook(self) -> None:
        """Register commands and sync them to the configured guild."""
        register_voice_commands(self)
        logger.info("commands_registered")

        guild = discord.Object(id=self.guild_id)
        try:
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info(
                "commands_synced_to_guild",
                guild_id=self.guild_id,
                count=len(synced),
                commands=[cmd.name for cmd in synced],
            )
        except discord.HTTPException as e:
            logger.error("command_sync_failed", guild_id=self.guild_id, error=str(e), exc_info=True)

        logger.info("discord_bot_setup_complete")

    # ========================================================================
    # Discord Event Handlers
    # ========================================================================

    async def on_ready(self) -> None:
        """Called when bot is ready (fires on initial connect AND reconnects)."""
        if self.user is None:
            logger.error("discord_bot_ready_but_no_user")
            return

        logger.info(
            "discord_bot_ready",
            bot_name=self.user.name,
            bot_id=self.user.id,
            guilds=len(self.guilds),
        )

        if self.get_guild(self.guild_id) is None:
            logger.warning("configured_guild_not_joined", guild_id=self.guild_id)

        self._connected = True
        self._ready.set()

    async def on_disconnect(self) -> None:
        """Called when bot disconnects."""
        self._connected = False
        logger.warning("discord_bot_disconnected")

    async def on_error(self, event: str, *args, **kwargs) -> None:
        """Called when an error occurs."""
        logger.error("discord_bot_error", event=event, exc_info=True)

    # ========================================================================
    # Connection Management
    # ========================================================================

    async def _drop_gateway_task(self) -> None:
        """Stop the gateway task (if any) and collect its outcome."""
        task, self._connection_task = self._connection_task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning("discord_gateway_task_failed", error=str(e))

    async def connect_bot(self, timeout: float = 30.0) -> None:
        """
        Log in, open the gateway connection and wait until ready.

        Raises:
            ConnectionError: login was refused, the gateway connection ended
                before the bot became ready, or ``timeout`` elapsed
        """
        logger.info("connecting_to_discord")
        try:
            await self.login(self.token)
        except discord.errors.LoginFailure as e:
            logger.error("discord_login_failed", error=str(e))
            raise ConnectionError(f"Discord login failed: {e}") from e

        gateway = asyncio.create_task(self.connect())
        self._connection_task = gateway
        ready = asyncio.create_task(self._ready.wait())
        try:
            await asyncio.wait({gateway, ready}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            ready.cancel()

        if not self._ready.is_set():
            if gateway.done():
                self._connection_task = None
                error = None if gateway.cancelled() else gateway.exception()
                logger.error("discord_gateway_closed_before_ready", error=str(error))
                raise ConnectionError(f"Discord gateway closed before ready: {error}") from error

            logger.error("discord_bot_connection_timeout", timeout=timeout)
            await self._drop_gateway_task()
            raise ConnectionError(f"Discord bot connection timed out after {timeout:g} seconds")

        self._connected = True
        logger.info("discord_bot_connected", guild_id=self.guild_id)

    async def disconnect_bot(self) -> None:
        """Close the gateway connection. No-op when never connected."""
        if not self._connected and self._connection_task is None:
            return

        logger.info("disconnecting_from_discord")
        self._connected = False
        await self._drop_gateway_task()
        if not self.is_closed():
            await self.close()
        logger.info("discord_bot_shutdown_complete")

    @property
    def is_connected(self) -> bool:
        """True between on_ready and the next disconnect."""
        return self._connected


class DiscordBotFactory:
    """Builds a DiscordBot from a loaded Config."""

    @staticmethod
    def create_bot(config: Config) -> DiscordBot:
        return DiscordBot(
            token=config.discord_bot_token,
            guild_id=config.guild_id,
            bot_name=config.bot_name,
            settings=config.commands,
        )
