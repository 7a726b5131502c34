"""pytest configuration for the Voice Teamup test suite.

This module provides:
- src/ on sys.path for flat absolute imports (engine, bot, utils, config, ...)
- Async test support via pytest-asyncio (@pytest.mark.asyncio)
- Mock Discord objects: members, voice channels, guilds, interactions
- Engine value factories with explicit return types
"""

from unittest.mock import MagicMock, AsyncMock
from typing import Callable, List, Optional
import sys
from pathlib import Path
import pytest
import discord

# Add src/ to Python path for absolute imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

pytest_plugins = ['pytest_asyncio']

from engine.models import DestinationChannel, Participant  # noqa: E402


def pytest_configure(config) -> None:
    """Register the asyncio marker."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async (deselect with '-m \"not asyncio\"')"
    )


# ════════════════════════════════════════════════════════════════════════════
# ENGINE VALUE FACTORIES
# ════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def make_participants() -> Callable[..., List[Participant]]:
    """Build ``n`` participants with ids 1..n, optionally some bots.

    Usage:
        make_participants(4)               # four humans
        make_participants(3, bots=(2,))    # id 2 is a bot
    """
    def _make(n: int, bots: tuple = ()) -> List[Participant]:
        return [
            Participant(id=i, display_name=f"user{i}", is_automated=i in bots)
            for i in range(1, n + 1)
        ]
    return _make


@pytest.fixture
def destinations() -> List[DestinationChannel]:
    """Three destination channels: Red, Blue, Green."""
    return [
        DestinationChannel(id=901, name="Red"),
        DestinationChannel(id=902, name="Blue"),
        DestinationChannel(id=903, name="Green"),
    ]


# ════════════════════════════════════════════════════════════════════════════
# MOCK DISCORD OBJECTS
# ════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def make_member() -> Callable[..., MagicMock]:
    """Build a mock discord.Member.

    Type Contract:
        id: int
        name: str
        display_name: str
        bot: bool
        move_to: AsyncMock
    """
    def _make(member_id: int, name: Optional[str] = None, bot: bool = False) -> MagicMock:
        member = MagicMock(spec=discord.Member)
        member.id = member_id
        member.name = name or f"user{member_id}"
        member.display_name = name or f"user{member_id}"
        member.bot = bot
        member.move_to = AsyncMock()
        return member
    return _make


@pytest.fixture
def make_voice_channel() -> Callable[..., MagicMock]:
    """Build a mock discord.VoiceChannel (passes isinstance checks)."""
    def _make(channel_id: int, name: str, members: Optional[list] = None) -> MagicMock:
        channel = MagicMock(spec=discord.VoiceChannel)
        channel.id = channel_id
        channel.name = name
        channel.members = members or []
        return channel
    return _make


@pytest.fixture
def make_guild() -> Callable[..., MagicMock]:
    """Build a mock discord.Guild backed by real channel/member lookups."""
    def _make(channels: list, members: Optional[list] = None, guild_id: int = 555) -> MagicMock:
        guild = MagicMock(spec=discord.Guild)
        guild.id = guild_id
        guild.voice_channels = list(channels)
        by_channel_id = {channel.id: channel for channel in channels}
        by_member_id = {member.id: member for member in (members or [])}
        guild.get_channel.side_effect = by_channel_id.get
        guild.get_member.side_effect = by_member_id.get
        return guild
    return _make


@pytest.fixture
def mock_interaction() -> MagicMock:
    """Create a mock Discord interaction with an un-answered response.

    Type Contract:
        user.id: int
        user.name: str
        guild: MagicMock (replace per test)
        response.send_message: AsyncMock
        response.defer: AsyncMock
        response.is_done: MagicMock -> False
        followup.send: AsyncMock
    """
    interaction = MagicMock(spec=discord.Interaction)
    interaction.user = MagicMock()
    interaction.user.id = 12345
    interaction.user.name = "TestUser"
    interaction.guild = MagicMock()
    interaction.guild.id = 555
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.defer = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    return interaction


@pytest.fixture
def mock_cooldown() -> MagicMock:
    """Rate limiter that never limits."""
    cooldown = MagicMock()
    cooldown.is_rate_limited.return_value = (False, None)
    return cooldown


@pytest.fixture
def mock_cooldown_limited() -> MagicMock:
    """Rate limiter that always limits with a 5s retry."""
    cooldown = MagicMock()
    cooldown.is_rate_limited.return_value = (True, 5)
    return cooldown
