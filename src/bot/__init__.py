"""Discord bot module - adapters between discord.py and the engine."""

from .presence import GuildPresence, participant_from_member

__all__ = [
    "GuildPresence",
    "participant_from_member",
]
