"""Voice presence, channel enumeration and member relocation over discord.py.

Reads come from the guild cache (populated by the voice_states and members
intents), so every read is a point-in-time snapshot with no consistency
guarantee across calls.
"""

from functools import partial
from typing import Any, List, Optional

import discord
import structlog

from engine.errors import PresenceLookupFailed, RelocationFailed
from engine.executor import RelocateAction
from engine.models import DestinationChannel, Participant

logger = structlog.get_logger()


def participant_from_member(member: Any) -> Participant:
    """Snapshot a discord.Member as an engine Participant."""
    return Participant(
        id=member.id,
        display_name=member.display_name,
        is_automated=bool(member.bot),
    )


class GuildPresence:
    """Read voice presence from a guild and move members between channels."""

    def __init__(self, move_reason: str = "Voice Teamup: teamup") -> None:
        """
        Initialize presence adapter.

        Args:
            move_reason: Audit log reason attached to member moves
        """
        self.move_reason = move_reason

    def author_voice_channel(self, interaction: discord.Interaction) -> Optional[Any]:
        """
        Get the voice channel the invoking user is in.

        Args:
            interaction: Slash command interaction

        Returns:
            Voice or stage channel, or None when the user is not connected
        """
        voice = getattr(interaction.user, "voice", None)
        if voice is None:
            return None
        return voice.channel

    def channel_members(self, guild: discord.Guild, channel_id: int) -> List[Participant]:
        """
        Snapshot the members currently present in a voice channel.

        Args:
            guild: Guild owning the channel
            channel_id: Voice channel ID

        Returns:
            Participants in cache order (may be empty)

        Raises:
            PresenceLookupFailed: If the channel is gone or not voice-capable
        """
        channel = guild.get_channel(channel_id)
        if not isinstance(channel, (discord.VoiceChannel, discord.StageChannel)):
            logger.warning(
                "presence_lookup_failed",
                guild_id=guild.id,
                channel_id=channel_id,
                found=type(channel).__name__,
            )
            raise PresenceLookupFailed()

        participants = [participant_from_member(member) for member in channel.members]
        logger.debug(
            "presence_snapshot",
            guild_id=guild.id,
            channel_id=channel_id,
            members=len(participants),
        )
        return participants

    def voice_channels(self, guild: discord.Guild) -> List[DestinationChannel]:
        """List the guild's voice channels in sidebar order."""
        return [
            DestinationChannel(id=channel.id, name=channel.name)
            for channel in guild.voice_channels
        ]

    async def relocate(
        self,
        guild: discord.Guild,
        participant: Participant,
        destination: DestinationChannel,
    ) -> None:
        """
        Move one member into a voice channel.

        Raises:
            RelocationFailed: Member or channel is gone, or Discord refused the move
        """
        member = guild.get_member(participant.id)
        if member is None:
            raise RelocationFailed(f"{participant.display_name} is no longer in the server")

        channel = guild.get_channel(destination.id)
        if channel is None:
            raise RelocationFailed(f"Voice channel '{destination.name}' no longer exists")

        try:
            await member.move_to(channel, reason=self.move_reason)
        except discord.Forbidden:
            raise RelocationFailed("Missing permission to move members")
        except discord.HTTPException as e:
            raise RelocationFailed(f"Discord rejected the move: {e.text or e.status}")

        logger.info(
            "member_relocated",
            guild_id=guild.id,
            member_id=participant.id,
            destination_id=destination.id,
        )

    def relocator(self, guild: discord.Guild) -> RelocateAction:
        """Relocation capability bound to one guild."""
        return partial(self.relocate, guild)
