"""Discord slash command registration.

Exports register_voice_commands() which registers /greeting,
/list_channel_members, /winner and /teamup.
"""

from .voice import register_voice_commands, send_command_response

__all__ = ["register_voice_commands", "send_command_response"]
