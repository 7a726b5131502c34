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
Error taxonomy for the engine.

Three families, all terminal for the invocation:
- UserInputError: bad invocation, message shown verbatim to the user
- ResolutionError: a requested channel name did not resolve
- ExternalActionError: the platform refused or failed a lookup/relocation

str(error) is always the user-facing message.
"""

from typing import Optional


class EngineError(Exception):
    """Base class for every error raised by the engine."""

    message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


# ============================================================================
# User input
# ============================================================================


class UserInputError(EngineError):
    """The invocation itself cannot be served."""


class GuildOnly(UserInputError):
    message = "Command must be used in the server"


class NotInVoiceChannel(UserInputError):
    message = "You must be in a voice channel to use this command"


class EmptyChannel(UserInputError):
    message = "There are no members in the voice channel!"


class InsufficientTeams(UserInputError):
    message = "Need at least two teams to perfom teamup."


class InsufficientParticipants(UserInputError):
    message = "Need at least two members in the voice channel to perfom teamup."


class NotEnoughParticipantsForTeams(UserInputError):
    message = (
        "Number of members in a channel must be at least the amount of teams "
        "to perfom teamup"
    )


class DuplicateDestination(UserInputError):
    """Raised only when duplicate destination rejection is switched on."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Voice channel '{name}' was requested more than once")


# ============================================================================
# Resolution
# ============================================================================


class ResolutionError(EngineError):
    """A caller-supplied reference could not be resolved."""


class UnresolvedChannel(ResolutionError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Voice channel '{name}' not found")


# ============================================================================
# External actions
# ============================================================================


class ExternalActionError(EngineError):
    """The chat platform failed an operation on our behalf."""


class PresenceLookupFailed(ExternalActionError):
    message = "Could not read the members of the voice channel"


class RelocationFailed(ExternalActionError):
    message = "Could not move member"
