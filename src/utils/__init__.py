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
General-purpose utilities for Voice Teamup.

Framework-agnostic tools shared by the command layer.
"""

from .rate_limiting import CommandCooldown, QUERY_COOLDOWN, TEAMUP_COOLDOWN
from .channel_locks import ChannelLockRegistry

__all__ = [
    # Rate limiting
    "CommandCooldown",
    "QUERY_COOLDOWN",
    "TEAMUP_COOLDOWN",
    # Concurrency
    "ChannelLockRegistry",
]
