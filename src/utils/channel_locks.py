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
Optional serialization of commands that act on the same voice channel.

Commands read a presence snapshot, validate it, then act on it. Without a
lock two commands on one channel can interleave between those phases and
act on different snapshots. When enabled, the registry hands out one
asyncio.Lock per (guild, channel) so that sequence runs one at a time.
"""

import asyncio
import contextlib
from typing import AsyncContextManager, Dict, Tuple

import structlog

logger = structlog.get_logger()


class ChannelLockRegistry:
    """Lazily created asyncio locks keyed by (guild_id, channel_id)."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._locks: Dict[Tuple[int, int], asyncio.Lock] = {}

    def lock_for(self, guild_id: int, channel_id: int) -> asyncio.Lock:
        key = (guild_id, channel_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def hold(self, guild_id: int, channel_id: int) -> AsyncContextManager:
        """Context manager guarding one channel, a no-op when disabled."""
        if not self.enabled:
            return contextlib.nullcontext()

        lock = self.lock_for(guild_id, channel_id)
        if lock.locked():
            logger.info("channel_lock_contended", guild_id=guild_id, channel_id=channel_id)
        return lock

    def __len__(self) -> int:
        return len(self._locks)
