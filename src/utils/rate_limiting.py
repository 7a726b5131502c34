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
Per-user command cooldowns (sliding window, framework-agnostic).
"""

import math
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional, Tuple

import structlog

logger = structlog.get_logger()


class CommandCooldown:
    """Allow ``rate`` uses per ``per`` seconds for each user."""

    def __init__(
        self,
        rate: int = 3,
        per: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cooldown manager.

        Args:
            rate: Number of uses allowed inside the window
            per: Window length in seconds
            clock: Time source (injectable for tests)
        """
        if rate <= 0:
            raise ValueError(f"rate must be > 0, got {rate}")
        if per <= 0:
            raise ValueError(f"per must be > 0, got {per}")

        self.rate = rate
        self.per = per
        self._clock = clock
        self._uses: Dict[int, Deque[float]] = defaultdict(deque)
        logger.debug("cooldown_initialized", rate=rate, per=per)

    def _prune(self, user_id: int, now: float) -> Deque[float]:
        bucket = self._uses[user_id]
        while bucket and bucket[0] <= now - self.per:
            bucket.popleft()
        return bucket

    def is_rate_limited(self, user_id: int) -> Tuple[bool, Optional[int]]:
        """
        Record a use for ``user_id`` unless the user is over the limit.

        Returns:
            (is_limited, retry_seconds). retry_seconds is None when the use
            was allowed, otherwise whole seconds until the oldest use expires.
        """
        now = self._clock()
        bucket = self._prune(user_id, now)

        if len(bucket) >= self.rate:
            remaining = self.per - (now - bucket[0])
            retry_seconds = max(1, math.ceil(remaining))
            logger.debug(
                "rate_limited",
                user_id=user_id,
                retry_seconds=retry_seconds,
                rate=self.rate,
                per=self.per,
            )
            return True, retry_seconds

        bucket.append(now)
        return False, None

    def usage(self, user_id: int) -> int:
        """Uses recorded for ``user_id`` inside the current window."""
        if user_id not in self._uses:
            return 0
        return len(self._prune(user_id, self._clock()))

    def reset(self, user_id: int) -> None:
        """Forget every use recorded for ``user_id``."""
        if self._uses.pop(user_id, None) is not None:
            logger.debug("cooldown_reset", user_id=user_id)

    def reset_all(self) -> None:
        self._uses.clear()
        logger.debug("all_cooldowns_reset")


# Shared instances
QUERY_COOLDOWN = CommandCooldown(rate=5, per=30.0)   # greeting, list, winner
TEAMUP_COOLDOWN = CommandCooldown(rate=2, per=30.0)  # moves members, keep it rare
