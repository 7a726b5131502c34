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

"""Uniform random source used by the selector and the partitioner."""

import random
from typing import Optional, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()


@runtime_checkable
class RandomSource(Protocol):
    """Anything that can draw a uniform integer in [0, n)."""

    def randbelow(self, n: int) -> int:
        """Return a uniformly distributed int in [0, n). n must be positive."""
        ...


class StdRandomSource:
    """RandomSource backed by a stdlib ``random.Random`` instance."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        """
        Initialize random source.

        Args:
            rng: Generator to draw from. Defaults to ``random.SystemRandom``.
        """
        self._rng = rng if rng is not None else random.SystemRandom()

    def randbelow(self, n: int) -> int:
        if n <= 0:
            raise ValueError(f"randbelow requires a positive bound, got {n}")
        return self._rng.randrange(n)


def seeded(seed: int) -> StdRandomSource:
    """Deterministic source for tests and reproducible debugging."""
    logger.debug("random_source_seeded", seed=seed)
    return StdRandomSource(random.Random(seed))


def default_source(seed: Optional[int] = None) -> StdRandomSource:
    """Process-wide source: seeded when a seed is configured, OS entropy otherwise."""
    if seed is not None:
        return seeded(seed)
    return StdRandomSource()
