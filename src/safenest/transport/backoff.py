from __future__ import annotations

import math
import random
from typing import Callable

from ..constants import Limits

JITTER_RATIO = 0.25


def compute_backoff(
    attempt: int,
    base_delay_ms: int,
    rng: Callable[[], float] = random.random,
) -> int:
    """
    Delay in milliseconds before retry number ``attempt + 1``.

    ``base * 2**attempt`` plus uniform jitter in ``[0, 25%)`` of that delay,
    capped at ``Limits.MAX_BACKOFF_MS``. ``rng`` must return floats in
    ``[0, 1)``; inject a fixed one for deterministic results.
    """
    if attempt < 0:
        raise ValueError(f"attempt must be non-negative, got {attempt}")
    if base_delay_ms <= 0:
        raise ValueError(f"base_delay_ms must be positive, got {base_delay_ms}")

    # base * 2**15 exceeds the cap for any base >= 1.
    if attempt >= 15:
        return Limits.MAX_BACKOFF_MS

    delay = base_delay_ms * (1 << attempt)
    jitter = math.floor(rng() * JITTER_RATIO * delay)
    return min(delay + jitter, Limits.MAX_BACKOFF_MS)
