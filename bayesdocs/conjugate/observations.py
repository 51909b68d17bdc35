"""Simulated coin-flip observations."""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .beta import _as_flip


def simulate_flips(
    n: int, p_heads: float, seed: Optional[int] = None
) -> tuple[bool, ...]:
    """Draw ``n`` independent flips of a coin with P(heads) = ``p_heads``.

    The result is an immutable tuple; the same seed always yields the same
    sequence.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    if not 0.0 <= p_heads <= 1.0:
        raise ValueError(f"p_heads must lie in [0, 1], got {p_heads}")
    rng = np.random.default_rng(seed)
    return tuple(bool(v) for v in rng.random(n) < p_heads)


def count_outcomes(observations: Iterable) -> tuple[int, int]:
    """Return ``(heads, tails)``; accepts the same flips as ``BeliefUpdater.update``."""
    flips = [_as_flip(o) for o in observations]
    heads = sum(flips)
    return heads, len(flips) - heads
