"""Conjugate Beta-Bernoulli belief updates for coin-flip estimation."""

from .beta import BeliefUpdater, BetaPosterior
from .observations import count_outcomes, simulate_flips

__all__ = [
    "BeliefUpdater",
    "BetaPosterior",
    "count_outcomes",
    "simulate_flips",
]
