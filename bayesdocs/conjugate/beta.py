"""Beta-Bernoulli conjugate belief updating.

A Beta(alpha, beta) prior over a coin's probability of heads stays a Beta
after observing flips:

    Beta(alpha, beta)  --[h heads, t tails]-->  Beta(alpha + h, beta + t)

No sampling or numerical integration is involved. Every update returns a
new posterior; priors are never mutated.
"""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np
from scipy.stats import beta as beta_dist

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BetaPosterior:
    """Beta distribution describing belief about P(heads).

    ``n_heads``/``n_tails`` count the evidence absorbed since ``origin``,
    the parameters the belief started from, so when ``origin`` is set
    ``alpha == origin[0] + n_heads`` and ``beta == origin[1] + n_tails``.
    Updates always re-add the cumulative counts onto ``origin`` so that
    splitting the data into batches gives bit-identical parameters to a
    single update. Without an ``origin`` the counts are informational and
    the next update starts from ``(alpha, beta)``.
    Equality and hashing only consider ``alpha`` and ``beta``.
    """

    alpha: float = 1.0
    beta: float = 1.0
    n_heads: int = field(default=0, compare=False)
    n_tails: int = field(default=0, compare=False)
    origin: Optional[tuple[float, float]] = field(
        default=None, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        for name in ("alpha", "beta"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be finite and > 0, got {value!r}")
        if self.n_heads < 0 or self.n_tails < 0:
            raise ValueError("evidence counts must be non-negative")
        if self.origin is not None:
            alpha0, beta0 = self.origin
            if not (
                math.isclose(self.alpha, alpha0 + self.n_heads)
                and math.isclose(self.beta, beta0 + self.n_tails)
            ):
                raise ValueError(
                    f"Beta({self.alpha!r}, {self.beta!r}) does not match origin "
                    f"{self.origin!r} plus {self.n_heads} heads/{self.n_tails} tails"
                )

    @classmethod
    def from_mean(cls, mean: float, concentration: float) -> "BetaPosterior":
        """Beta(mean * kappa, (1 - mean) * kappa)."""
        if not 0.0 < mean < 1.0:
            raise ValueError(f"mean must lie in (0, 1), got {mean!r}")
        if concentration <= 0:
            raise ValueError(f"concentration must be > 0, got {concentration!r}")
        return cls(alpha=mean * concentration, beta=(1.0 - mean) * concentration)

    @property
    def mean(self) -> float:
        return self.alpha / (self.alpha + self.beta)

    @property
    def variance(self) -> float:
        s = self.alpha + self.beta
        return (self.alpha * self.beta) / (s * s * (s + 1))

    @property
    def concentration(self) -> float:
        return self.alpha + self.beta

    @property
    def mode(self) -> Optional[float]:
        """Interior mode; None when the density peaks at a boundary."""
        if self.alpha > 1 and self.beta > 1:
            return (self.alpha - 1) / (self.alpha + self.beta - 2)
        return None

    @property
    def n_observations(self) -> int:
        return self.n_heads + self.n_tails

    def credible_interval(self, level: float = 0.95) -> tuple[float, float]:
        """Equal-tailed credible interval using Beta quantiles."""
        if not 0.0 < level < 1.0:
            raise ValueError(f"level must lie in (0, 1), got {level!r}")
        lo, hi = beta_dist.interval(level, self.alpha, self.beta)
        return (float(lo), float(hi))

    def pdf(self, x):
        return beta_dist.pdf(x, self.alpha, self.beta)

    def as_dict(self) -> dict:
        lo, hi = self.credible_interval(0.95)
        return {
            "alpha": self.alpha,
            "beta": self.beta,
            "mean": self.mean,
            "std": math.sqrt(self.variance),
            "ci95_lo": lo,
            "ci95_hi": hi,
            "n_heads": self.n_heads,
            "n_tails": self.n_tails,
        }


def _as_flip(value) -> bool:
    if isinstance(value, (numbers.Integral, np.bool_)) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Observation must be boolean, got {value!r}")


class BeliefUpdater:
    """Exact posterior updates for the Beta-Bernoulli model."""

    def update(
        self, prior: BetaPosterior, observations: Iterable
    ) -> BetaPosterior:
        """Posterior after observing ``observations`` (True = heads).

        Order is irrelevant; an empty collection returns a posterior equal
        to the prior.
        """
        flips = [_as_flip(o) for o in observations]
        heads = sum(flips)
        return self.update_counts(prior, heads, len(flips) - heads)

    def update_counts(
        self, prior: BetaPosterior, heads: int, tails: int
    ) -> BetaPosterior:
        """Posterior after ``heads`` successes and ``tails`` failures."""
        if heads < 0 or tails < 0:
            raise ValueError(
                f"Counts must be non-negative, got heads={heads}, tails={tails}"
            )
        if prior.origin is None:
            (alpha0, beta0), base_h, base_t = (prior.alpha, prior.beta), 0, 0
        else:
            (alpha0, beta0), base_h, base_t = prior.origin, prior.n_heads, prior.n_tails
        n_heads = base_h + int(heads)
        n_tails = base_t + int(tails)
        posterior = BetaPosterior(
            alpha=alpha0 + n_heads,
            beta=beta0 + n_tails,
            n_heads=n_heads,
            n_tails=n_tails,
            origin=(alpha0, beta0),
        )
        logger.debug(
            "Beta(%.4g, %.4g) + %d heads/%d tails -> Beta(%.4g, %.4g)",
            prior.alpha, prior.beta, heads, tails,
            posterior.alpha, posterior.beta,
        )
        return posterior

    def trajectory(
        self, prior: BetaPosterior, observations: Sequence
    ) -> list[BetaPosterior]:
        """Posterior after every prefix of ``observations``.

        Element ``k`` equals ``update(prior, observations[:k])``; element 0
        is the prior itself.
        """
        posteriors = [prior]
        heads = tails = 0
        for obs in observations:
            if _as_flip(obs):
                heads += 1
            else:
                tails += 1
            posteriors.append(self.update_counts(prior, heads, tails))
        return posteriors
