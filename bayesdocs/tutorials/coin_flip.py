"""Coin-flip walkthrough: exact conjugate updating vs MCMC.

Steps:
    1. Simulate flips of a biased coin
    2. Update a Beta prior flip by flip (closed form)
    3. Optionally sample the same posterior with NUTS as a cross-check
    4. Plot the belief trajectory and the densities at checkpoints
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..conjugate import BeliefUpdater, BetaPosterior, count_outcomes, simulate_flips
from ..sampling import SamplerConfig, fit_coin_model, posterior_mean
from .. import viz

logger = logging.getLogger(__name__)


@dataclass
class CoinFlipReport:
    observations: tuple[bool, ...]
    prior: BetaPosterior
    posterior: BetaPosterior
    trajectory: list[BetaPosterior]
    true_p: float
    mcmc_mean: Optional[float] = None
    figures: list[Path] = field(default_factory=list)

    @property
    def mcmc_error(self) -> Optional[float]:
        if self.mcmc_mean is None:
            return None
        return abs(self.mcmc_mean - self.posterior.mean)

    def __str__(self) -> str:
        heads, tails = count_outcomes(self.observations)
        lo, hi = self.posterior.credible_interval(0.95)
        lines = [
            f"Coin flip: {len(self.observations)} flips, {heads} heads / {tails} tails "
            f"(true p = {self.true_p:.3f})",
            f"  Prior:      Beta({self.prior.alpha:g}, {self.prior.beta:g})",
            f"  Posterior:  Beta({self.posterior.alpha:g}, {self.posterior.beta:g})",
            f"  Mean:       {self.posterior.mean:.4f}",
            f"  95% CI:     [{lo:.4f}, {hi:.4f}]",
        ]
        if self.mcmc_mean is not None:
            lines.append(
                f"  MCMC mean:  {self.mcmc_mean:.4f} (|diff| = {self.mcmc_error:.4f})"
            )
        return "\n".join(lines)


def run(
    cfg: dict,
    output_dir: Optional[str] = None,
    run_mcmc: Optional[bool] = None,
    make_figures: bool = True,
) -> CoinFlipReport:
    """Run the walkthrough with the ``coin_flip`` and ``sampler`` config sections."""
    section = cfg["coin_flip"]
    seed = cfg.get("seed")
    output_dir = output_dir or cfg.get("output_dir", "results")
    if run_mcmc is None:
        run_mcmc = bool(section.get("run_mcmc", True))

    true_p = float(section["p_heads"])
    flips = simulate_flips(int(section["n_flips"]), true_p, seed=seed)
    prior = BetaPosterior(
        alpha=float(section["prior"]["alpha"]),
        beta=float(section["prior"]["beta"]),
    )

    updater = BeliefUpdater()
    trajectory = updater.trajectory(prior, flips)
    posterior = trajectory[-1]
    logger.info(
        "Exact posterior after %d flips: Beta(%g, %g), mean %.4f",
        len(flips), posterior.alpha, posterior.beta, posterior.mean,
    )

    report = CoinFlipReport(
        observations=flips,
        prior=prior,
        posterior=posterior,
        trajectory=trajectory,
        true_p=true_p,
    )

    if run_mcmc and flips:
        sampler = SamplerConfig.from_dict(cfg.get("sampler", {}), random_seed=seed)
        idata = fit_coin_model(flips, prior=prior, config=sampler)
        report.mcmc_mean = float(posterior_mean(idata, "p"))
        logger.info(
            "MCMC posterior mean %.4f vs exact %.4f",
            report.mcmc_mean, posterior.mean,
        )
        if make_figures:
            report.figures.append(viz.plot_posterior(
                idata, ["p"], output_dir=output_dir,
                filename="coin_mcmc_posterior.png", ref_val=true_p,
            ))

    if make_figures:
        checkpoints = [c for c in section.get("checkpoints", []) if c <= len(flips)]
        beliefs = {
            ("Prior" if c == 0 else f"After {c} flips"): trajectory[c]
            for c in checkpoints
        }
        report.figures.append(viz.plot_belief_trajectory(
            trajectory, true_p=true_p, output_dir=output_dir,
        ))
        report.figures.append(viz.plot_beta_densities(
            beliefs, true_p=true_p, output_dir=output_dir,
        ))

    return report
