"""Figures for the tutorials.

Every function renders with the non-interactive Agg backend, saves a PNG
under ``output_dir`` and returns its path, so the figures can be embedded
in the rendered documents.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for server/CI
import arviz as az
import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from .conjugate import BetaPosterior
from .regression import BayesianResult, OLSResult, RegressionData, predictive_interval

logger = logging.getLogger(__name__)

STYLE_CONFIG = {
    "font.size": 11,
    "axes.titlesize": 13,
    "axes.labelsize": 12,
    "legend.fontsize": 10,
    "figure.dpi": 110,
    "savefig.dpi": 150,
    "savefig.bbox": "tight",
}
plt.rcParams.update(STYLE_CONFIG)
sns.set_style("whitegrid")

C_PRIOR = "#9e9e9e"     # gray
C_POST = "#26a69a"      # teal
C_OLS = "#ff9800"       # orange
C_TRUE = "#ef5350"      # red


def _ensure_dir(output_dir: str) -> Path:
    p = Path(output_dir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def _save(fig, out: Path, filename: str) -> Path:
    fpath = out / filename
    fig.savefig(fpath)
    plt.close(fig)
    logger.info("Saved: %s", fpath)
    return fpath


def plot_belief_trajectory(
    trajectory: Sequence[BetaPosterior],
    true_p: Optional[float] = None,
    output_dir: str = "results",
    filename: str = "belief_trajectory.png",
) -> Path:
    """Posterior mean and 95% credible band after each flip."""
    out = _ensure_dir(output_dir)
    n = np.arange(len(trajectory))
    means = np.array([b.mean for b in trajectory])
    bands = np.array([b.credible_interval(0.95) for b in trajectory])

    fig, ax = plt.subplots(figsize=(8, 4.5))
    ax.plot(n, means, color=C_POST, label="Posterior mean")
    ax.fill_between(n, bands[:, 0], bands[:, 1], color=C_POST, alpha=0.2,
                    label="95% credible interval")
    if true_p is not None:
        ax.axhline(true_p, color=C_TRUE, linestyle="--", label="True P(heads)")
    ax.set_xlabel("Number of flips observed")
    ax.set_ylabel("P(heads)")
    ax.set_ylim(0, 1)
    ax.set_title("Belief About the Coin as Flips Arrive")
    ax.legend(loc="lower right")
    return _save(fig, out, filename)


def plot_beta_densities(
    beliefs: dict[str, BetaPosterior],
    true_p: Optional[float] = None,
    output_dir: str = "results",
    filename: str = "beta_densities.png",
) -> Path:
    """Overlay Beta densities, e.g. the prior and posteriors at checkpoints."""
    out = _ensure_dir(output_dir)
    x = np.linspace(0.0, 1.0, 501)
    palette = sns.color_palette("viridis", n_colors=max(len(beliefs), 1))

    fig, ax = plt.subplots(figsize=(8, 4.5))
    for color, (label, belief) in zip(palette, beliefs.items()):
        ax.plot(x, belief.pdf(x), color=color, label=label)
    if true_p is not None:
        ax.axvline(true_p, color=C_TRUE, linestyle="--", label="True P(heads)")
    ax.set_xlabel("P(heads)")
    ax.set_ylabel("Density")
    ax.set_title("Beta Posterior Densities")
    ax.legend()
    return _save(fig, out, filename)


def plot_posterior(
    idata: az.InferenceData,
    var_names: Sequence[str],
    output_dir: str = "results",
    filename: str = "posterior.png",
    ref_val: Optional[float] = None,
) -> Path:
    """ArviZ posterior plot (density, mean and HDI) for ``var_names``."""
    out = _ensure_dir(output_dir)
    axes = az.plot_posterior(idata, var_names=list(var_names), ref_val=ref_val)
    fig = np.ravel(axes)[0].get_figure()
    return _save(fig, out, filename)


def plot_coefficients(
    data: RegressionData,
    ols: OLSResult,
    bayes: BayesianResult,
    output_dir: str = "results",
    filename: str = "coefficients.png",
) -> Path:
    """OLS point estimates next to posterior means with HDI error bars."""
    out = _ensure_dir(output_dir)
    d = len(data.feature_names)
    y_pos = np.arange(d)

    fig, ax = plt.subplots(figsize=(7, max(3.0, 0.5 * d + 1.0)))
    err = np.vstack([bayes.coefs - bayes.hdi_lo, bayes.hdi_hi - bayes.coefs])
    ax.errorbar(bayes.coefs, y_pos + 0.15, xerr=err, fmt="o", color=C_POST,
                capsize=3, label=f"Posterior mean ({bayes.hdi_prob:.0%} HDI)")
    ax.scatter(ols.coefs, y_pos - 0.15, marker="s", color=C_OLS, label="OLS")
    if data.true_coefs is not None:
        ax.scatter(data.true_coefs, y_pos, marker="x", color=C_TRUE, label="True")
    ax.axvline(0.0, color=C_PRIOR, linewidth=0.8)
    ax.set_yticks(y_pos)
    ax.set_yticklabels(data.feature_names)
    ax.set_xlabel("Coefficient (standardized features)")
    ax.set_title("Regression Coefficients: OLS vs Bayesian")
    ax.legend(loc="best")
    return _save(fig, out, filename)


def plot_predictions(
    data: RegressionData,
    ols: OLSResult,
    bayes: BayesianResult,
    level: float = 0.94,
    output_dir: str = "results",
    filename: str = "predictions.png",
) -> Path:
    """Predicted vs observed on the test split with Bayesian predictive bands."""
    out = _ensure_dir(output_dir)
    y = data.y_test
    order = np.argsort(y)
    lo, hi = predictive_interval(bayes, data.X_test, level)

    fig, ax = plt.subplots(figsize=(8, 4.5))
    idx = np.arange(len(y))
    ax.fill_between(idx, lo[order], hi[order], color=C_POST, alpha=0.2,
                    label=f"{level:.0%} predictive interval")
    ax.plot(idx, bayes.predict(data.X_test)[order], color=C_POST, label="Bayes mean")
    ax.plot(idx, ols.predict(data.X_test)[order], color=C_OLS, linestyle=":",
            label="OLS")
    ax.scatter(idx, y[order], s=10, color="black", label="Observed")
    ax.set_xlabel("Test rows (sorted by observed value)")
    ax.set_ylabel("Target")
    ax.set_title("Test-Set Predictions")
    ax.legend(loc="upper left")
    return _save(fig, out, filename)
