"""Thin wrappers around PyMC model definitions and NUTS sampling.

All MCMC work is delegated to PyMC; these helpers only build the two
models the tutorials use and hand back ArviZ ``InferenceData``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, fields
from typing import Optional, Sequence

import arviz as az
import numpy as np
import pandas as pd
import pymc as pm

from .conjugate import BetaPosterior

logger = logging.getLogger(__name__)


@dataclass
class SamplerConfig:
    """NUTS settings passed straight to ``pm.sample``."""

    draws: int = 1000
    tune: int = 1000
    chains: int = 2
    cores: int = 1
    target_accept: float = 0.9
    random_seed: Optional[int] = 42
    progressbar: bool = False

    @classmethod
    def from_dict(cls, cfg: dict, random_seed: Optional[int] = None) -> "SamplerConfig":
        """Build from the ``sampler`` section of config.yaml, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in cfg.items() if k in known}
        if random_seed is not None:
            kwargs.setdefault("random_seed", random_seed)
        return cls(**kwargs)

    def sample_kwargs(self) -> dict:
        return {
            "draws": self.draws,
            "tune": self.tune,
            "chains": self.chains,
            "cores": self.cores,
            "target_accept": self.target_accept,
            "random_seed": self.random_seed,
            "progressbar": self.progressbar,
        }


def _sample(model: pm.Model, config: SamplerConfig, label: str) -> az.InferenceData:
    start = time.perf_counter()
    with model:
        idata = pm.sample(return_inferencedata=True, **config.sample_kwargs())
    logger.info(
        "Sampled %s: %d chains x %d draws in %.1fs",
        label, config.chains, config.draws, time.perf_counter() - start,
    )
    return idata


def fit_coin_model(
    observations: Sequence[bool],
    prior: Optional[BetaPosterior] = None,
    config: Optional[SamplerConfig] = None,
) -> az.InferenceData:
    """Sample p in  p ~ Beta(alpha, beta),  y_i ~ Bernoulli(p)."""
    if len(observations) == 0:
        raise ValueError("fit_coin_model needs at least one observation")
    prior = prior or BetaPosterior()
    config = config or SamplerConfig()

    y = np.asarray(observations, dtype=np.int64)
    with pm.Model() as model:
        p = pm.Beta("p", alpha=prior.alpha, beta=prior.beta)
        pm.Bernoulli("y", p=p, observed=y)
    return _sample(model, config, "coin model")


def fit_linear_model(
    X: np.ndarray,
    y: np.ndarray,
    config: Optional[SamplerConfig] = None,
    prior_sigma: float = 10.0,
    feature_names: Optional[Sequence[str]] = None,
) -> az.InferenceData:
    """Sample a Bayesian linear regression.

        intercept ~ Normal(0, s)
        coefs     ~ Normal(0, s)      one per column of X
        sigma     ~ HalfNormal(s)
        y         ~ Normal(intercept + X @ coefs, sigma)
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y, dtype=float)
    if X.ndim != 2:
        raise ValueError(f"X must be 2-D, got shape {X.shape}")
    if y.shape != (X.shape[0],):
        raise ValueError(
            f"y must have shape ({X.shape[0]},), got {y.shape}"
        )
    if prior_sigma <= 0:
        raise ValueError(f"prior_sigma must be > 0, got {prior_sigma}")
    config = config or SamplerConfig()

    names = list(feature_names) if feature_names is not None else [
        f"x{i}" for i in range(X.shape[1])
    ]
    if len(names) != X.shape[1]:
        raise ValueError("feature_names length must match the columns of X")

    with pm.Model(coords={"feature": names}) as model:
        intercept = pm.Normal("intercept", mu=0.0, sigma=prior_sigma)
        coefs = pm.Normal("coefs", mu=0.0, sigma=prior_sigma, dims="feature")
        sigma = pm.HalfNormal("sigma", sigma=prior_sigma)
        mu = intercept + pm.math.dot(X, coefs)
        pm.Normal("y", mu=mu, sigma=sigma, observed=y)
    return _sample(model, config, "linear model")


def posterior_mean(idata: az.InferenceData, var_name: str) -> np.ndarray:
    """Posterior mean of ``var_name`` averaged over chains and draws."""
    return np.asarray(idata.posterior[var_name].mean(dim=("chain", "draw")).values)


def posterior_draws(idata: az.InferenceData, var_name: str) -> np.ndarray:
    """Flatten chains: shape (chains * draws, *var_shape)."""
    values = np.asarray(idata.posterior[var_name].values)
    return values.reshape((-1,) + values.shape[2:])


def summarize(
    idata: az.InferenceData, var_names: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    return az.summary(idata, var_names=list(var_names) if var_names else None)
