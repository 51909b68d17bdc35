"""Bayesian linear regression compared against ordinary least squares.

Both models see the same standardized train split. OLS gives point
estimates; the Bayesian model gives a posterior over the intercept, the
coefficients and the noise scale, from which predictive intervals follow.
With weak priors and enough data the posterior means should land close to
the OLS solution, which is the point the tutorial makes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import arviz as az
import numpy as np
from sklearn.datasets import load_diabetes
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import StandardScaler

from .sampling import SamplerConfig, fit_linear_model, posterior_draws, posterior_mean

logger = logging.getLogger(__name__)

DATASETS = ("diabetes", "synthetic")


@dataclass
class RegressionData:
    """Standardized train/test split.

    Attributes:
        X_train, X_test: Feature matrices, scaled with train-split statistics.
        y_train, y_test: Targets (unscaled).
        feature_names: Column names.
        true_coefs: Generating coefficients (synthetic data only).
    """

    X_train: np.ndarray
    X_test: np.ndarray
    y_train: np.ndarray
    y_test: np.ndarray
    feature_names: list[str]
    true_coefs: Optional[np.ndarray] = None


@dataclass
class OLSResult:
    coefs: np.ndarray
    intercept: float
    model: LinearRegression

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.model.predict(X)


@dataclass
class BayesianResult:
    """Posterior summary of the Bayesian linear model.

    ``hdi_lo``/``hdi_hi`` bound the highest-density interval of each
    coefficient at ``hdi_prob``.
    """

    coefs: np.ndarray
    intercept: float
    sigma: float
    hdi_lo: np.ndarray
    hdi_hi: np.ndarray
    hdi_prob: float
    idata: az.InferenceData

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.intercept + np.asarray(X) @ self.coefs


@dataclass
class RegressionComparison:
    """Test-set metrics for OLS vs the Bayesian posterior mean."""

    ols_rmse: float
    bayes_rmse: float
    ols_mae: float
    bayes_mae: float
    ols_r2: float
    bayes_r2: float
    max_coef_diff: float
    interval_coverage: Optional[float] = None

    def __str__(self) -> str:
        lines = [
            "OLS vs Bayesian Linear Regression (test split):",
            f"{'Metric':<12} {'OLS':>10} {'Bayes':>10}",
            f"{'-' * 34}",
            f"{'RMSE':<12} {self.ols_rmse:>10.4f} {self.bayes_rmse:>10.4f}",
            f"{'MAE':<12} {self.ols_mae:>10.4f} {self.bayes_mae:>10.4f}",
            f"{'R2':<12} {self.ols_r2:>10.4f} {self.bayes_r2:>10.4f}",
            f"Max |coef diff|: {self.max_coef_diff:.4f}",
        ]
        if self.interval_coverage is not None:
            lines.append(f"Predictive interval coverage: {self.interval_coverage:.1%}")
        return "\n".join(lines)


def _synthetic(n: int, seed: Optional[int]) -> tuple[np.ndarray, np.ndarray, list[str], np.ndarray]:
    rng = np.random.default_rng(seed)
    true_coefs = np.array([2.5, -1.0, 0.5])
    X = rng.normal(size=(n, len(true_coefs)))
    y = 1.0 + X @ true_coefs + rng.normal(scale=1.0, size=n)
    return X, y, [f"x{i}" for i in range(len(true_coefs))], true_coefs


def load_dataset(
    name: str = "diabetes",
    test_size: float = 0.25,
    seed: Optional[int] = 42,
    n_samples: int = 400,
) -> RegressionData:
    """Load a regression dataset and split it into standardized train/test sets."""
    true_coefs = None
    if name == "diabetes":
        bunch = load_diabetes()
        X, y, names = bunch.data, bunch.target, list(bunch.feature_names)
    elif name == "synthetic":
        X, y, names, true_coefs = _synthetic(n_samples, seed)
    else:
        raise ValueError(f"Unknown dataset: {name}. Use one of {DATASETS}.")

    X_train, X_test, y_train, y_test = train_test_split(
        X, y, test_size=test_size, random_state=seed
    )
    scaler = StandardScaler().fit(X_train)
    X_train = scaler.transform(X_train)
    X_test = scaler.transform(X_test)
    if true_coefs is not None:
        # Coefficients on the standardized scale
        true_coefs = true_coefs * scaler.scale_

    logger.info(
        "Loaded %s: %d train / %d test rows, %d features",
        name, len(y_train), len(y_test), X_train.shape[1],
    )
    return RegressionData(
        X_train=X_train,
        X_test=X_test,
        y_train=np.asarray(y_train, dtype=float),
        y_test=np.asarray(y_test, dtype=float),
        feature_names=names,
        true_coefs=true_coefs,
    )


def fit_ols(data: RegressionData) -> OLSResult:
    model = LinearRegression().fit(data.X_train, data.y_train)
    return OLSResult(coefs=model.coef_.copy(), intercept=float(model.intercept_), model=model)


def fit_bayesian(
    data: RegressionData,
    config: Optional[SamplerConfig] = None,
    prior_sigma: float = 10.0,
    hdi_prob: float = 0.94,
) -> BayesianResult:
    """Fit the Bayesian linear model with NUTS and summarize its posterior."""
    # The prior scale has to cover the target's magnitude
    scale = max(
        prior_sigma,
        2.0 * float(np.std(data.y_train)),
        2.0 * float(np.abs(np.mean(data.y_train))),
    )
    idata = fit_linear_model(
        data.X_train,
        data.y_train,
        config=config,
        prior_sigma=scale,
        feature_names=data.feature_names,
    )
    hdi = az.hdi(idata, var_names=["coefs"], hdi_prob=hdi_prob)["coefs"].values
    return BayesianResult(
        coefs=posterior_mean(idata, "coefs"),
        intercept=float(posterior_mean(idata, "intercept")),
        sigma=float(posterior_mean(idata, "sigma")),
        hdi_lo=np.asarray(hdi[:, 0]),
        hdi_hi=np.asarray(hdi[:, 1]),
        hdi_prob=hdi_prob,
        idata=idata,
    )


def predictive_interval(
    result: BayesianResult,
    X: np.ndarray,
    level: float = 0.94,
    seed: Optional[int] = 0,
) -> tuple[np.ndarray, np.ndarray]:
    """Equal-tailed posterior predictive interval for each row of ``X``.

    Each posterior draw contributes one predictive draw
    ``intercept + X @ coefs + Normal(0, sigma)``, so uncertainty in the
    coefficients widens the band as much as the noise scale does. The
    bounds are the ``level`` quantiles of the pooled predictive draws.
    """
    if not 0.0 < level < 1.0:
        raise ValueError(f"level must lie in (0, 1), got {level!r}")
    X = np.asarray(X, dtype=float)
    coefs = posterior_draws(result.idata, "coefs")          # (S, D)
    intercept = posterior_draws(result.idata, "intercept")  # (S,)
    sigma = posterior_draws(result.idata, "sigma")          # (S,)

    rng = np.random.default_rng(seed)
    mu = intercept[:, None] + coefs @ X.T                   # (S, N)
    y_draws = mu + rng.normal(0.0, 1.0, size=mu.shape) * sigma[:, None]
    tail = (1.0 - level) / 2.0
    lo, hi = np.quantile(y_draws, [tail, 1.0 - tail], axis=0)
    return lo, hi


def compare(
    data: RegressionData,
    ols: OLSResult,
    bayes: BayesianResult,
    level: Optional[float] = None,
) -> RegressionComparison:
    """Score both models on the test split."""
    y = data.y_test
    pred_ols = ols.predict(data.X_test)
    pred_bayes = bayes.predict(data.X_test)

    coverage = None
    if level is not None:
        lo, hi = predictive_interval(bayes, data.X_test, level)
        coverage = float(np.mean((y >= lo) & (y <= hi)))

    comparison = RegressionComparison(
        ols_rmse=float(np.sqrt(mean_squared_error(y, pred_ols))),
        bayes_rmse=float(np.sqrt(mean_squared_error(y, pred_bayes))),
        ols_mae=float(mean_absolute_error(y, pred_ols)),
        bayes_mae=float(mean_absolute_error(y, pred_bayes)),
        ols_r2=float(r2_score(y, pred_ols)),
        bayes_r2=float(r2_score(y, pred_bayes)),
        max_coef_diff=float(np.max(np.abs(ols.coefs - bayes.coefs))),
        interval_coverage=coverage,
    )
    logger.info(
        "Test RMSE: OLS=%.4f Bayes=%.4f (max coef diff %.4f)",
        comparison.ols_rmse, comparison.bayes_rmse, comparison.max_coef_diff,
    )
    return comparison
