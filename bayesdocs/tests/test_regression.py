"""Tests for the regression walkthrough and its PyMC wrappers.

Tests cover:
  - Dataset loading, train/test split and train-only standardization
  - OLS recovery of known synthetic coefficients
  - SamplerConfig construction from config.yaml sections
  - Input validation before any sampling happens
  - Posterior predictive intervals on hand-built posteriors
  - (slow) NUTS posterior agreement with OLS and the exact coin posterior
  - (slow) The full regression walkthrough, figures included
"""

import pathlib
import sys

import arviz as az
import numpy as np
import pytest

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent.parent))

from bayesdocs.config import load_config
from bayesdocs.conjugate import BeliefUpdater, BetaPosterior, simulate_flips
from bayesdocs.regression import (
    BayesianResult,
    RegressionComparison,
    compare,
    fit_bayesian,
    fit_ols,
    load_dataset,
    predictive_interval,
)
from bayesdocs.sampling import (
    SamplerConfig,
    fit_coin_model,
    fit_linear_model,
    posterior_draws,
    posterior_mean,
    summarize,
)
from bayesdocs.tutorials import linear_regression

FAST_SAMPLER = SamplerConfig(draws=300, tune=300, chains=1, random_seed=1)


# ============================================================
# Data
# ============================================================

class TestLoadDataset:

    def test_synthetic_split_and_scaling(self):
        data = load_dataset("synthetic", test_size=0.25, seed=0, n_samples=400)
        assert data.X_train.shape == (300, 3)
        assert data.X_test.shape == (100, 3)
        assert data.y_train.shape == (300,)
        np.testing.assert_allclose(data.X_train.mean(axis=0), 0.0, atol=1e-10)
        np.testing.assert_allclose(data.X_train.std(axis=0), 1.0, atol=1e-10)
        assert data.true_coefs is not None
        assert data.feature_names == ["x0", "x1", "x2"]

    def test_diabetes(self):
        data = load_dataset("diabetes", test_size=0.25, seed=42)
        assert data.X_train.shape[1] == 10
        assert len(data.y_train) + len(data.y_test) == 442
        assert len(data.feature_names) == 10
        assert data.true_coefs is None

    def test_same_seed_same_split(self):
        a = load_dataset("synthetic", seed=3)
        b = load_dataset("synthetic", seed=3)
        np.testing.assert_array_equal(a.X_train, b.X_train)
        np.testing.assert_array_equal(a.y_test, b.y_test)

    def test_unknown_dataset(self):
        with pytest.raises(ValueError, match="Unknown dataset"):
            load_dataset("iris")


class TestOLS:

    def test_recovers_synthetic_coefficients(self):
        data = load_dataset("synthetic", seed=0, n_samples=2000)
        ols = fit_ols(data)
        np.testing.assert_allclose(ols.coefs, data.true_coefs, atol=0.15)
        assert ols.intercept == pytest.approx(np.mean(data.y_train), abs=1e-8)

    def test_predict_shape(self):
        data = load_dataset("synthetic", seed=0)
        assert fit_ols(data).predict(data.X_test).shape == data.y_test.shape


def test_comparison_table():
    c = RegressionComparison(
        ols_rmse=1.0, bayes_rmse=1.01, ols_mae=0.8, bayes_mae=0.81,
        ols_r2=0.9, bayes_r2=0.89, max_coef_diff=0.02, interval_coverage=0.95,
    )
    text = str(c)
    assert "RMSE" in text and "MAE" in text and "R2" in text
    assert "95.0%" in text


# ============================================================
# Sampler wrappers (no sampling)
# ============================================================

class TestSamplerConfig:

    def test_from_dict_ignores_unknown_keys(self):
        cfg = SamplerConfig.from_dict({"draws": 10, "chains": 3, "bogus": 1}, random_seed=5)
        assert cfg.draws == 10
        assert cfg.chains == 3
        assert cfg.random_seed == 5

    def test_explicit_seed_in_section_wins(self):
        cfg = SamplerConfig.from_dict({"random_seed": 9}, random_seed=5)
        assert cfg.random_seed == 9

    def test_sample_kwargs(self):
        kwargs = SamplerConfig(draws=50).sample_kwargs()
        assert kwargs["draws"] == 50
        assert set(kwargs) == {
            "draws", "tune", "chains", "cores", "target_accept",
            "random_seed", "progressbar",
        }


class TestValidation:

    def test_coin_model_needs_observations(self):
        with pytest.raises(ValueError):
            fit_coin_model([])

    def test_linear_model_shape_mismatch(self):
        with pytest.raises(ValueError):
            fit_linear_model(np.zeros((10, 2)), np.zeros(9))

    def test_linear_model_needs_2d(self):
        with pytest.raises(ValueError):
            fit_linear_model(np.zeros(10), np.zeros(10))

    def test_linear_model_feature_names_length(self):
        with pytest.raises(ValueError):
            fit_linear_model(np.zeros((10, 2)), np.zeros(10), feature_names=["a"])

    def test_linear_model_prior_sigma(self):
        with pytest.raises(ValueError):
            fit_linear_model(np.zeros((10, 2)), np.zeros(10), prior_sigma=0.0)


# ============================================================
# Predictive intervals (hand-built posteriors, no sampling)
# ============================================================

def _hand_built_result(intercept, coefs, sigma):
    coefs = np.asarray(coefs, dtype=float)
    idata = az.from_dict(posterior={
        "intercept": np.asarray(intercept, dtype=float)[None, :],
        "coefs": coefs[None, :, :],
        "sigma": np.asarray(sigma, dtype=float)[None, :],
    })
    n_coefs = coefs.shape[1]
    return BayesianResult(
        coefs=coefs.mean(axis=0),
        intercept=float(np.mean(intercept)),
        sigma=float(np.mean(sigma)),
        hdi_lo=np.zeros(n_coefs),
        hdi_hi=np.zeros(n_coefs),
        hdi_prob=0.94,
        idata=idata,
    )


class TestPredictiveInterval:

    def setup_method(self):
        rng = np.random.default_rng(0)
        self.n_draws = 4000
        self.slope = rng.normal(0.0, 5.0, size=(self.n_draws, 1))
        self.result = _hand_built_result(
            np.zeros(self.n_draws), self.slope, np.full(self.n_draws, 0.1)
        )

    def test_coefficient_uncertainty_widens_the_band(self):
        X = np.array([[1.0]])
        lo, hi = predictive_interval(self.result, X, level=0.94)

        # Fresh draws from the same posterior predictive
        rng = np.random.default_rng(99)
        y = rng.normal(0.0, 5.0, size=20_000) + rng.normal(0.0, 0.1, size=20_000)
        coverage = np.mean((y >= lo[0]) & (y <= hi[0]))
        assert 0.91 < coverage < 0.97
        # About 2 * 1.88 * 5, far wider than the noise alone
        assert hi[0] - lo[0] > 15.0

    def test_fixed_coefficients_give_gaussian_quantiles(self):
        n = 20_000
        result = _hand_built_result(
            np.full(n, 3.0), np.tile([[2.0, -1.0]], (n, 1)), np.full(n, 1.0)
        )
        lo, hi = predictive_interval(result, np.array([[1.0, 1.0], [0.0, 0.0]]), level=0.9)
        np.testing.assert_allclose(lo, [4.0 - 1.645, 3.0 - 1.645], atol=0.06)
        np.testing.assert_allclose(hi, [4.0 + 1.645, 3.0 + 1.645], atol=0.06)

    def test_same_seed_same_interval(self):
        X = np.array([[0.5], [-2.0]])
        a = predictive_interval(self.result, X, seed=4)
        b = predictive_interval(self.result, X, seed=4)
        np.testing.assert_array_equal(a[0], b[0])
        np.testing.assert_array_equal(a[1], b[1])
        assert np.all(a[0] < a[1])

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
    def test_level_validation(self, level):
        with pytest.raises(ValueError):
            predictive_interval(self.result, np.array([[1.0]]), level=level)


# ============================================================
# MCMC-backed tests
# ============================================================

@pytest.mark.slow
class TestSampling:

    def test_coin_mcmc_matches_exact_posterior(self):
        flips = simulate_flips(100, 0.7, seed=42)
        prior = BetaPosterior(2, 2)
        exact = BeliefUpdater().update(prior, flips)

        idata = fit_coin_model(flips, prior, FAST_SAMPLER)
        assert float(posterior_mean(idata, "p")) == pytest.approx(exact.mean, abs=0.02)
        assert posterior_draws(idata, "p").shape == (300,)

    def test_bayesian_regression_agrees_with_ols(self):
        data = load_dataset("synthetic", seed=0, n_samples=400)
        ols = fit_ols(data)
        bayes = fit_bayesian(data, FAST_SAMPLER, prior_sigma=10.0, hdi_prob=0.94)

        np.testing.assert_allclose(bayes.coefs, ols.coefs, atol=0.15)
        assert bayes.intercept == pytest.approx(ols.intercept, abs=0.2)
        assert bayes.sigma == pytest.approx(1.0, abs=0.25)
        assert np.all(bayes.hdi_lo <= bayes.coefs)
        assert np.all(bayes.coefs <= bayes.hdi_hi)

        lo, hi = predictive_interval(bayes, data.X_test, level=0.94)
        assert lo.shape == hi.shape == data.y_test.shape
        assert np.all(lo < hi)

        comparison = compare(data, ols, bayes, level=0.94)
        assert comparison.interval_coverage > 0.8
        assert comparison.bayes_rmse == pytest.approx(comparison.ols_rmse, rel=0.05)

        with pytest.raises(ValueError):
            predictive_interval(bayes, data.X_test, level=1.0)

        table = summarize(bayes.idata, ["intercept", "sigma"])
        assert "mean" in table.columns

    def test_regression_walkthrough(self, tmp_path):
        cfg = load_config()
        cfg["regression"]["dataset"] = "synthetic"
        cfg["sampler"].update(draws=200, tune=200, chains=1)
        report = linear_regression.run(cfg, output_dir=str(tmp_path))

        assert len(report.figures) == 3
        assert all(p.exists() for p in report.figures)
        table = report.coefficient_table()
        assert list(table.index) == ["x0", "x1", "x2"]
        assert "true" in table.columns
        assert "RMSE" in str(report)
