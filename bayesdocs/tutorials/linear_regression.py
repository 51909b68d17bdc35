"""Bayesian linear regression walkthrough, scored against OLS."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from ..regression import (
    BayesianResult,
    OLSResult,
    RegressionComparison,
    RegressionData,
    compare,
    fit_bayesian,
    fit_ols,
    load_dataset,
)
from ..sampling import SamplerConfig, summarize
from .. import viz

logger = logging.getLogger(__name__)


@dataclass
class RegressionReport:
    data: RegressionData
    ols: OLSResult
    bayes: BayesianResult
    comparison: RegressionComparison
    summary: pd.DataFrame
    figures: list[Path] = field(default_factory=list)

    def coefficient_table(self) -> pd.DataFrame:
        table = pd.DataFrame({
            "ols": self.ols.coefs,
            "posterior_mean": self.bayes.coefs,
            "hdi_lo": self.bayes.hdi_lo,
            "hdi_hi": self.bayes.hdi_hi,
        }, index=self.data.feature_names)
        if self.data.true_coefs is not None:
            table["true"] = self.data.true_coefs
        return table

    def __str__(self) -> str:
        return (
            f"{self.comparison}\n\nCoefficients:\n"
            f"{self.coefficient_table().round(3).to_string()}"
        )


def run(
    cfg: dict,
    output_dir: Optional[str] = None,
    dataset: Optional[str] = None,
    make_figures: bool = True,
) -> RegressionReport:
    """Run the walkthrough with the ``regression`` and ``sampler`` config sections."""
    section = cfg["regression"]
    seed = cfg.get("seed")
    output_dir = output_dir or cfg.get("output_dir", "results")
    level = float(section.get("interval_level", 0.94))

    data = load_dataset(
        dataset or section.get("dataset", "diabetes"),
        test_size=float(section.get("test_size", 0.25)),
        seed=seed,
    )
    ols = fit_ols(data)
    sampler = SamplerConfig.from_dict(cfg.get("sampler", {}), random_seed=seed)
    bayes = fit_bayesian(
        data,
        config=sampler,
        prior_sigma=float(section.get("prior_sigma", 10.0)),
        hdi_prob=level,
    )
    comparison = compare(data, ols, bayes, level=level)

    report = RegressionReport(
        data=data,
        ols=ols,
        bayes=bayes,
        comparison=comparison,
        summary=summarize(bayes.idata, ["intercept", "coefs", "sigma"]),
    )

    if make_figures:
        report.figures.append(viz.plot_coefficients(data, ols, bayes, output_dir=output_dir))
        report.figures.append(viz.plot_predictions(
            data, ols, bayes, level=level, output_dir=output_dir,
        ))
        report.figures.append(viz.plot_posterior(
            bayes.idata, ["intercept", "sigma"], output_dir=output_dir,
            filename="regression_posterior.png",
        ))

    return report
