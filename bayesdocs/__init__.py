"""Executable Bayesian inference tutorials.

Coin-flip estimation with an exact Beta-Bernoulli update, and Bayesian
linear regression with PyMC compared against ordinary least squares.
"""

from .conjugate import BeliefUpdater, BetaPosterior

__version__ = "0.1.0"

__all__ = ["BeliefUpdater", "BetaPosterior", "__version__"]
