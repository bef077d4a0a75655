"""Pytest configuration and fixtures for the Poisson regression tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from poisson_data import PoissonDataLoad, PoissonSimConfig
from poisson_regression import PoissonRegression


@pytest.fixture
def seed():
    """Random seed for reproducibility."""
    return 42


@pytest.fixture
def intercept_only():
    """Bias-only data: y = 2, 4, 6 with x = [1]. MLE is ln(mean(y)) = ln(4)."""
    acc = PoissonRegression()
    for y in (2, 4, 6):
        acc.AddEntry(y, [1.0])
    return acc


@pytest.fixture
def small_random(seed):
    """Small random weighted data set for gradient checks."""
    rng = np.random.default_rng(seed)
    n, d = 30, 3
    X = np.column_stack([np.ones(n), rng.normal(size=(n, d - 1))])
    y = rng.poisson(2.0, size=n).astype(float)
    w = rng.uniform(0.5, 2.0, size=n)

    acc = PoissonRegression()
    for xi, yi, wi in zip(X, y, w):
        acc.AddEntry(yi, xi, weight=wi)
    return acc


@pytest.fixture
def simulated():
    """Poisson GLM with known coefficients; intercept + 3 slopes."""
    cfg = PoissonSimConfig(n=4000, D=3, mean_rate=2.0, eta_sd=0.6, seed=11)
    return PoissonDataLoad(cfg, beta_true=np.array([0.5, 0.4, -0.3, 0.2]))
