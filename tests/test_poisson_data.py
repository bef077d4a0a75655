"""Tests for the simulated Poisson GLM data."""

import numpy as np
import pytest

from poisson_data import PoissonDataLoad, PoissonSimConfig


def test_shapes_and_intercept():
    dat = PoissonDataLoad(PoissonSimConfig(n=200, D=3, seed=1))
    assert dat.GetDesignMatrix().shape == (200, 4)
    assert dat.GetDimension() == 4
    assert dat.GetNumOfSamples() == 200
    assert dat.GetResponses().shape == (200,)
    assert dat.GetTrueBeta().shape == (4,)
    np.testing.assert_array_equal(dat.GetDesignMatrix()[:, 0], 1.0)


def test_standardized_columns():
    dat = PoissonDataLoad(PoissonSimConfig(n=500, D=2, seed=3, x_dist="uniform"))
    X = dat.GetDesignMatrix()[:, 1:]
    np.testing.assert_allclose(X.mean(axis=0), 0.0, atol=1e-12)
    np.testing.assert_allclose(X.std(axis=0, ddof=1), 1.0, atol=1e-12)


def test_mean_rate_is_roughly_hit():
    dat = PoissonDataLoad(PoissonSimConfig(n=5000, D=4, mean_rate=3.0, eta_sd=0.5, seed=5))
    assert dat.GetDiag()["y_mean"] == pytest.approx(3.0, rel=0.15)


def test_seed_is_reproducible():
    a = PoissonDataLoad(PoissonSimConfig(seed=9))
    b = PoissonDataLoad(PoissonSimConfig(seed=9))
    np.testing.assert_array_equal(a.GetResponses(), b.GetResponses())
    np.testing.assert_array_equal(a.GetTrueBeta(), b.GetTrueBeta())


def test_given_beta_used_as_is():
    beta = np.array([0.1, 0.2, -0.2])
    dat = PoissonDataLoad(PoissonSimConfig(n=100, D=2), beta_true=beta)
    np.testing.assert_array_equal(dat.GetTrueBeta(), beta)


def test_bad_distribution():
    with pytest.raises(ValueError):
        PoissonDataLoad(PoissonSimConfig(x_dist="cauchy"))


def test_all_zero_counts_rejected():
    with pytest.raises(RuntimeError):
        PoissonDataLoad(PoissonSimConfig(n=20, D=1), beta_true=np.array([-30.0, 0.0]))


def test_to_accumulator_and_split():
    dat = PoissonDataLoad(PoissonSimConfig(n=100, D=2, seed=2))
    train, test = dat.TrainTestSplit(frac=0.7, seed=1)
    assert len(train) == 70 and len(test) == 30
    assert set(train).isdisjoint(test)

    acc = dat.ToAccumulator(rows=train)
    assert acc.GetNumOfSamples() == 70
    assert acc.GetDimension() == 3
    model = acc.MakeModel()
    np.testing.assert_array_equal(model.GetDesignMatrix(), dat.GetDesignMatrix()[train])
    np.testing.assert_array_equal(model.GetResponses(), dat.GetResponses()[train])
    np.testing.assert_array_equal(model.GetWeights(), 1.0)

    assert dat.ToAccumulator().GetNumOfSamples() == 100
