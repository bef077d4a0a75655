import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from poisson_regression import PoissonRegression

logger = logging.getLogger(__name__)


@dataclass
class PoissonSimConfig:
    # number of observations
    n: int = 500
    # number of raw covariates (excl. intercept)
    D: int = 4
    # target E[y] roughly (sets the intercept)
    mean_rate: float = 2.
    # sd of the linear predictor excl. intercept
    eta_sd: float = 0.6
    # RNG seed (None = random)
    seed: Optional[int] = 0
    x_dist: str = "normal"
    # z-score X columns
    standardize: bool = True


def _draw_covariates(rng, cfg):
    if cfg.x_dist == "normal":
        X = rng.normal(size=(cfg.n, cfg.D))
    elif cfg.x_dist == "uniform":
        X = rng.uniform(-1, 1, size=(cfg.n, cfg.D))
    else:
        raise ValueError("x_dist must be 'normal' or 'uniform'")

    if cfg.standardize:
        mu = X.mean(axis=0, keepdims=True)
        sd = X.std(axis=0, ddof=1, keepdims=True)
        sd[sd == 0.0] = 1.0
        X = (X - mu) / sd
    return X


class PoissonDataLoad:
    """
    Simulated Poisson GLM data set (log link) with known coefficients.
        Y_i ~ Poisson( lambda_i ),  log lambda_i = XX_i·beta_true,  XX = [1, X]

    If beta_true is not given, slopes are drawn and rescaled so that X·slopes
    has sd eta_sd, and the intercept is chosen so that E[y] is about mean_rate.
    A given beta_true (length D+1, intercept first) is used as is.
    """
    def __init__(self, cfg: PoissonSimConfig, beta_true: Optional[np.ndarray] = None):
        rng = np.random.default_rng(cfg.seed)
        X = _draw_covariates(rng, cfg)
        XX = np.concatenate([np.ones((cfg.n, 1)), X], axis=1)

        if beta_true is None:
            slopes = rng.uniform(-1.0, 1.0, size=cfg.D)
            s = np.std(X @ slopes)
            if s > 0:
                slopes = (cfg.eta_sd / s) * slopes
            # E[exp(eta)] ~ exp(beta0 + var/2) for roughly Gaussian eta
            beta0 = np.log(cfg.mean_rate) - 0.5 * cfg.eta_sd ** 2
            beta_true = np.concatenate([[beta0], slopes])
        beta_true = np.asarray(beta_true, dtype=float).reshape(cfg.D + 1,)

        eta = XX @ beta_true
        lam = np.exp(eta)
        y = rng.poisson(lam)

        if np.all(y == 0):
            raise RuntimeError("All y are zero; raise mean_rate or change beta_true.")

        self.XX = XX
        self.t = y.astype(float)
        self.m, self.d = XX.shape
        self.beta_true = beta_true
        self.diag = {
            "y_mean": float(y.mean()),
            "y_max": int(y.max()),
            "eta_mean": float(eta.mean()),
            "eta_sd": float(eta.std()),
            "lambda_range": (float(lam.min()), float(lam.max())),
        }
        logger.debug("Simulated Poisson data: n=%d, d=%d, y_mean=%.3f", self.m, self.d, self.diag["y_mean"])

    def ToAccumulator(self, rows=None):
        """Load the simulated rows (all, or the given indices) into a PoissonRegression."""
        acc = PoissonRegression()
        idx = np.arange(self.m) if rows is None else rows
        for i in idx:
            acc.AddEntry(self.t[i], self.XX[i])
        return acc

    def TrainTestSplit(self, frac=0.5, seed=0):
        """Random index split; returns (train_idx, test_idx)."""
        perm = np.random.default_rng(seed).permutation(self.m)
        k = int(self.m * frac)
        return perm[:k], perm[k:]

    def GetDimension(self):      # includes intercept
        return self.d
    def GetDesignMatrix(self):
        return self.XX
    def GetNumOfSamples(self):
        return self.m
    def GetResponses(self):
        return self.t
    def GetTrueBeta(self):
        return self.beta_true
    def GetDiag(self):
        return self.diag
