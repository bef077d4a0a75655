# helpers_irls.py
import logging

import numpy as np

from poisson_regression import MAX_ETA

logger = logging.getLogger(__name__)


def poisson_irls(XX, y, w=None, reg=0.0, tol=1e-10, iters=100):
    """
    Newton / IRLS maximizer of the L2-penalized weighted Poisson log-likelihood
        sum_i w_i * (y_i * eta_i - exp(eta_i)) - reg/2 * ||theta||^2

    Return (theta_hat, n_iter). Same objective as LikelihoodOptimizer, solved
    with full Hessians instead of L-BFGS.
    """
    n, d = XX.shape
    w = np.ones(n) if w is None else np.asarray(w, dtype=float)
    th = np.zeros(d)                    # init
    eye = np.eye(d)
    it = 0
    for it in range(1, iters + 1):
        eta = np.minimum(XX @ th, MAX_ETA)
        lam = np.exp(eta)
        W = w * lam                     # diag weights
        z = eta + (y - lam) / (lam + 1e-12)
        XtW = XX.T * W
        H = XtW @ XX + reg * eye
        g = XtW @ z
        # Solve H th = g (Newton step)
        th_new = np.linalg.solve(H, g)
        if np.linalg.norm(th_new - th) < tol * (1 + np.linalg.norm(th)):
            th = th_new
            break
        th = th_new
    else:
        logger.warning("IRLS did not converge in %d iterations", iters)
    return th, it
