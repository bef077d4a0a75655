# poisson_regression.py
import logging

import numpy as np

from lbfgs_optimizer import LimitedMemoryBFGS

logger = logging.getLogger(__name__)

# exp(709.78) is the largest finite float64; each row's linear predictor is
# clipped below it. Sums over many clipped rows can still reach -inf.
MAX_ETA = 700.0


class PoissonRegression:
    """
    Accumulator for a weighted Poisson GLM data set (log link).
        Y_i ~ Poisson( exp(x_i·beta) ), with case weight w_i

    Rows are appended with AddEntry; MakeModel returns a fittable model with a
    frozen copy of the rows seen so far. Bias terms, crosses of variables,
    offsets etc. must be encoded into the covariate vector by the caller.
    """
    def __init__(self):
        self.weights = []
        self.outcomes = []
        self.variates = []
        # fixed by the first covariate vector
        self.columns = 0

    def AddEntry(self, outcome, covariates, weight=1.0):
        """
        Append one observation. A weight > 1 can represent a population chunk,
        e.g. a cell of a contingency table.
        """
        x = np.array(covariates, dtype=float)
        w = float(weight)
        yv = float(outcome)
        if x.ndim != 1:
            raise ValueError(f"Covariates must be a 1-D vector, got shape {x.shape}")
        if self.variates and x.shape[0] != self.columns:
            raise ValueError(f"Dimension of new data ({x.shape[0]}) differs from old ({self.columns})")
        if not self.variates:
            self.columns = x.shape[0]

        self.weights.append(w)
        self.outcomes.append(yv)
        self.variates.append(x)

    def MakeModel(self, optimizer=None):
        """
        Returns a fittable model with a "frozen" snapshot of the current data.

        optimizer : callable, optional
            Factory taking the model and returning an object with Optimize().
            Defaults to LimitedMemoryBFGS.
        """
        rows = len(self.variates)
        if rows:
            XX = np.vstack(self.variates)
        else:
            XX = np.zeros((0, self.columns))
        return LikelihoodOptimizer(XX, np.array(self.outcomes), np.array(self.weights), optimizer=optimizer)

    def GetNumOfSamples(self):
        return len(self.variates)

    def GetDimension(self):
        return self.columns


class LikelihoodOptimizer:
    def __init__(self, XX, y, w, optimizer=None):
        """
        Fittable model over a frozen snapshot of the data.

        Maximizes the L2-penalized Poisson log-likelihood
            sum_i w_i * (y_i * eta_i - exp(eta_i)) - reg/2 * beta·beta,  eta = XX @ beta
        The log(y!) term is constant in beta and dropped.

        Parameters:
        -----------
        XX : array (m, d)
            Design matrix, copied.
        y : array (m,)
            Responses (counts), copied.
        w : array (m,)
            Case weights, copied.
        optimizer : callable
            Factory optimizer(model) -> object with Optimize(); defaults to
            LimitedMemoryBFGS.
        """
        self.XX = np.array(XX, dtype=float)
        self.y = np.array(y, dtype=float)
        self.w = np.array(w, dtype=float)
        if self.XX.ndim != 2:
            raise ValueError(f"Design matrix must be 2-D, got shape {self.XX.shape}")
        self.m, self.d = self.XX.shape
        if self.y.shape != (self.m,) or self.w.shape != (self.m,):
            raise ValueError("Responses and weights must have one entry per design matrix row")

        for arr in (self.XX, self.y, self.w):
            arr.flags.writeable = False

        self.betas = np.zeros(self.d)
        self.reg = 0.0
        self.fitted = False

        if optimizer is None:
            optimizer = LimitedMemoryBFGS
        self.opt = optimizer(self)

    def Fit(self, regularization):
        """
        Fit the model with the given regularization strength. Higher
        regularization => smaller-in-magnitude parameters.

        Starts from the current betas, so a second call continues from the
        previous solution. Returns the optimizer's convergence flag; the model
        counts as fitted either way.
        """
        if not regularization >= 0:
            raise ValueError(f"regularization must be >= 0, got {regularization}")
        self.reg = float(regularization)
        logger.debug("Fitting Poisson model: rows=%d, d=%d, reg=%g", self.m, self.d, self.reg)
        converged = self.opt.Optimize()
        self.fitted = True
        return converged

    def GetBetas(self):
        """The (probably fitted) coefficients. This is the live buffer, not a copy."""
        return self.betas

    def IsFitted(self):
        return self.fitted

    def Predict(self, v):
        """
        Expected count exp(v·beta). v may be a single covariate vector or a
        2-D array of rows. Not checked against IsFitted().
        """
        eta = np.asarray(v, dtype=float) @ self.betas
        lam = np.exp(np.minimum(eta, MAX_ETA))
        if np.ndim(lam) == 0:
            return float(lam)
        return lam

    def GetDesignMatrix(self):
        return self.XX

    def GetResponses(self):
        return self.y

    def GetWeights(self):
        return self.w

    def GetNumOfSamples(self):
        return self.m

    def GetRegularization(self):
        return self.reg

    # --- Optimizable ---

    def GetNumParameters(self):
        return self.d

    def GetParameter(self, index):
        return float(self.betas[index])

    def SetParameter(self, index, value):
        self.betas[index] = value

    def GetParameters(self, buffer):
        self._check_buffer(buffer)
        buffer[:] = self.betas

    def SetParameters(self, buffer):
        self._check_buffer(buffer)
        # in place: GetBetas() callers keep seeing the live vector
        self.betas[:] = buffer

    def _check_buffer(self, buffer):
        if len(buffer) != self.d:
            raise ValueError(f"Buffer length {len(buffer)} does not match parameter count {self.d}")

    def _linear_predictor(self):
        """Returns (eta clipped at MAX_ETA, mask of clipped rows)."""
        eta = self.XX @ self.betas
        return np.minimum(eta, MAX_ETA), eta > MAX_ETA

    def GetValue(self):
        eta, _ = self._linear_predictor()
        log_lik = self.w @ (self.y * eta - np.exp(eta))
        return float(log_lik - 0.5 * self.reg * (self.betas @ self.betas))

    def GetValueGradient(self, buffer):
        self._check_buffer(buffer)
        eta, clipped = self._linear_predictor()
        # the value is flat in beta for clipped rows
        resid = np.where(clipped, 0.0, self.w * (self.y - np.exp(eta)))
        buffer[:] = self.XX.T @ resid - self.reg * self.betas
