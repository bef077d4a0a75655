# lbfgs_optimizer.py
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np
from scipy.optimize import minimize

logger = logging.getLogger(__name__)


class OptimizationError(RuntimeError):
    """The objective cannot be evaluated at the starting point."""


class Optimizable(Protocol):
    """
    Objective surface an optimizer drives.

    The objective is MAXIMIZED. Implementations keep their parameters in one
    buffer which the optimizer reads and writes through these accessors.
    """

    def GetNumParameters(self) -> int: ...

    def GetParameter(self, index: int) -> float: ...

    def SetParameter(self, index: int, value: float) -> None: ...

    def GetParameters(self, buffer: np.ndarray) -> None: ...

    def SetParameters(self, buffer: np.ndarray) -> None: ...

    def GetValue(self) -> float: ...

    def GetValueGradient(self, buffer: np.ndarray) -> None: ...


@dataclass
class LBFGSConfig:
    # maximum number of L-BFGS iterations per Optimize() call
    max_iter: int = 1000
    # stop when max |projected gradient| falls below this
    gtol: float = 1e-6
    # relative reduction of the objective; a bit above float64 precision
    ftol: float = 64 * np.finfo(float).eps
    # number of correction pairs kept (the "limited memory")
    maxcor: int = 10
    # max line search steps per iteration (scipy default is 20)
    maxls: int = 50


class LimitedMemoryBFGS:
    def __init__(self, optimizable: Optimizable, config: Optional[LBFGSConfig] = None):
        """
        Quasi-Newton driver for an Optimizable, backed by scipy's L-BFGS-B.

        scipy minimizes, the Optimizable is maximized: value and gradient are
        negated on the way in. Every trial point is written into the
        optimizable with SetParameters before it is evaluated, so the
        optimizable's own parameter buffer is the search state.

        Parameters:
        -----------
        optimizable : Optimizable
            Objective to maximize.
        config : LBFGSConfig
            Solver settings (defaults if None).
        """
        self.optimizable = optimizable
        self.config = config if config is not None else LBFGSConfig()
        self.result = None
        self.iterations = 0
        self.evaluations = 0

    def _negated_objective(self, theta):
        opt = self.optimizable
        opt.SetParameters(theta)
        self.evaluations += 1

        grad = np.empty(theta.shape[0])
        opt.GetValueGradient(grad)
        return -opt.GetValue(), -grad

    def Optimize(self):
        """
        Run L-BFGS from the optimizable's current parameters.

        Returns True if scipy reports convergence. On non-convergence the
        solver message is logged and the last iterate is still written back.
        """
        opt = self.optimizable
        d = opt.GetNumParameters()
        x0 = np.zeros(d)
        opt.GetParameters(x0)

        value0 = opt.GetValue()
        if not np.isfinite(value0):
            raise OptimizationError(f"Objective is not finite at the starting point (value={value0}).")

        self.evaluations = 0
        if d == 0:
            # nothing to search over
            self.result = None
            self.iterations = 0
            return True

        cfg = self.config
        res = minimize(
            self._negated_objective,
            x0=x0,
            method="L-BFGS-B",
            jac=True,
            options={
                "maxiter": cfg.max_iter,
                "gtol": cfg.gtol,
                "ftol": cfg.ftol,
                "maxcor": cfg.maxcor,
                "maxls": cfg.maxls,
            },
        )

        # the last evaluation is not necessarily at res.x
        opt.SetParameters(res.x)
        self.result = res
        self.iterations = int(res.nit)

        if res.success:
            logger.debug("L-BFGS converged after %d iterations (%d evaluations), value=%.6g",
                         res.nit, self.evaluations, -res.fun)
        else:
            logger.warning("L-BFGS did not converge after %d iterations: %s", res.nit, res.message)
        return bool(res.success)
