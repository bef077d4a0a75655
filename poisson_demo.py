# poisson_demo.py
import numpy as np

import visualize_results
from helpers_irls import poisson_irls
from poisson_data import PoissonSimConfig, PoissonDataLoad


def mean_loglik(XX, y, theta):
    eta = XX @ theta
    return (y * eta - np.exp(eta)).mean()


def main(show=True, cfg=None, regs=(0.0, 0.1, 1.0, 10.0, 100.0, 1000.0)):
    # data
    if cfg is None:
        cfg = PoissonSimConfig(n=1200, D=5, mean_rate=3.0, eta_sd=0.7, seed=7)
    dat = PoissonDataLoad(cfg)
    XX = dat.GetDesignMatrix()
    y = dat.GetResponses()
    train, test = dat.TrainTestSplit(frac=0.5, seed=0)

    acc = dat.ToAccumulator(rows=train)
    model = acc.MakeModel()
    converged = model.Fit(0.0)
    beta_hat = model.GetBetas().copy()
    print(f"L-BFGS converged: {converged} after {model.opt.iterations} iterations")

    # cross-check against a Newton solve of the same objective
    beta_irls, n_iter = poisson_irls(XX[train], y[train], reg=0.0)
    print(f"IRLS iterations: {n_iter}")
    print("True  :", np.round(dat.GetTrueBeta(), 3))
    print("L-BFGS:", np.round(beta_hat, 3))
    print("IRLS  :", np.round(beta_irls, 3))
    print("max |L-BFGS - IRLS|:", np.abs(beta_hat - beta_irls).max())

    print("\nPlug-in mean log-likelihood:")
    print("train:", mean_loglik(XX[train], y[train], beta_hat))
    print("test :", mean_loglik(XX[test], y[test], beta_hat))
    print("Observed test mean:", y[test].mean(), " predicted:", model.Predict(XX[test]).mean())

    path = visualize_results.regularization_path(acc, regs)
    visualize_results.generate_summary_table(path)

    visualize_results.plot_coefficient_recovery(beta_hat, dat.GetTrueBeta(), show=show)
    visualize_results.plot_regularization_path(path, truth=dat.GetTrueBeta(), show=show)
    return {"model": model, "beta_irls": beta_irls, "path": path, "data": dat}


if __name__ == "__main__":
    main()
