# visualize_results.py
import logging

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from lbfgs_optimizer import LimitedMemoryBFGS

logger = logging.getLogger(__name__)


def regularization_path(accumulator, regs, config=None):
    """
    Fit one fresh snapshot of `accumulator` per regularization strength.

    Returns a DataFrame with one row per reg (in the given order): reg,
    beta_norm, objective (penalized, at the fit), converged, iterations and
    beta_0..beta_{d-1}.
    """
    rows = []
    for reg in regs:
        model = accumulator.MakeModel(optimizer=lambda m: LimitedMemoryBFGS(m, config))
        converged = model.Fit(reg)
        beta = model.GetBetas().copy()

        row = {
            "reg": float(reg),
            "beta_norm": float(np.linalg.norm(beta)),
            "objective": model.GetValue(),
            "converged": converged,
            "iterations": model.opt.iterations,
        }
        for j, b in enumerate(beta):
            row[f"beta_{j}"] = b
        rows.append(row)
        logger.debug("reg=%g: ||beta||=%.4g, converged=%s", reg, row["beta_norm"], converged)

    return pd.DataFrame(rows)


def plot_regularization_path(path, truth=None, show=True):
    """
    Coefficient traces against regularization strength (log x-axis).
    Zero regs are dropped from the plot since they have no place on a log axis.
    """
    path = path[path["reg"] > 0]
    coef_cols = [c for c in path.columns if c.startswith("beta_") and c != "beta_norm"]

    fig, ax = plt.subplots(figsize=(9, 5))
    for j, col in enumerate(coef_cols):
        line, = ax.plot(path["reg"], path[col], marker='o', markersize=3, label=col)
        if truth is not None:
            ax.axhline(truth[j], color=line.get_color(), linestyle='--', alpha=0.5)

    ax.set_xscale('log')
    ax.set_xlabel('Regularization strength')
    ax.set_ylabel('Coefficient')
    ax.set_title('Regularization Path: L2 Shrinkage Toward Zero')
    ax.legend(loc='upper right')
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def plot_coefficient_recovery(beta_hat, beta_true, show=True):
    """Fitted vs true coefficients, with the identity line."""
    beta_hat = np.asarray(beta_hat)
    beta_true = np.asarray(beta_true)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.scatter(beta_true, beta_hat, color='purple')
    lo = min(beta_true.min(), beta_hat.min())
    hi = max(beta_true.max(), beta_hat.max())
    ax.plot([lo, hi], [lo, hi], 'k--', linewidth=1)
    for j, (bt, bh) in enumerate(zip(beta_true, beta_hat)):
        ax.annotate(f'{j}', (bt, bh), textcoords='offset points', xytext=(4, 4))

    ax.set_xlabel('True beta')
    ax.set_ylabel('Fitted beta')
    ax.set_title('Coefficient Recovery')
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def generate_summary_table(path):
    """Printable summary of a regularization path."""
    df = path[["reg", "beta_norm", "objective", "converged", "iterations"]].copy()
    df["reg"] = df["reg"].map(lambda r: f"{r:g}")
    df["beta_norm"] = df["beta_norm"].map(lambda v: f"{v:.4f}")
    df["objective"] = df["objective"].map(lambda v: f"{v:.3f}")

    print("\n" + "=" * 60)
    print("REGULARIZATION PATH")
    print("=" * 60)
    print(df.to_string(index=False))
    print("=" * 60 + "\n")
    return df
