"""
Replicate experiments on the Monte Carlo stability of the Bayes factor.

Repeats the estimate for one mutation over a grid of draw counts and mixture
weights, so the spread of log BF can be compared across settings.
"""

import logging
import numpy as np
from typing import Optional, Sequence

from .origin import estimate
from .params import PriorSpec, SamplerConfig
from .utils import MutationObservation

logger = logging.getLogger(__name__)


def summarize_replicates(values: np.ndarray) -> dict:
    """Mean and unbiased variance of replicate log Bayes factors."""
    values = np.asarray(values, dtype=float)
    finite = values[np.isfinite(values)]
    return {
        "mean": float(finite.mean()) if finite.size else np.nan,
        "variance": float(finite.var(ddof=1)) if finite.size > 1 else np.nan,
        "n_finite": int(finite.size),
    }


def replicate_log_bayes_factor(
    observation: MutationObservation,
    n_samples_grid: Sequence[int],
    prior_weights: Sequence[float],
    n_replicates: int = 20,
    priors: Optional[PriorSpec] = None,
    random_state: int = 42,
) -> list[dict]:
    """
    Repeat the log Bayes factor estimate over (N, w) settings.

    Parameters
    ----------
    observation : MutationObservation
        Mutation to estimate.
    n_samples_grid : sequence of int
        Draw counts to try.
    prior_weights : sequence of float
        Mixture weights to try.
    n_replicates : int
        Independent repetitions per setting.
    priors : PriorSpec, optional
        Beta priors.
    random_state : int
        Seed of the root SeedSequence; every replicate gets its own child.

    Returns
    -------
    list of dict
        One row per (n_samples, prior_weight) with keys 'n_samples',
        'prior_weight', 'mean', 'variance', 'n_finite' and 'values'.
    """
    if n_replicates < 2:
        raise ValueError("n_replicates must be >= 2 to estimate a variance")

    observation.validate()
    grid = [(int(n), float(w)) for n in n_samples_grid for w in prior_weights]
    children = np.random.SeedSequence(random_state).spawn(len(grid))

    rows = []
    for (n_samples, weight), child in zip(grid, children):
        config = SamplerConfig(n_samples=n_samples, prior_weight=weight)
        values = np.array(
            [
                estimate(observation, priors, config, random_state=seed).log_bayes_factor
                for seed in child.spawn(n_replicates)
            ]
        )
        row = {"n_samples": n_samples, "prior_weight": weight}
        row.update(summarize_replicates(values))
        row["values"] = values
        logger.debug(
            "N=%d w=%g: mean %.4f var %.3g",
            n_samples,
            weight,
            row["mean"],
            row["variance"],
        )
        rows.append(row)
    return rows
