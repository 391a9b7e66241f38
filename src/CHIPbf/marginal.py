"""
Importance-sampling estimate of a marginal likelihood over one allele fraction.

For a Beta prior π(θ) and binomial observations (y_k, n_k) sharing θ:

    L = ∫ Π_k Binom(y_k | n_k, θ) π(θ) dθ

Draws come from the prior/posterior mixture g (see ``mixture``), and

    log L ≈ log mean_i exp(ℓ_i),   ℓ_i = log lik(θ_i) + log π(θ_i) - log g(θ_i)

The estimate of L is unbiased. The estimate of log L is biased low by
Jensen's inequality, with the bias shrinking as 1/N; it is reported as is.
"""

import logging
import numpy as np
from typing import Optional, Sequence

from .errors import DataError
from .mixture import MixtureProposal
from .params import BetaPrior, SamplerConfig
from .utils import (
    binom_logpmf,
    log_mean_exp,
    effective_sample_size,
    exact_log_marginal,
    ComponentEstimate,
)

logger = logging.getLogger(__name__)


class MarginalLikelihoodEstimator:
    """
    Estimate the log marginal likelihood of read counts for one latent
    allele fraction.

    Parameters
    ----------
    name : str
        Label of the latent fraction ('chip', 'ctdna', 'ctc').
    prior : BetaPrior
        Prior on the allele fraction.
    config : SamplerConfig, optional
        Draw count, mixture weight and method.

    Attributes
    ----------
    posterior : BetaPrior
        Conjugate posterior given the pooled counts.
    log_marginal : float
        Estimated log marginal likelihood (nan if the weights collapsed).
    draws, log_weights : np.ndarray
        Proposal draws and their log importance weights.
    """

    def __init__(
        self,
        name: str,
        prior: BetaPrior,
        config: Optional[SamplerConfig] = None,
    ):
        self.name = name
        self.prior = prior
        self.config = config if config is not None else SamplerConfig()

        # Set after fitting
        self.posterior: Optional[BetaPrior] = None
        self.log_marginal: Optional[float] = None
        self.effective_sample_size: float = 0.0
        self.degenerate: bool = False
        self.draws: Optional[np.ndarray] = None
        self.log_weights: Optional[np.ndarray] = None

    def log_likelihood(self, theta: np.ndarray, counts) -> np.ndarray:
        """Sum of binomial log-likelihoods of every count pair at θ."""
        theta = np.asarray(theta, dtype=float)
        total = np.zeros(theta.shape)
        for y, n in counts:
            total = total + binom_logpmf(y, n, theta)
        return total

    def fit(
        self,
        counts: Sequence[tuple[int, int]],
        rng: Optional[np.random.Generator] = None,
    ) -> "MarginalLikelihoodEstimator":
        """
        Run the estimator.

        Parameters
        ----------
        counts : sequence of (y, n)
            Mutant and total reads per compartment sharing this fraction.
        rng : np.random.Generator, optional
            Source of randomness. A fresh unseeded generator if omitted.

        Returns
        -------
        MarginalLikelihoodEstimator
            Self, for method chaining.
        """
        counts = [(int(y), int(n)) for y, n in counts]
        if not counts:
            raise DataError(f"{self.name}: no counts to estimate from")
        for y, n in counts:
            if n <= 0:
                raise DataError(f"{self.name}: zero coverage")
            if y < 0 or y > n:
                raise DataError(f"{self.name}: invalid counts {y}/{n}")

        y_tot = sum(y for y, _ in counts)
        n_tot = sum(n for _, n in counts)
        self.posterior = self.prior.update(y_tot, n_tot)

        if self.config.method == "exact":
            self.log_marginal = exact_log_marginal(self.prior, counts)
            self.effective_sample_size = np.inf
            self.degenerate = False
            self.draws = None
            self.log_weights = None
            return self

        if rng is None:
            rng = np.random.default_rng()

        proposal = MixtureProposal(self.prior, self.posterior, self.config.prior_weight)
        theta = proposal.sample(self.config.n_samples, rng)
        log_w = (
            self.log_likelihood(theta, counts)
            + self.prior.logpdf(theta)
            - proposal.logpdf(theta)
        )

        self.draws = theta
        self.log_weights = log_w
        self.effective_sample_size = effective_sample_size(log_w)

        log_marginal = log_mean_exp(log_w)
        if not np.isfinite(log_marginal):
            self.degenerate = True
            self.log_marginal = float("nan")
            logger.warning(
                "%s: all %d importance weights vanished (prior %s, posterior %s); "
                "retry with more samples or a larger prior weight",
                self.name,
                self.config.n_samples,
                self.prior,
                self.posterior,
            )
        else:
            self.degenerate = False
            self.log_marginal = log_marginal

        logger.debug(
            "%s: log marginal %.4f, ESS %.1f / %d",
            self.name,
            self.log_marginal,
            self.effective_sample_size,
            self.config.n_samples,
        )
        return self

    def get_result(self, retain_draws: bool = False) -> ComponentEstimate:
        """
        Package results into ComponentEstimate.

        Parameters
        ----------
        retain_draws : bool
            Keep the raw draws and log weights (O(N) memory).
        """
        if self.log_marginal is None:
            raise ValueError("Must call fit() before get_result()")

        exact = self.config.method == "exact"
        return ComponentEstimate(
            name=self.name,
            log_marginal=self.log_marginal,
            n_samples=0 if exact else self.config.n_samples,
            effective_sample_size=self.effective_sample_size,
            degenerate=self.degenerate,
            method=self.config.method,
            draws=self.draws if retain_draws else None,
            log_weights=self.log_weights if retain_draws else None,
        )

    def __repr__(self) -> str:
        status = "fitted" if self.log_marginal is not None else "not fitted"
        return (
            f"MarginalLikelihoodEstimator(name={self.name!r}, "
            f"prior=Beta({self.prior.a:g}, {self.prior.b:g}), status={status})"
        )


# =============================================================================
# Convenience Functions
# =============================================================================


def estimate_log_marginal(
    prior: BetaPrior,
    counts: Sequence[tuple[int, int]],
    config: Optional[SamplerConfig] = None,
    rng: Optional[np.random.Generator] = None,
    name: str = "theta",
    retain_draws: bool = False,
) -> ComponentEstimate:
    """
    Convenience function to estimate one log marginal likelihood.

    Parameters
    ----------
    prior : BetaPrior
        Prior on the allele fraction.
    counts : sequence of (y, n)
        Count pairs sharing the fraction.
    config : SamplerConfig, optional
        Sampler settings.
    rng : np.random.Generator, optional
        Random generator.
    name : str
        Label stored on the result.
    retain_draws : bool
        Keep raw draws and weights.

    Returns
    -------
    ComponentEstimate
    """
    estimator = MarginalLikelihoodEstimator(name, prior, config)
    estimator.fit(counts, rng)
    return estimator.get_result(retain_draws)
