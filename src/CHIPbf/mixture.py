"""
Two-component importance-sampling proposal over one allele fraction.

    g(θ) = w · Prior(θ) + (1 - w) · Posterior(θ)

The posterior component puts draws where the integrand has its mass; the
prior component keeps the proposal's tails at least as heavy as the prior's,
which bounds the importance weights Likelihood × Prior / g by 1/w.
"""

from dataclasses import dataclass
import numpy as np
from scipy.special import logsumexp

from .errors import ConfigurationError
from .params import BetaPrior


@dataclass(frozen=True)
class MixtureProposal:
    """
    Mixture of a Beta prior and its conjugate posterior.

    Parameters
    ----------
    prior : BetaPrior
        Prior on the allele fraction.
    posterior : BetaPrior
        Conjugate posterior given the observed counts.
    weight : float
        Probability of drawing from the prior. 1 gives plain prior sampling,
        0 gives plain posterior sampling.
    """

    prior: BetaPrior
    posterior: BetaPrior
    weight: float

    def __post_init__(self):
        if not 0.0 <= self.weight <= 1.0:
            raise ConfigurationError(f"weight must lie in [0, 1], got {self.weight}")

    def sample(self, n: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw n allele fractions.

        A weighted coin is flipped per draw; heads draws from the prior,
        tails from the posterior.
        """
        from_prior = rng.random(n) < self.weight
        n_prior = int(from_prior.sum())

        theta = np.empty(n, dtype=float)
        theta[from_prior] = self.prior.sample(rng, n_prior)
        theta[~from_prior] = self.posterior.sample(rng, n - n_prior)
        return theta

    def logpdf(self, theta: np.ndarray) -> np.ndarray:
        """Log density of the mixture, via log-sum-exp of both components."""
        theta = np.asarray(theta, dtype=float)
        with np.errstate(divide="ignore"):
            log_w = np.log([self.weight, 1.0 - self.weight])
        terms = np.vstack(
            [
                log_w[0] + self.prior.logpdf(theta),
                log_w[1] + self.posterior.logpdf(theta),
            ]
        )
        return logsumexp(terms, axis=0)


def draw_mixture(
    prior: BetaPrior,
    posterior: BetaPrior,
    weight: float,
    n: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw n values from the prior/posterior mixture."""
    return MixtureProposal(prior, posterior, weight).sample(n, rng)


def log_mixture_density(
    theta: np.ndarray,
    prior: BetaPrior,
    posterior: BetaPrior,
    weight: float,
) -> np.ndarray:
    """Evaluate log(w · prior(θ) + (1 - w) · posterior(θ))."""
    return MixtureProposal(prior, posterior, weight).logpdf(theta)
