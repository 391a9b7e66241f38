from dataclasses import dataclass, field

import numpy as np
from scipy.special import gammaln, betaln, xlogy, xlog1py, logsumexp

from .errors import DataError


# Stand-in magnitude for non-finite Beta log-densities; log(max float64) ~ 709.78
LOG_DENSITY_BOUND = float(np.log(np.finfo(float).max))


def binom_logpmf(y: int, n: int, theta: np.ndarray) -> np.ndarray:
    """
    Compute log probability mass function of the Binomial distribution.

        log P(y | n, θ) = log C(n, y) + y log θ + (n - y) log(1 - θ)

    ``xlogy``/``xlog1py`` make the y = 0 and y = n cases exact, including
    at θ = 0 and θ = 1.

    Parameters
    ----------
    y : int
        Mutant read count.
    n : int
        Total read count.
    theta : np.ndarray
        Allele fraction(s) at which to evaluate.

    Returns
    -------
    np.ndarray
        Log-probabilities, ``-inf`` where y < 0, y > n or θ outside [0, 1].
    """
    theta = np.asarray(theta, dtype=float)
    y = float(y)
    n = float(n)

    if y < 0 or y > n:
        return np.full(theta.shape, -np.inf)

    inside = (theta >= 0.0) & (theta <= 1.0)
    safe = np.where(inside, theta, 0.5)
    with np.errstate(divide="ignore"):
        out = (
            gammaln(n + 1.0)
            - gammaln(y + 1.0)
            - gammaln(n - y + 1.0)
            + xlogy(y, safe)
            + xlog1py(n - y, -safe)
        )
    return np.where(inside, out, -np.inf)


def beta_logpdf(theta: np.ndarray, a: float, b: float) -> np.ndarray:
    """
    Compute log density of the Beta(a, b) distribution.

    At θ = 0 or θ = 1 the density is 0 or unbounded depending on the shape
    parameters. Such values, and anything outside the support, are
    saturated to ``±LOG_DENSITY_BOUND`` so downstream sums stay finite.

    Parameters
    ----------
    theta : np.ndarray
        Point(s) in [0, 1].
    a, b : float
        Shape parameters (> 0).

    Returns
    -------
    np.ndarray
        Finite log-densities.
    """
    theta = np.asarray(theta, dtype=float)
    inside = (theta >= 0.0) & (theta <= 1.0)
    safe = np.where(inside, theta, 0.5)

    with np.errstate(divide="ignore", invalid="ignore"):
        out = xlogy(a - 1.0, safe) + xlog1py(b - 1.0, -safe) - betaln(a, b)

    out = np.where(inside, out, -LOG_DENSITY_BOUND)
    # Only non-finite boundary values are saturated; finite tails pass through
    return np.nan_to_num(
        out, nan=-LOG_DENSITY_BOUND, posinf=LOG_DENSITY_BOUND, neginf=-LOG_DENSITY_BOUND
    )


def beta_posterior(a: float, b: float, y: int, n: int) -> tuple[float, float]:
    """Conjugate Beta update after observing y mutant reads out of n."""
    if y < 0 or n < 0 or y > n:
        raise DataError(f"invalid counts y={y}, n={n}")
    return a + y, b + (n - y)


def log_mean_exp(values: np.ndarray) -> float:
    """
    Numerically stable ``log(mean(exp(values)))``.

    Returns ``-inf`` when every value is ``-inf``.
    """
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        raise ValueError("log_mean_exp of an empty array")
    with np.errstate(divide="ignore"):
        return float(logsumexp(values) - np.log(values.size))


def effective_sample_size(log_weights: np.ndarray) -> float:
    """
    Kish effective sample size of a set of importance weights given in log
    space: (Σw)² / Σw².
    """
    log_weights = np.asarray(log_weights, dtype=float)
    finite = log_weights[np.isfinite(log_weights)]
    if finite.size == 0:
        return 0.0
    return float(np.exp(2.0 * logsumexp(finite) - logsumexp(2.0 * finite)))


def _log_choose(n, k):
    return gammaln(n + 1.0) - gammaln(k + 1.0) - gammaln(n - k + 1.0)


def beta_binom_logpmf(
    k: np.ndarray, n: np.ndarray, alpha: float, beta: float
) -> np.ndarray:
    """
    Compute log probability mass function of Beta-Binomial distribution.

    The Beta-Binomial PMF is:
        P(k | n, α, β) = C(n, k) × B(k + α, n - k + β) / B(α, β)

    This is the exact marginal likelihood of k mutant reads out of n under a
    Beta(α, β) prior on the allele fraction.

    Parameters
    ----------
    k : np.ndarray
        Number of successes (mutant read counts).
    n : np.ndarray
        Number of trials (total depth).
    alpha : float
        First shape parameter of the Beta prior (α > 0).
    beta : float
        Second shape parameter of the Beta prior (β > 0).

    Returns
    -------
    np.ndarray
        Log-probabilities for each observation.
    """
    return (
        gammaln(n + 1.0)
        - gammaln(k + 1.0)
        - gammaln(n - k + 1.0)
        + betaln(k + alpha, n - k + beta)
        - betaln(alpha, beta)
    )


def exact_log_marginal(prior, counts) -> float:
    """
    Closed-form log marginal likelihood of several binomial observations
    sharing one Beta-distributed allele fraction.

    Parameters
    ----------
    prior : BetaPrior
        Anything with shape attributes ``a`` and ``b``.
    counts : sequence of (y, n)
        Mutant and total read counts per compartment.

    Returns
    -------
    float
        log ∫ Π_k Binom(y_k | n_k, θ) Beta(θ | a, b) dθ
    """
    y_tot = 0.0
    n_tot = 0.0
    log_coef = 0.0
    for y, n in counts:
        if y < 0 or n < 0 or y > n:
            raise DataError(f"invalid counts y={y}, n={n}")
        log_coef += _log_choose(n, y)
        y_tot += y
        n_tot += n
    # Pooled Beta-Binomial, with the pooled binomial coefficient swapped for
    # the per-compartment ones
    pooled = beta_binom_logpmf(y_tot, n_tot, prior.a, prior.b)
    return float(pooled - _log_choose(n_tot, y_tot) + log_coef)


def posterior_probability(log_bf: float, prior_odds: float = 1.0) -> float:
    """
    Posterior probability of tumor origin from a log Bayes factor.

        P(S) = BF × odds / (1 + BF × odds)

    Evaluated as a logistic function of ``log_bf + log(odds)`` so that
    Bayes factors of several hundred nats do not overflow.
    """
    if prior_odds <= 0:
        raise ValueError("prior_odds must be positive")
    z = log_bf + np.log(prior_odds)
    if z >= 0:
        return float(1.0 / (1.0 + np.exp(-z)))
    ez = np.exp(z)
    return float(ez / (1.0 + ez))


@dataclass(frozen=True)
class MutationObservation:
    """
    Read counts for one mutation in a matched plasma / buffy coat pair.

    Attributes
    ----------
    sample_id, mutation_id : str
        Together they identify the record.
    y_p, n_p : int
        Mutant and total reads in plasma (cfDNA).
    y_w, n_w : int
        Mutant and total reads in buffy coat (white blood cells).
    """

    sample_id: str
    mutation_id: str
    y_p: int
    n_p: int
    y_w: int
    n_w: int

    @property
    def key(self) -> tuple[str, str]:
        return (self.sample_id, self.mutation_id)

    @property
    def vaf_p(self) -> float:
        return self.y_p / self.n_p if self.n_p > 0 else float("nan")

    @property
    def vaf_w(self) -> float:
        return self.y_w / self.n_w if self.n_w > 0 else float("nan")

    @property
    def pooled(self) -> tuple[int, int]:
        """Counts summed over both compartments."""
        return self.y_p + self.y_w, self.n_p + self.n_w

    def validate(self) -> "MutationObservation":
        """
        Check counts, raising DataError on the first problem found.

        Both compartments must have coverage since each one contributes to
        both models.
        """
        for label, y, n in (("plasma", self.y_p, self.n_p), ("buffy coat", self.y_w, self.n_w)):
            for value in (y, n):
                if isinstance(value, (bool, np.bool_)) or not isinstance(
                    value, (int, np.integer)
                ):
                    raise DataError(
                        f"{self.key}: {label} counts must be integers, got {value!r}"
                    )
            if y < 0 or n < 0:
                raise DataError(f"{self.key}: negative {label} counts ({y}/{n})")
            if y > n:
                raise DataError(
                    f"{self.key}: {label} mutant reads exceed depth ({y}/{n})"
                )
            if n == 0:
                raise DataError(f"{self.key}: no {label} coverage")
        return self


@dataclass
class ComponentEstimate:
    """
    Log marginal likelihood of one latent allele fraction.

    ``draws`` and ``log_weights`` are only kept when requested.
    """

    name: str
    log_marginal: float
    n_samples: int
    effective_sample_size: float
    degenerate: bool = False
    method: str = "montecarlo"
    draws: np.ndarray | None = field(default=None, repr=False)
    log_weights: np.ndarray | None = field(default=None, repr=False)


@dataclass
class EstimationResult:
    """
    Per-mutation Bayes factor of the somatic (S) over the hematopoietic (H)
    model, natural log scale.
    """

    key: tuple[str, str]
    log_marginal_h: float
    log_marginal_s: float
    log_bayes_factor: float
    components: dict = field(default_factory=dict, repr=False)

    @property
    def low_confidence(self) -> bool:
        """True if any component's importance weights collapsed."""
        return any(c.degenerate for c in self.components.values())

    @property
    def bayes_factor(self) -> float:
        """The ratio p(data | S) / p(data | H); may overflow to inf."""
        with np.errstate(over="ignore"):
            return float(np.exp(self.log_bayes_factor))

    @property
    def retains_draws(self) -> bool:
        return any(c.draws is not None for c in self.components.values())
