from dataclasses import dataclass, field
import numpy as np

from .errors import ConfigurationError
from .utils import beta_logpdf, beta_posterior


_DEFAULT_CTDNA = (1.0, 9.0)
_DEFAULT_CHIP = (1.0, 9.0)
_DEFAULT_CTC = (1.0, 1000.0)
_DEFAULT_N_SAMPLES = 50_000
_DEFAULT_PRIOR_WEIGHT = 0.1
_METHODS = ("montecarlo", "exact")


@dataclass(frozen=True)
class BetaPrior:
    """Beta(a, b) distribution over an allele fraction."""

    a: float
    b: float

    def __post_init__(self):
        for name in ("a", "b"):
            value = getattr(self, name)
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Beta shape {name} must be a number")
            if not np.isfinite(value) or value <= 0:
                raise ConfigurationError(
                    f"Beta shape {name} must be positive and finite, got {value}"
                )
            object.__setattr__(self, name, value)

    @property
    def mean(self) -> float:
        return self.a / (self.a + self.b)

    def logpdf(self, theta: np.ndarray) -> np.ndarray:
        return beta_logpdf(theta, self.a, self.b)

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.beta(self.a, self.b, size=size)

    def update(self, y: int, n: int) -> "BetaPrior":
        """Conjugate posterior after y mutant reads out of n."""
        return BetaPrior(*beta_posterior(self.a, self.b, y, n))


@dataclass(frozen=True)
class PriorSpec:
    """
    Beta priors for the three latent allele fractions.

    ctdna: tumor fraction in plasma (S model)
    chip:  fraction shared by plasma and buffy coat (H model)
    ctc:   circulating tumor cell contamination of buffy coat (S model)
    """

    ctdna: BetaPrior = field(default_factory=lambda: BetaPrior(*_DEFAULT_CTDNA))
    chip: BetaPrior = field(default_factory=lambda: BetaPrior(*_DEFAULT_CHIP))
    ctc: BetaPrior = field(default_factory=lambda: BetaPrior(*_DEFAULT_CTC))

    def __post_init__(self):
        for name in ("ctdna", "chip", "ctc"):
            value = getattr(self, name)
            if isinstance(value, BetaPrior):
                continue
            try:
                a, b = value
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"prior {name} must be a BetaPrior or an (a, b) pair"
                )
            object.__setattr__(self, name, BetaPrior(a, b))


@dataclass(frozen=True)
class SamplerConfig:
    """
    Monte Carlo settings shared by every latent-fraction estimate.

    n_samples:    draws per latent fraction
    prior_weight: fraction of draws taken from the prior in the proposal
    method:       "montecarlo", or "exact" for the closed-form Beta-Binomial
    """

    n_samples: int = _DEFAULT_N_SAMPLES
    prior_weight: float = _DEFAULT_PRIOR_WEIGHT
    method: str = "montecarlo"

    def __post_init__(self):
        if isinstance(self.n_samples, (bool, np.bool_)) or not isinstance(
            self.n_samples, (int, np.integer)
        ):
            raise ConfigurationError(
                f"n_samples must be an integer, got {self.n_samples!r}"
            )
        if self.n_samples <= 0:
            raise ConfigurationError(
                f"n_samples must be positive, got {self.n_samples}"
            )
        object.__setattr__(self, "n_samples", int(self.n_samples))

        try:
            weight = float(self.prior_weight)
        except (TypeError, ValueError):
            raise ConfigurationError("prior_weight must be a number")
        if not 0.0 <= weight <= 1.0:
            raise ConfigurationError(
                f"prior_weight must lie in [0, 1], got {self.prior_weight}"
            )
        object.__setattr__(self, "prior_weight", weight)

        if self.method not in _METHODS:
            raise ConfigurationError(
                f"method must be one of {_METHODS}, got {self.method!r}"
            )


# dotted option name -> (section, attribute)
_OPTION_KEYS = {
    "ctdna.a": ("ctdna", 0),
    "ctdna.b": ("ctdna", 1),
    "chip.a": ("chip", 0),
    "chip.b": ("chip", 1),
    "ctc.a": ("ctc", 0),
    "ctc.b": ("ctc", 1),
    "montecarlo.samples": ("sampler", "n_samples"),
    "montecarlo.method": ("sampler", "method"),
    "prior.weight": ("sampler", "prior_weight"),
}


def load_config(options: dict | None = None) -> tuple[PriorSpec, SamplerConfig]:
    """
    Build priors and sampler settings from flat dotted options.

    Missing options keep their defaults.

    Parameters
    ----------
    options : dict, optional
        e.g. ``{"ctc.b": 1000, "montecarlo.samples": 10000, "prior.weight": 0.1}``

    Returns
    -------
    tuple[PriorSpec, SamplerConfig]
    """
    options = dict(options or {})
    unknown = sorted(set(options) - set(_OPTION_KEYS))
    if unknown:
        raise ConfigurationError(f"unknown options: {', '.join(unknown)}")

    defaults = PriorSpec()
    shapes = {
        name: [getattr(defaults, name).a, getattr(defaults, name).b]
        for name in ("ctdna", "chip", "ctc")
    }
    sampler = {}

    for key, value in options.items():
        section, slot = _OPTION_KEYS[key]
        if section == "sampler":
            sampler[slot] = value
        else:
            shapes[section][slot] = value

    priors = PriorSpec(**{name: BetaPrior(*ab) for name, ab in shapes.items()})
    return priors, SamplerConfig(**sampler)
