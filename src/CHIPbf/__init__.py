"""
Bayes factors for the tumor versus clonal-hematopoiesis origin of mutations
detected in cell-free DNA.

For a mutation with mutant/total read counts in plasma and in the matched
buffy coat, two models are compared:

    H: a single allele fraction shared by both compartments
       (clonal hematopoiesis)
    S: an independent plasma tumor fraction plus a small buffy coat
       fraction from circulating tumor cells (somatic)

Each marginal likelihood is estimated by importance sampling from a mixture
of the Beta prior and its conjugate posterior.

Example
-------
>>> from CHIPbf import MutationObservation, estimate
>>> obs = MutationObservation("S1", "KRAS_G12D", y_p=395, n_p=1750, y_w=0, n_w=963)
>>> result = estimate(obs, random_state=1)
>>> result.log_bayes_factor  # doctest: +SKIP
190.3...
"""

from .errors import (
    CHIPbfError,
    ConfigurationError,
    DataError,
)

from .utils import (
    # Distribution functions
    binom_logpmf,
    beta_logpdf,
    beta_posterior,
    beta_binom_logpmf,
    exact_log_marginal,
    log_mean_exp,
    effective_sample_size,
    posterior_probability,
    # Data classes
    MutationObservation,
    ComponentEstimate,
    EstimationResult,
)

from .params import (
    BetaPrior,
    PriorSpec,
    SamplerConfig,
    load_config,
)

from .mixture import (
    MixtureProposal,
    draw_mixture,
    log_mixture_density,
)

from .marginal import (
    MarginalLikelihoodEstimator,
    estimate_log_marginal,
)

from .origin import (
    OriginModel,
    estimate,
)

from .batch import (
    estimate_batch,
    results_to_records,
)

from .stability import (
    replicate_log_bayes_factor,
    summarize_replicates,
)

__all__ = [
    # Classes
    "MixtureProposal",
    "MarginalLikelihoodEstimator",
    "OriginModel",
    # Convenience functions
    "estimate",
    "estimate_batch",
    "estimate_log_marginal",
    "replicate_log_bayes_factor",
    # Data classes
    "MutationObservation",
    "ComponentEstimate",
    "EstimationResult",
    "BetaPrior",
    "PriorSpec",
    "SamplerConfig",
    # Errors
    "CHIPbfError",
    "ConfigurationError",
    "DataError",
    # Utilities
    "binom_logpmf",
    "beta_logpdf",
    "beta_posterior",
    "beta_binom_logpmf",
    "exact_log_marginal",
    "log_mean_exp",
    "effective_sample_size",
    "posterior_probability",
    "draw_mixture",
    "log_mixture_density",
    "load_config",
    "results_to_records",
    "summarize_replicates",
]

__version__ = "0.1.0"
