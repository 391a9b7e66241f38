"""
Somatic versus hematopoietic origin of a mutation seen in plasma and buffy coat.

Models:
    H (hematopoietic): one allele fraction θ_chip shared by both compartments.
    S (somatic): θ_ctdna in plasma and an independent θ_ctc for tumor cells
        contaminating the buffy coat.

    log BF = log p(data | S) - log p(data | H)

Positive values favour tumor origin. The Bayes factor is returned on the
natural log scale; turning it into a posterior probability needs a prior odds
from the caller (see ``utils.posterior_probability``).
"""

import logging
import numpy as np
from typing import Optional

from .marginal import MarginalLikelihoodEstimator
from .params import PriorSpec, SamplerConfig
from .utils import MutationObservation, EstimationResult

logger = logging.getLogger(__name__)


class OriginModel:
    """
    Compose the H and S marginal likelihoods for one mutation.

    Parameters
    ----------
    priors : PriorSpec, optional
        Beta priors for ctdna, chip and ctc.
    config : SamplerConfig, optional
        Sampler settings shared by all three latent fractions.

    Attributes
    ----------
    components : dict
        Fitted MarginalLikelihoodEstimator per latent fraction.
    log_marginal_h, log_marginal_s, log_bayes_factor : float
        Set after fitting.
    """

    # Fixed order of evaluation; all three share one random stream
    COMPONENT_NAMES = ("chip", "ctdna", "ctc")

    def __init__(
        self,
        priors: Optional[PriorSpec] = None,
        config: Optional[SamplerConfig] = None,
    ):
        self.priors = priors if priors is not None else PriorSpec()
        self.config = config if config is not None else SamplerConfig()

        self.observation: Optional[MutationObservation] = None
        self.components: dict = {}
        self.log_marginal_h: Optional[float] = None
        self.log_marginal_s: Optional[float] = None
        self.log_bayes_factor: Optional[float] = None

    def _component_counts(self, obs: MutationObservation) -> dict:
        return {
            "chip": [(obs.y_p, obs.n_p), (obs.y_w, obs.n_w)],
            "ctdna": [(obs.y_p, obs.n_p)],
            "ctc": [(obs.y_w, obs.n_w)],
        }

    def fit(
        self,
        observation: MutationObservation,
        random_state=42,
    ) -> "OriginModel":
        """
        Estimate both models for one mutation.

        Parameters
        ----------
        observation : MutationObservation
            Read counts; validated here (DataError on bad counts).
        random_state : int, np.random.Generator or np.random.SeedSequence
            Seed or generator for the Monte Carlo draws.

        Returns
        -------
        OriginModel
            Self, for method chaining.
        """
        observation.validate()
        self.observation = observation
        rng = np.random.default_rng(random_state)

        counts = self._component_counts(observation)
        self.components = {}
        for name in self.COMPONENT_NAMES:
            estimator = MarginalLikelihoodEstimator(
                name, getattr(self.priors, name), self.config
            )
            self.components[name] = estimator.fit(counts[name], rng)

        self.log_marginal_h = self.components["chip"].log_marginal
        self.log_marginal_s = (
            self.components["ctdna"].log_marginal + self.components["ctc"].log_marginal
        )
        self.log_bayes_factor = self.log_marginal_s - self.log_marginal_h

        logger.debug(
            "%s: log L_H %.4f, log L_S %.4f, log BF %.4f",
            observation.key,
            self.log_marginal_h,
            self.log_marginal_s,
            self.log_bayes_factor,
        )
        return self

    def get_result(self, retain_draws: bool = False) -> EstimationResult:
        """
        Package results into EstimationResult.

        Parameters
        ----------
        retain_draws : bool
            Keep raw draws and log weights of every component.
        """
        if self.log_bayes_factor is None:
            raise ValueError("Must call fit() before get_result()")

        return EstimationResult(
            key=self.observation.key,
            log_marginal_h=self.log_marginal_h,
            log_marginal_s=self.log_marginal_s,
            log_bayes_factor=self.log_bayes_factor,
            components={
                name: est.get_result(retain_draws)
                for name, est in self.components.items()
            },
        )

    def __repr__(self) -> str:
        status = "fitted" if self.log_bayes_factor is not None else "not fitted"
        return (
            f"OriginModel(n_samples={self.config.n_samples}, "
            f"prior_weight={self.config.prior_weight}, status={status})"
        )


# =============================================================================
# Convenience Functions
# =============================================================================


def estimate(
    observation: MutationObservation,
    priors: Optional[PriorSpec] = None,
    config: Optional[SamplerConfig] = None,
    retain_draws: bool = False,
    random_state=42,
) -> EstimationResult:
    """
    Log Bayes factor of somatic over hematopoietic origin for one mutation.

    Parameters
    ----------
    observation : MutationObservation
        Plasma and buffy coat read counts.
    priors : PriorSpec, optional
        Beta priors; package defaults if omitted.
    config : SamplerConfig, optional
        Sampler settings; package defaults if omitted.
    retain_draws : bool
        Keep raw draws and log weights on the result.
    random_state : int, np.random.Generator or np.random.SeedSequence
        Same seed and settings give bit-identical results.

    Returns
    -------
    EstimationResult

    Raises
    ------
    DataError
        Malformed counts or a compartment without coverage.
    """
    model = OriginModel(priors, config)
    model.fit(observation, random_state)
    return model.get_result(retain_draws)
