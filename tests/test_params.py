import dataclasses

import numpy as np
import pytest
from scipy.stats import beta as beta_dist

from CHIPbf.errors import ConfigurationError
from CHIPbf.params import BetaPrior, PriorSpec, SamplerConfig, load_config


class TestBetaPrior:
    """Tests for BetaPrior dataclass."""

    def test_shapes_stored_as_float(self):
        prior = BetaPrior(1, 9)
        assert prior.a == 1.0 and isinstance(prior.a, float)
        assert prior.b == 9.0

    def test_mean(self):
        assert BetaPrior(1.0, 9.0).mean == pytest.approx(0.1)

    @pytest.mark.parametrize(
        "a, b", [(0.0, 1.0), (1.0, -2.0), (np.nan, 1.0), (1.0, np.inf), ("x", 1.0)]
    )
    def test_validation(self, a, b):
        """Non-positive or non-numeric shapes raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            BetaPrior(a, b)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            BetaPrior(-1.0, 1.0)

    def test_update(self):
        """Conjugate update adds mutant and reference reads."""
        posterior = BetaPrior(1.0, 9.0).update(395, 1750)
        assert posterior == BetaPrior(396.0, 1364.0)

    def test_logpdf_matches_scipy(self):
        theta = np.array([0.01, 0.2, 0.6])
        np.testing.assert_allclose(
            BetaPrior(2.0, 5.0).logpdf(theta), beta_dist.logpdf(theta, 2.0, 5.0)
        )

    def test_sample_reproducible(self):
        prior = BetaPrior(1.0, 1000.0)
        s1 = prior.sample(np.random.default_rng(3), 100)
        s2 = prior.sample(np.random.default_rng(3), 100)

        np.testing.assert_array_equal(s1, s2)
        assert np.all((s1 > 0) & (s1 < 1))

    def test_frozen(self):
        prior = BetaPrior(1.0, 9.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            prior.a = 2.0


class TestPriorSpec:
    """Tests for PriorSpec dataclass."""

    def test_default_initialization(self):
        """Test default values are set correctly."""
        spec = PriorSpec()

        assert spec.ctdna == BetaPrior(1.0, 9.0)
        assert spec.chip == BetaPrior(1.0, 9.0)
        assert spec.ctc == BetaPrior(1.0, 1000.0)

    def test_pairs_converted(self):
        """(a, b) pairs are accepted in place of BetaPrior."""
        spec = PriorSpec(ctdna=(2, 8), chip=[1, 20], ctc=BetaPrior(1, 500))

        assert spec.ctdna == BetaPrior(2.0, 8.0)
        assert spec.chip == BetaPrior(1.0, 20.0)
        assert spec.ctc.b == 500.0

    def test_invalid_pair(self):
        with pytest.raises(ConfigurationError):
            PriorSpec(ctdna=(1.0, 2.0, 3.0))
        with pytest.raises(ConfigurationError):
            PriorSpec(chip=(0.0, 2.0))

    def test_independent_defaults(self):
        assert PriorSpec() == PriorSpec()
        assert PriorSpec().ctc is not PriorSpec().ctc


class TestSamplerConfig:
    """Tests for SamplerConfig dataclass."""

    def test_defaults(self):
        config = SamplerConfig()
        assert config.n_samples == 50_000
        assert config.prior_weight == 0.1
        assert config.method == "montecarlo"

    @pytest.mark.parametrize("n_samples", [0, -10, 1.5, "100", True])
    def test_invalid_n_samples(self, n_samples):
        with pytest.raises(ConfigurationError):
            SamplerConfig(n_samples=n_samples)

    def test_numpy_integer_n_samples(self):
        config = SamplerConfig(n_samples=np.int64(1000))
        assert config.n_samples == 1000 and type(config.n_samples) is int

    @pytest.mark.parametrize("weight", [-0.01, 1.01, np.nan, "heavy"])
    def test_invalid_prior_weight(self, weight):
        with pytest.raises(ConfigurationError):
            SamplerConfig(prior_weight=weight)

    @pytest.mark.parametrize("weight", [0, 0.1, 1])
    def test_weight_bounds_inclusive(self, weight):
        assert SamplerConfig(prior_weight=weight).prior_weight == float(weight)

    def test_invalid_method(self):
        with pytest.raises(ConfigurationError, match="method"):
            SamplerConfig(method="laplace")


class TestLoadConfig:
    """Tests for the dotted-option config loader."""

    def test_empty_gives_defaults(self):
        priors, config = load_config()
        assert priors == PriorSpec()
        assert config == SamplerConfig()

    def test_all_options(self):
        priors, config = load_config(
            {
                "ctc.a": 1,
                "ctc.b": 2000,
                "ctdna.a": 2,
                "ctdna.b": 18,
                "chip.a": 1,
                "chip.b": 50,
                "montecarlo.samples": 10_000,
                "montecarlo.method": "exact",
                "prior.weight": 0.25,
            }
        )

        assert priors.ctc == BetaPrior(1.0, 2000.0)
        assert priors.ctdna == BetaPrior(2.0, 18.0)
        assert priors.chip == BetaPrior(1.0, 50.0)
        assert config == SamplerConfig(10_000, 0.25, "exact")

    def test_partial_override_keeps_other_shape(self):
        priors, _ = load_config({"ctc.b": 500})
        assert priors.ctc == BetaPrior(1.0, 500.0)

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="unknown options"):
            load_config({"ctc.c": 1.0})

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            load_config({"prior.weight": 2.0})
        with pytest.raises(ConfigurationError):
            load_config({"chip.a": -1})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
