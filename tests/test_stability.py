import numpy as np
import pytest

from CHIPbf.stability import replicate_log_bayes_factor, summarize_replicates
from CHIPbf.utils import MutationObservation


@pytest.fixture
def chip_like():
    return MutationObservation("P03", "mut_chip", y_p=15, n_p=2969, y_w=5, n_w=1495)


class TestSummarizeReplicates:
    """Tests for summarize_replicates."""

    def test_mean_and_variance(self):
        summary = summarize_replicates(np.array([1.0, 2.0, 3.0]))
        assert summary["mean"] == pytest.approx(2.0)
        assert summary["variance"] == pytest.approx(1.0)
        assert summary["n_finite"] == 3

    def test_non_finite_ignored(self):
        summary = summarize_replicates(np.array([1.0, np.nan, 3.0]))
        assert summary["mean"] == pytest.approx(2.0)
        assert summary["n_finite"] == 2

    def test_single_value(self):
        summary = summarize_replicates(np.array([1.0]))
        assert np.isnan(summary["variance"])


class TestReplicateLogBayesFactor:
    """Tests for replicate_log_bayes_factor."""

    def test_grid_layout(self, chip_like):
        rows = replicate_log_bayes_factor(
            chip_like, n_samples_grid=[200, 400], prior_weights=[0.1, 1.0], n_replicates=3
        )

        assert [(r["n_samples"], r["prior_weight"]) for r in rows] == [
            (200, 0.1),
            (200, 1.0),
            (400, 0.1),
            (400, 1.0),
        ]
        assert all(r["values"].shape == (3,) for r in rows)

    def test_reproducible(self, chip_like):
        kwargs = dict(n_samples_grid=[300], prior_weights=[0.1], n_replicates=4)
        r1 = replicate_log_bayes_factor(chip_like, random_state=9, **kwargs)
        r2 = replicate_log_bayes_factor(chip_like, random_state=9, **kwargs)
        np.testing.assert_array_equal(r1[0]["values"], r2[0]["values"])

    def test_mixture_reduces_variance(self, chip_like):
        """At N = 1000 the mixture proposal beats plain prior sampling."""
        rows = replicate_log_bayes_factor(
            chip_like, n_samples_grid=[1000], prior_weights=[0.1, 1.0], n_replicates=20
        )
        var_mix, var_prior = rows[0]["variance"], rows[1]["variance"]
        assert var_mix < var_prior

    def test_variance_decreases_with_n(self, chip_like):
        rows = replicate_log_bayes_factor(
            chip_like, n_samples_grid=[500, 20_000], prior_weights=[1.0], n_replicates=15
        )
        assert rows[1]["variance"] < rows[0]["variance"]

    def test_replicates_centered_on_scenario_value(self, chip_like):
        rows = replicate_log_bayes_factor(
            chip_like, n_samples_grid=[5000], prior_weights=[0.1], n_replicates=5
        )
        assert rows[0]["mean"] == pytest.approx(-1.14, abs=0.1)

    def test_too_few_replicates(self, chip_like):
        with pytest.raises(ValueError):
            replicate_log_bayes_factor(chip_like, [100], [0.1], n_replicates=1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
