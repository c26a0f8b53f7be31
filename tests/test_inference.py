"""
Unit tests for the scaled forward/backward recursions.

Results are checked against exhaustive path enumeration on a tiny model.
"""

import math

import numpy as np
import pytest

from bw_hmm.hmm.inference import backward_scaled, emission_column, forward_scaled
from bw_hmm.numerics import log_sum_exp

OBSERVATIONS = np.array([0, 2, 1, 2, 0])


class TestForwardScaled:
    """Scaled forward pass."""

    def test_shapes(self, small_model_parameters):
        pi, A, B = small_model_parameters
        result = forward_scaled(pi, A, B, OBSERVATIONS)

        assert result.alpha.shape == (5, 2)
        assert result.scale.shape == (5,)
        assert result.log_alpha.shape == (5, 2)
        assert isinstance(result.log_likelihood, float)

    def test_rows_sum_to_one(self, small_model_parameters):
        pi, A, B = small_model_parameters
        result = forward_scaled(pi, A, B, OBSERVATIONS)

        np.testing.assert_allclose(result.alpha.sum(axis=1), np.ones(5))

    def test_log_likelihood_matches_enumeration(self, small_model_parameters, brute_force):
        pi, A, B = small_model_parameters
        likelihood, _, _ = brute_force(pi, A, B, OBSERVATIONS)

        result = forward_scaled(pi, A, B, OBSERVATIONS)

        assert result.log_likelihood == pytest.approx(math.log(likelihood), rel=1e-12)

    def test_log_likelihood_from_scale_factors(self, small_model_parameters):
        pi, A, B = small_model_parameters
        result = forward_scaled(pi, A, B, OBSERVATIONS)

        assert result.log_likelihood == pytest.approx(-np.sum(np.log(result.scale)))

    def test_log_alpha_reference_values(self, small_model_parameters):
        """Each row undoes only its own scale factor.

        alpha[0] = pi * b(0) = [0.3, 0.04], normalized to [15/17, 2/17];
        row 1 is log(([15/17, 2/17] @ A) * b(2)) = log([1.13/17, 3.42/17]).
        """
        pi, A, B = small_model_parameters

        result = forward_scaled(pi, A, B, np.array([0, 2]))

        np.testing.assert_allclose(result.log_alpha[0], np.log([0.3, 0.04]), rtol=1e-12)
        np.testing.assert_allclose(result.log_alpha[1], np.log([1.13 / 17, 3.42 / 17]),
                                   rtol=1e-12)

    def test_log_alpha_is_one_step_forward_from_scaled_row(self, small_model_parameters):
        pi, A, B = small_model_parameters
        result = forward_scaled(pi, A, B, OBSERVATIONS)

        expected = np.zeros((len(OBSERVATIONS), 2))
        expected[0] = pi * B[:, OBSERVATIONS[0]]
        for t in range(1, len(OBSERVATIONS)):
            expected[t] = (result.alpha[t - 1] @ A) * B[:, OBSERVATIONS[t]]

        np.testing.assert_allclose(result.log_alpha, np.log(expected), rtol=1e-10)

    def test_log_alpha_rows_reduce_to_scale_factors(self, small_model_parameters):
        """log-sum-exp of row t is -log c[t]; summed over t it is the log-likelihood."""
        pi, A, B = small_model_parameters
        result = forward_scaled(pi, A, B, OBSERVATIONS)

        row_totals = [log_sum_exp(row) for row in result.log_alpha]

        np.testing.assert_allclose(row_totals, -np.log(result.scale), rtol=1e-12)
        assert sum(row_totals) == pytest.approx(result.log_likelihood)

    def test_long_sequence_does_not_underflow(self, small_model_parameters):
        pi, A, B = small_model_parameters
        rng = np.random.default_rng(0)
        observations = rng.integers(0, 3, size=5000)

        result = forward_scaled(pi, A, B, observations)

        assert np.isfinite(result.log_likelihood)
        assert result.log_likelihood < -1000
        assert np.all(np.isfinite(result.alpha))
        assert np.all(np.isfinite(result.log_alpha))

    def test_zero_emission_is_floored(self):
        """A symbol no state can emit still gives a finite, well-defined pass."""
        pi = np.array([0.5, 0.5])
        A = np.array([[0.9, 0.1], [0.1, 0.9]])
        B = np.array([[1.0, 0.0], [1.0, 0.0]])

        result = forward_scaled(pi, A, B, np.array([0, 1, 0]))

        assert not np.any(np.isnan(result.alpha))
        assert np.isfinite(result.log_likelihood)
        np.testing.assert_allclose(result.alpha.sum(axis=1), np.ones(3))

    def test_degenerate_row_keeps_unit_scale(self):
        """A row that sums to zero gets scale factor 1 instead of dividing by zero."""
        pi = np.array([0.0, 0.0])
        A = np.array([[0.5, 0.5], [0.5, 0.5]])
        B = np.array([[0.5, 0.5], [0.5, 0.5]])

        result = forward_scaled(pi, A, B, np.array([0, 1, 0]))

        assert np.all(result.scale == 1.0)
        assert not np.any(np.isnan(result.alpha))


class TestBackwardScaled:
    """Scaled backward pass."""

    def test_last_row_is_last_scale_factor(self, small_model_parameters):
        pi, A, B = small_model_parameters
        fwd = forward_scaled(pi, A, B, OBSERVATIONS)

        beta = backward_scaled(A, B, OBSERVATIONS, fwd.scale)

        np.testing.assert_array_equal(beta[-1], np.full(2, fwd.scale[-1]))

    def test_alpha_beta_give_exact_posteriors(self, small_model_parameters, brute_force):
        pi, A, B = small_model_parameters
        _, gamma_exact, _ = brute_force(pi, A, B, OBSERVATIONS)

        fwd = forward_scaled(pi, A, B, OBSERVATIONS)
        beta = backward_scaled(A, B, OBSERVATIONS, fwd.scale)
        gamma = fwd.alpha * beta
        gamma /= gamma.sum(axis=1, keepdims=True)

        np.testing.assert_allclose(gamma, gamma_exact, rtol=1e-10)

    def test_scaled_product_sums_to_scale_factor(self, small_model_parameters):
        """With shared scale factors, sum_i alpha[t,i] * beta[t,i] == c[t]."""
        pi, A, B = small_model_parameters
        fwd = forward_scaled(pi, A, B, OBSERVATIONS)
        beta = backward_scaled(A, B, OBSERVATIONS, fwd.scale)

        np.testing.assert_allclose((fwd.alpha * beta).sum(axis=1), fwd.scale, rtol=1e-10)


def test_emission_column_floors_zeros():
    B = np.array([[0.0, 1.0], [0.3, 0.7]])

    np.testing.assert_array_equal(emission_column(B, 0, 1e-300), [1e-300, 0.3])
