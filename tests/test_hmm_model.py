"""
Unit tests for DiscreteHMM construction.

Tests cover input validation, seeded initialization, stochastic matrix
properties and configuration defaults.
"""

import pytest
import numpy as np

from bw_hmm.config import set_config
from bw_hmm.exceptions import (
    BwHmmError,
    ModelConfigurationError,
    ObservationError,
    StochasticMatrixError,
)
from bw_hmm.hmm.model import DiscreteHMM, TrainingStatus
from bw_hmm.prng import Mulberry32

OBS = [0, 1, 2, 1, 0, 2, 2, 1]


class TestDiscreteHMMInitialization:
    """Test HMM initialization and basic properties."""

    def test_custom_dimensions(self):
        hmm = DiscreteHMM(OBS, n_states=4, n_symbols=3)

        assert hmm.n_states == 4
        assert hmm.n_symbols == 3
        assert hmm.T == len(OBS)
        assert hmm.pi.shape == (4,)
        assert hmm.A.shape == (4, 4)
        assert hmm.B.shape == (4, 3)

    def test_defaults_from_config(self):
        hmm = DiscreteHMM(OBS, 2, 3)

        assert hmm.max_iter == 100
        assert hmm.epsilon == 1e-6
        assert hmm.seed == 42

    def test_config_overrides_defaults(self):
        set_config('hmm', 'max_iter', 7)
        set_config('hmm', 'seed', 3)

        hmm = DiscreteHMM(OBS, 2, 3)

        assert hmm.max_iter == 7
        assert hmm.seed == 3

    def test_explicit_options_win_over_config(self):
        set_config('hmm', 'max_iter', 7)

        hmm = DiscreteHMM(OBS, 2, 3, max_iter=20, epsilon=1e-3, seed=0)

        assert hmm.max_iter == 20
        assert hmm.epsilon == 1e-3
        assert hmm.seed == 0

    def test_reproducible_initialization(self):
        hmm1 = DiscreteHMM(OBS, 3, 3, seed=42)
        hmm2 = DiscreteHMM(OBS, 3, 3, seed=42)

        np.testing.assert_array_equal(hmm1.pi, hmm2.pi)
        np.testing.assert_array_equal(hmm1.A, hmm2.A)
        np.testing.assert_array_equal(hmm1.B, hmm2.B)

    def test_different_seeds(self):
        hmm1 = DiscreteHMM(OBS, 3, 3, seed=42)
        hmm2 = DiscreteHMM(OBS, 3, 3, seed=123)

        assert not np.array_equal(hmm1.A, hmm2.A)
        assert not np.array_equal(hmm1.B, hmm2.B)

    def test_draw_order_pi_then_A_then_B(self):
        """pi uses the first N draws, then A row by row, then B row by row."""
        n_states, n_symbols = 2, 3
        rng = Mulberry32(11)

        def row(k):
            values = np.array(rng.random_row(k)) + 0.2
            return values / values.sum()

        expected_pi = row(n_states)
        expected_A = np.vstack([row(n_states) for _ in range(n_states)])
        expected_B = np.vstack([row(n_symbols) for _ in range(n_states)])

        hmm = DiscreteHMM(OBS, n_states, n_symbols, seed=11)

        np.testing.assert_allclose(hmm.pi, expected_pi, rtol=1e-15)
        np.testing.assert_allclose(hmm.A, expected_A, rtol=1e-15)
        np.testing.assert_allclose(hmm.B, expected_B, rtol=1e-15)

    def test_initial_entries_strictly_positive(self):
        hmm = DiscreteHMM(OBS, 6, 3, seed=5)

        # (u + 0.2) / sum >= 0.2 / (1.2 * k)
        assert np.all(hmm.pi >= 0.2 / (1.2 * 6))
        assert np.all(hmm.A >= 0.2 / (1.2 * 6))
        assert np.all(hmm.B >= 0.2 / (1.2 * 3))

    def test_initial_status(self):
        hmm = DiscreteHMM(OBS, 2, 3)

        assert hmm.status is TrainingStatus.NOT_STARTED
        assert hmm.converged is False
        assert hmm.iterations == 0
        assert hmm.log_likelihood_history == []
        assert hmm.snapshots == []
        assert hmm.final_alpha is None
        assert hmm.final_gamma is None

    def test_observations_are_copied_and_read_only(self):
        source = np.array(OBS)
        hmm = DiscreteHMM(source, 2, 3)

        source[0] = 2
        assert hmm.observations[0] == 0

        with pytest.raises(ValueError):
            hmm.observations[0] = 1

    def test_integral_floats_accepted(self):
        hmm = DiscreteHMM([0.0, 1.0, 1.0], 1, 2)

        assert hmm.observations.dtype == np.int64

    def test_string_representation(self):
        repr_str = repr(DiscreteHMM(OBS, 4, 3))

        assert "DiscreteHMM" in repr_str
        assert "n_states=4" in repr_str
        assert "n_symbols=3" in repr_str


class TestConstructionValidation:
    """Construction must reject invalid inputs before training."""

    @pytest.mark.parametrize("n_states", [0, -1, 1.5])
    def test_invalid_n_states(self, n_states):
        with pytest.raises(ModelConfigurationError, match="n_states"):
            DiscreteHMM(OBS, n_states, 3)

    @pytest.mark.parametrize("n_symbols", [0, -2])
    def test_invalid_n_symbols(self, n_symbols):
        with pytest.raises(ModelConfigurationError, match="n_symbols"):
            DiscreteHMM(OBS, 2, n_symbols)

    def test_invalid_max_iter(self):
        with pytest.raises(ModelConfigurationError, match="max_iter"):
            DiscreteHMM(OBS, 2, 3, max_iter=0)

    def test_invalid_epsilon(self):
        with pytest.raises(ModelConfigurationError, match="epsilon"):
            DiscreteHMM(OBS, 2, 3, epsilon=0.0)

    @pytest.mark.parametrize("observations", [[], [0], [0, 1]])
    def test_sequence_too_short(self, observations):
        with pytest.raises(ObservationError, match="at least 3"):
            DiscreteHMM(observations, 2, 2)

    def test_symbol_equal_to_n_symbols_rejected(self):
        with pytest.raises(ObservationError, match=r"range \[0, 1\]"):
            DiscreteHMM([0, 1, 2], 2, 2)

    def test_symbol_above_n_symbols_rejected(self):
        with pytest.raises(ObservationError):
            DiscreteHMM([0, 1, 7, 1], 2, 2)

    def test_negative_symbol_rejected(self):
        with pytest.raises(ObservationError):
            DiscreteHMM([0, -1, 1], 2, 2)

    def test_fractional_symbol_rejected(self):
        with pytest.raises(ObservationError, match="integer"):
            DiscreteHMM([0, 0.5, 1], 2, 2)

    def test_two_dimensional_input_rejected(self):
        with pytest.raises(ObservationError, match="one-dimensional"):
            DiscreteHMM([[0, 1], [1, 0]], 2, 2)

    def test_errors_share_base_classes(self):
        with pytest.raises(BwHmmError):
            DiscreteHMM([0, 1], 2, 2)
        with pytest.raises(ValueError):
            DiscreteHMM(OBS, 0, 3)


class TestStochasticMatrixProperties:
    """Initialized matrices must be valid stochastic matrices."""

    @pytest.mark.parametrize("n_states,n_symbols", [(1, 1), (2, 3), (5, 2), (8, 8)])
    def test_rows_sum_to_one(self, n_states, n_symbols):
        obs = [k % n_symbols for k in range(10)]
        hmm = DiscreteHMM(obs, n_states, n_symbols, seed=9)

        assert abs(hmm.pi.sum() - 1.0) < 1e-9
        np.testing.assert_allclose(hmm.A.sum(axis=1), np.ones(n_states), atol=1e-9)
        np.testing.assert_allclose(hmm.B.sum(axis=1), np.ones(n_states), atol=1e-9)
        assert hmm.validate_stochastic_matrices() is True

    def test_minimal_dimensions(self):
        hmm = DiscreteHMM([0, 0, 0], 1, 1)

        np.testing.assert_array_almost_equal(hmm.pi, [1.0])
        np.testing.assert_array_almost_equal(hmm.A, [[1.0]])
        np.testing.assert_array_almost_equal(hmm.B, [[1.0]])

    def test_validate_invalid_pi(self):
        hmm = DiscreteHMM(OBS, 2, 3)
        hmm.pi = np.array([0.6, 0.6])

        with pytest.raises(StochasticMatrixError, match="Initial probabilities sum to"):
            hmm.validate_stochastic_matrices()

    def test_validate_invalid_A(self):
        hmm = DiscreteHMM(OBS, 2, 3)
        hmm.A[0, :] *= 0.5

        with pytest.raises(StochasticMatrixError, match="Transition matrix rows"):
            hmm.validate_stochastic_matrices()

    def test_validate_invalid_B(self):
        hmm = DiscreteHMM(OBS, 2, 3)
        hmm.B[0, :] *= 2.0

        with pytest.raises(StochasticMatrixError, match="Emission matrix rows"):
            hmm.validate_stochastic_matrices()

    def test_validate_negative_values_with_correct_sums(self):
        hmm = DiscreteHMM(OBS, 2, 2 + 1)
        hmm.pi = np.array([-0.1, 1.1])

        with pytest.raises(StochasticMatrixError, match="negative"):
            hmm.validate_stochastic_matrices()

    def test_get_parameters_returns_copies(self):
        hmm = DiscreteHMM(OBS, 2, 3)
        pi, A, B = hmm.get_parameters()

        pi[0] = 999
        A[0, 0] = 999
        B[0, 0] = 999

        assert hmm.pi[0] != 999
        assert hmm.A[0, 0] != 999
        assert hmm.B[0, 0] != 999
