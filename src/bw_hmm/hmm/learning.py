"""E-step and M-step of Baum-Welch re-estimation."""

from typing import NamedTuple

import numpy as np

from ..numerics import normalize_rows
from .inference import DEFAULT_PROBABILITY_FLOOR, emission_column

DEFAULT_DENOMINATOR_FLOOR = 1e-300


class Occupancy(NamedTuple):
    """Posterior state and transition occupancies."""

    gamma: np.ndarray
    """gamma[t, i] = P(q_t = i | O, model), shape [T, n_states]."""

    xi: np.ndarray
    """xi[t, i, j] = P(q_t = i, q_t+1 = j | O, model), shape [T-1, n_states, n_states]."""


class HMMParameters(NamedTuple):
    """A complete set of discrete HMM parameters."""

    pi: np.ndarray
    A: np.ndarray
    B: np.ndarray


def compute_occupancy(alpha: np.ndarray, beta: np.ndarray, A: np.ndarray,
                      B: np.ndarray, observations: np.ndarray,
                      probability_floor: float = DEFAULT_PROBABILITY_FLOOR) -> Occupancy:
    """
    Compute gamma and xi from scaled forward/backward matrices.

    Each gamma row and each xi slice is normalized to sum to 1. A row or
    slice whose sum is zero is left as computed.

    Args:
        alpha: Scaled forward probabilities [T, n_states]
        beta: Scaled backward probabilities [T, n_states]
        A: Transition matrix used for alpha/beta [n_states, n_states]
        B: Emission matrix used for alpha/beta [n_states, n_symbols]
        observations: Sequence of observation indices [T]
        probability_floor: Substitute for zero emission probabilities

    Returns:
        Occupancy(gamma, xi)
    """
    T, n_states = alpha.shape

    gamma = alpha * beta
    row_sums = gamma.sum(axis=1, keepdims=True)
    row_sums[row_sums <= 0] = 1.0
    gamma = gamma / row_sums

    xi = np.zeros((T - 1, n_states, n_states))
    for t in range(T - 1):
        weighted = emission_column(B, observations[t + 1], probability_floor) * beta[t + 1]
        xi[t] = alpha[t][:, np.newaxis] * A * weighted[np.newaxis, :]

        xi_sum = xi[t].sum()
        if xi_sum > 0:
            xi[t] /= xi_sum

    return Occupancy(gamma, xi)


def reestimate_parameters(occupancy: Occupancy, observations: np.ndarray,
                          n_symbols: int,
                          denominator_floor: float = DEFAULT_DENOMINATOR_FLOOR) -> HMMParameters:
    """
    Re-estimate pi, A and B from soft counts (M-step).

    Every output row is renormalized to sum to exactly 1 to absorb
    floating-point drift.

    Args:
        occupancy: Output of :func:`compute_occupancy`
        observations: Sequence of observation indices [T]
        n_symbols: Size of the observation alphabet
        denominator_floor: Substitute for zero expected-count denominators

    Returns:
        HMMParameters(pi, A, B) with fresh arrays
    """
    gamma, xi = occupancy

    pi_new = gamma[0].copy()

    # Expected transitions out of i over t = 0..T-2
    A_denominator = gamma[:-1].sum(axis=0)
    A_denominator[A_denominator == 0] = denominator_floor
    A_new = xi.sum(axis=0) / A_denominator[:, np.newaxis]

    B_denominator = gamma.sum(axis=0)
    B_denominator[B_denominator == 0] = denominator_floor
    B_numerator = np.zeros((gamma.shape[1], n_symbols))
    for k in range(n_symbols):
        mask = observations == k
        B_numerator[:, k] = gamma[mask].sum(axis=0)
    B_new = B_numerator / B_denominator[:, np.newaxis]

    return HMMParameters(
        pi=normalize_rows(pi_new),
        A=normalize_rows(A_new),
        B=normalize_rows(B_new),
    )
