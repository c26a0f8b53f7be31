"""
Scaled forward and backward recursions.

Both passes stay in probability space and use Rabiner (1989) scaling: every
forward row is renormalized to sum to 1 and the reciprocal of its
pre-normalization sum is kept as the scale factor ``c[t]``. The backward pass
reuses those factors so that ``alpha * beta`` yields state posteriors directly.

References:
    Rabiner, L. R. (1989). A tutorial on hidden Markov models and selected
    applications in speech recognition. Proceedings of the IEEE, 77(2), 257-286.
"""

from typing import NamedTuple

import numpy as np

from ..numerics import floor_probabilities

DEFAULT_PROBABILITY_FLOOR = 1e-300


class ForwardResult(NamedTuple):
    """Output of :func:`forward_scaled`."""

    alpha: np.ndarray
    """Scaled forward probabilities [T, n_states]; rows sum to 1."""

    scale: np.ndarray
    """Scale factors c[t] = 1 / (row sum before normalization) [T]."""

    log_likelihood: float
    """log P(O | model) = -sum(log c[t])."""

    log_alpha: np.ndarray
    """log(alpha[t]) - log(c[t]) [T, n_states], for charting only."""


def emission_column(B: np.ndarray, symbol: int,
                    probability_floor: float = DEFAULT_PROBABILITY_FLOOR) -> np.ndarray:
    """
    Emission probabilities of ``symbol`` for every state.

    Zero entries are replaced by ``probability_floor`` so that a state whose
    emission temporarily collapsed to zero can still recover.
    """
    return floor_probabilities(B[:, symbol], probability_floor)


def forward_scaled(pi: np.ndarray, A: np.ndarray, B: np.ndarray,
                   observations: np.ndarray,
                   probability_floor: float = DEFAULT_PROBABILITY_FLOOR) -> ForwardResult:
    """
    Scaled forward algorithm.

    Args:
        pi: Initial state probabilities [n_states]
        A: Transition matrix [n_states, n_states]
        B: Emission matrix [n_states, n_symbols]
        observations: Sequence of observation indices [T]
        probability_floor: Substitute for zero emission probabilities,
            zero scale factors and zero alphas in the log reconstruction

    Returns:
        ForwardResult with scaled alpha, scale factors, log-likelihood and
        the per-step unscaled log-alpha matrix
    """
    T = len(observations)
    n_states = len(pi)

    alpha = np.zeros((T, n_states))
    scale = np.zeros(T)

    for t in range(T):
        emissions = emission_column(B, observations[t], probability_floor)
        if t == 0:
            alpha[0] = pi * emissions
        else:
            alpha[t] = (alpha[t - 1] @ A) * emissions

        row_sum = alpha[t].sum()
        # Degenerate model guard: leave the row unscaled
        scale[t] = 1.0 / row_sum if row_sum > 0 else 1.0
        alpha[t] *= scale[t]

    log_scale = np.log(floor_probabilities(scale, probability_floor))
    log_likelihood = float(-np.sum(log_scale))

    # Undo only step t's scaling: row t is log((alpha[t-1] @ A) * b(O[t])),
    # so each row's log-sum-exp is -log c[t]
    log_alpha = (np.log(floor_probabilities(alpha, probability_floor))
                 - log_scale[:, np.newaxis])

    return ForwardResult(alpha, scale, log_likelihood, log_alpha)


def backward_scaled(A: np.ndarray, B: np.ndarray, observations: np.ndarray,
                    scale: np.ndarray,
                    probability_floor: float = DEFAULT_PROBABILITY_FLOOR) -> np.ndarray:
    """
    Scaled backward algorithm.

    Must be given the scale factors produced by :func:`forward_scaled` for
    the same parameters and observations.

    Returns:
        beta: Scaled backward probabilities [T, n_states]
    """
    T = len(observations)
    n_states = A.shape[0]

    beta = np.zeros((T, n_states))
    beta[T - 1, :] = scale[T - 1]

    for t in range(T - 2, -1, -1):
        weighted = emission_column(B, observations[t + 1], probability_floor) * beta[t + 1]
        beta[t] = (A @ weighted) * scale[t]

    return beta
