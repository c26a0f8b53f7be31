"""
Discrete Hidden Markov Model estimator.

This module implements Baum-Welch estimation of a discrete-output HMM from a
single observation sequence. The estimator owns the parameters, runs the
forward -> backward -> E-step -> M-step loop until the log-likelihood
stabilizes, and keeps a per-iteration history for external consumers.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import get_config
from ..exceptions import ModelConfigurationError, ObservationError, StochasticMatrixError
from ..logger import get_logger
from ..prng import Mulberry32
from .inference import ForwardResult, backward_scaled, forward_scaled
from .learning import Occupancy, compute_occupancy, reestimate_parameters

logger = get_logger(__name__)

# Added to every uniform draw so initial probabilities are never zero
INIT_FLOOR = 0.2

MIN_SEQUENCE_LENGTH = 3

ProgressCallback = Callable[[str, int, bool], None]


class TrainingStatus(str, Enum):
    """State of the training loop."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"


@dataclass(frozen=True, eq=False)
class IterationSnapshot:
    """Copy of the model after one M-step."""

    iteration: int
    log_likelihood: float
    A: np.ndarray
    B: np.ndarray
    pi: np.ndarray


@dataclass(frozen=True)
class IterationRecord:
    """One notification emitted by :meth:`DiscreteHMM.iter_training`."""

    message: str
    iteration: int
    done: bool
    snapshot: IterationSnapshot


@dataclass(frozen=True)
class TrainingResult:
    """Summary returned by :meth:`DiscreteHMM.train`."""

    converged: bool
    status: TrainingStatus
    iterations: int
    final_log_likelihood: float
    log_likelihood_history: Tuple[float, ...]


def _as_observation_array(observations: Union[Sequence[int], np.ndarray]) -> np.ndarray:
    """Convert observations to a 1-D int64 array, rejecting non-integer values."""
    arr = np.asarray(observations)

    if arr.ndim != 1:
        raise ObservationError(f"Observations must be one-dimensional, got shape {arr.shape}")

    if arr.size and not np.issubdtype(arr.dtype, np.integer):
        if not np.issubdtype(arr.dtype, np.floating) or not np.all(np.isfinite(arr)) \
                or not np.all(arr == np.floor(arr)):
            raise ObservationError("Observations must be integer symbol codes")

    return arr.astype(np.int64)


class DiscreteHMM:
    """
    Baum-Welch estimator for a discrete-output HMM.

    The model uses:
    - ``n_states`` hidden states, fully connected
    - ``n_symbols`` observation symbols (codes 0 .. n_symbols-1)
    - seeded Mulberry32 initialization, so identical inputs give identical runs

    Attributes:
        pi: Initial state probabilities [n_states]
        A: Transition matrix [n_states, n_states], A[i,j] = P(q_t+1=j | q_t=i)
        B: Emission matrix [n_states, n_symbols], B[i,k] = P(o_t=k | q_t=i)
        log_likelihood_history: log P(O | model) computed at each iteration
        snapshots: IterationSnapshot per completed iteration
        iterations: Number of iterations run in the last training
        status: Current TrainingStatus
        final_alpha: Log-forward matrix (per-step unscaled) for the final parameters
        final_gamma: State occupancy matrix for the final parameters
    """

    def __init__(self,
                 observations: Union[Sequence[int], np.ndarray],
                 n_states: int,
                 n_symbols: int,
                 max_iter: Optional[int] = None,
                 epsilon: Optional[float] = None,
                 seed: Optional[int] = None):
        """
        Validate inputs and initialize parameters.

        Args:
            observations: Sequence of symbol codes in [0, n_symbols), length >= 3
            n_states: Number of hidden states (>= 1)
            n_symbols: Number of observation symbols (>= 1)
            max_iter: Maximum EM iterations (default: config hmm.max_iter)
            epsilon: Convergence threshold on |delta log-likelihood|
                (default: config hmm.epsilon)
            seed: Seed for parameter initialization (default: config hmm.seed)

        Raises:
            ModelConfigurationError: If dimensions or hyperparameters are invalid
            ObservationError: If the observation sequence is invalid
        """
        self.max_iter = max_iter if max_iter is not None else get_config('hmm', 'max_iter')
        self.epsilon = epsilon if epsilon is not None else get_config('hmm', 'epsilon')
        self.seed = seed if seed is not None else get_config('hmm', 'seed')

        self.probability_floor = get_config('numerics', 'probability_floor')
        self.denominator_floor = get_config('numerics', 'denominator_floor')
        self.decrease_tolerance = get_config('numerics', 'decrease_tolerance')

        self._validate_dimensions(n_states, n_symbols)
        self.n_states = int(n_states)
        self.n_symbols = int(n_symbols)

        self.observations = self._validate_observations(observations)
        self.observations.setflags(write=False)
        self.T = len(self.observations)

        rng = Mulberry32(self.seed)
        self.pi = self._init_initial_probabilities(rng)
        self.A = self._init_transition_matrix(rng)
        self.B = self._init_emission_matrix(rng)

        self.log_likelihood_history: List[float] = []
        self.snapshots: List[IterationSnapshot] = []
        self.iterations = 0
        self.status = TrainingStatus.NOT_STARTED
        self.final_alpha: Optional[np.ndarray] = None
        self.final_gamma: Optional[np.ndarray] = None

        logger.debug(f"Initialized DiscreteHMM with {self.n_states} states, "
                     f"{self.n_symbols} symbols, T={self.T}, seed={self.seed}")

    def _validate_dimensions(self, n_states: int, n_symbols: int) -> None:
        if int(n_states) != n_states or n_states < 1:
            raise ModelConfigurationError(f"n_states must be a positive integer, got {n_states}")
        if int(n_symbols) != n_symbols or n_symbols < 1:
            raise ModelConfigurationError(f"n_symbols must be a positive integer, got {n_symbols}")
        if int(self.max_iter) != self.max_iter or self.max_iter < 1:
            raise ModelConfigurationError(f"max_iter must be a positive integer, got {self.max_iter}")
        if not self.epsilon > 0:
            raise ModelConfigurationError(f"epsilon must be positive, got {self.epsilon}")

    def _validate_observations(self, observations) -> np.ndarray:
        obs = _as_observation_array(observations)

        if len(obs) < MIN_SEQUENCE_LENGTH:
            raise ObservationError(
                f"Observation sequence needs at least {MIN_SEQUENCE_LENGTH} symbols, got {len(obs)}"
            )

        out_of_range = (obs < 0) | (obs >= self.n_symbols)
        if np.any(out_of_range):
            bad = obs[out_of_range]
            raise ObservationError(
                f"Observations must be in range [0, {self.n_symbols - 1}], "
                f"found {sorted(set(bad.tolist()))}"
            )

        return obs

    def _random_row(self, k: int, rng: Mulberry32) -> np.ndarray:
        """Random normalized row of length k, no zero entries."""
        row = np.array([rng.random() + INIT_FLOOR for _ in range(k)])
        return row / row.sum()

    def _init_initial_probabilities(self, rng: Mulberry32) -> np.ndarray:
        """
        Initialize random initial state probabilities.

        Returns:
            pi: Initial state probabilities [n_states]
        """
        return self._random_row(self.n_states, rng)

    def _init_transition_matrix(self, rng: Mulberry32) -> np.ndarray:
        """
        Initialize random transition matrix, one row at a time.

        Returns:
            A: Transition matrix [n_states, n_states]
        """
        return np.vstack([self._random_row(self.n_states, rng) for _ in range(self.n_states)])

    def _init_emission_matrix(self, rng: Mulberry32) -> np.ndarray:
        """
        Initialize random emission matrix, one row at a time.

        Returns:
            B: Emission matrix [n_states, n_symbols]
        """
        return np.vstack([self._random_row(self.n_symbols, rng) for _ in range(self.n_states)])

    @property
    def converged(self) -> bool:
        """Whether the last training run stopped on the convergence criterion."""
        return self.status is TrainingStatus.CONVERGED

    def validate_stochastic_matrices(self, tolerance: Optional[float] = None) -> bool:
        """
        Validate that all probability matrices satisfy stochastic properties.

        Returns:
            bool: True if all matrices are valid stochastic matrices

        Raises:
            StochasticMatrixError: If any matrix violates stochastic properties
        """
        if tolerance is None:
            tolerance = get_config('numerics', 'row_sum_tolerance')

        if not np.allclose(self.pi.sum(), 1.0, atol=tolerance, rtol=0):
            raise StochasticMatrixError(f"Initial probabilities sum to {self.pi.sum()}, expected 1.0")

        if np.any(self.pi < 0):
            raise StochasticMatrixError("Initial probabilities contain negative values")

        row_sums_A = self.A.sum(axis=1)
        if not np.allclose(row_sums_A, 1.0, atol=tolerance, rtol=0):
            raise StochasticMatrixError(f"Transition matrix rows don't sum to 1.0: {row_sums_A}")

        if np.any(self.A < 0):
            raise StochasticMatrixError("Transition matrix contains negative values")

        row_sums_B = self.B.sum(axis=1)
        if not np.allclose(row_sums_B, 1.0, atol=tolerance, rtol=0):
            raise StochasticMatrixError(f"Emission matrix rows don't sum to 1.0: {row_sums_B}")

        if np.any(self.B < 0):
            raise StochasticMatrixError("Emission matrix contains negative values")

        return True

    def get_parameters(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Get current model parameters.

        Returns:
            Tuple of (pi, A, B) copies
        """
        return self.pi.copy(), self.A.copy(), self.B.copy()

    def forward(self) -> ForwardResult:
        """Scaled forward pass with the current parameters."""
        return forward_scaled(self.pi, self.A, self.B, self.observations,
                              self.probability_floor)

    def backward(self, scale: np.ndarray) -> np.ndarray:
        """Scaled backward pass reusing the forward scale factors."""
        return backward_scaled(self.A, self.B, self.observations, scale,
                               self.probability_floor)

    def e_step(self, alpha: np.ndarray, beta: np.ndarray) -> Occupancy:
        """State and transition occupancies for the current parameters."""
        return compute_occupancy(alpha, beta, self.A, self.B, self.observations,
                                 self.probability_floor)

    def m_step(self, occupancy: Occupancy):
        """Re-estimated parameters; does not modify the model."""
        return reestimate_parameters(occupancy, self.observations, self.n_symbols,
                                     self.denominator_floor)

    def score(self) -> float:
        """
        Log-likelihood of the observation sequence under the current parameters.
        """
        return self.forward().log_likelihood

    def _snapshot(self, iteration: int, log_likelihood: float) -> IterationSnapshot:
        snapshot = IterationSnapshot(
            iteration=iteration,
            log_likelihood=log_likelihood,
            A=self.A.copy(),
            B=self.B.copy(),
            pi=self.pi.copy(),
        )
        for arr in (snapshot.A, snapshot.B, snapshot.pi):
            arr.setflags(write=False)
        return snapshot

    def _store_final_artifacts(self) -> None:
        """
        Run forward/backward/E-step on the current parameters and keep the
        log-alpha and gamma matrices.

        Called after the last M-step, so the artifacts describe the updated
        parameters, one step ahead of the last log-likelihood in the history.
        """
        fwd = self.forward()
        beta = self.backward(fwd.scale)
        occupancy = self.e_step(fwd.alpha, beta)
        self.final_alpha = fwd.log_alpha
        self.final_gamma = occupancy.gamma

    def _reset_history(self) -> None:
        self.log_likelihood_history = []
        self.snapshots = []
        self.iterations = 0
        self.final_alpha = None
        self.final_gamma = None

    def iter_training(self) -> Iterator[IterationRecord]:
        """
        Run Baum-Welch EM lazily, yielding one record per completed iteration.

        An extra record with ``done=True`` follows the iteration that meets
        the convergence criterion. Nothing extra is yielded when ``max_iter``
        is reached. Each call starts a new run from the current parameters.

        Yields:
            IterationRecord for every iteration, plus the final done marker
        """
        self._reset_history()
        self.status = TrainingStatus.RUNNING
        prev_log_likelihood = -math.inf

        logger.info(f"Starting Baum-Welch: T={self.T}, N={self.n_states}, "
                    f"M={self.n_symbols}, max_iter={self.max_iter}, epsilon={self.epsilon}")

        for iteration in range(self.max_iter):
            fwd = self.forward()
            beta = self.backward(fwd.scale)
            occupancy = self.e_step(fwd.alpha, beta)
            self.pi, self.A, self.B = self.m_step(occupancy)

            log_likelihood = fwd.log_likelihood
            self.log_likelihood_history.append(log_likelihood)
            self.iterations = iteration + 1
            snapshot = self._snapshot(iteration, log_likelihood)
            self.snapshots.append(snapshot)

            delta = log_likelihood - prev_log_likelihood
            delta_str = '+∞' if math.isinf(prev_log_likelihood) else f"{delta:.8f}"
            message = (f"Iter {iteration + 1}:  log P(O|λ) = {log_likelihood:.6f}   "
                       f"Δ = {delta_str}")
            logger.debug(message)

            if iteration > 0 and delta < -self.decrease_tolerance:
                logger.warning(f"Log-likelihood decreased by {-delta:.3e} at iteration {iteration + 1}")

            yield IterationRecord(message, iteration, False, snapshot)

            if iteration > 0 and abs(delta) < self.epsilon:
                self.status = TrainingStatus.CONVERGED
                self._store_final_artifacts()
                logger.info(f"Converged after {iteration + 1} iterations "
                            f"(log-likelihood {log_likelihood:.6f})")
                yield IterationRecord(f"✓ Converged at iteration {iteration + 1}",
                                      iteration, True, snapshot)
                return

            prev_log_likelihood = log_likelihood

        self.status = TrainingStatus.MAX_ITER_REACHED
        self._store_final_artifacts()
        logger.info(f"Training stopped after {self.max_iter} iterations without convergence")

    def train(self, callback: Optional[ProgressCallback] = None) -> TrainingResult:
        """
        Train with Baum-Welch until convergence or ``max_iter``.

        Args:
            callback: Optional ``callback(message, iteration, done)`` invoked
                once per iteration and once more with ``done=True`` on the
                converging iteration

        Returns:
            TrainingResult summary; the estimator attributes hold the full state
        """
        for record in self.iter_training():
            if callback is not None:
                callback(record.message, record.iteration, record.done)

        return TrainingResult(
            converged=self.converged,
            status=self.status,
            iterations=self.iterations,
            final_log_likelihood=self.log_likelihood_history[-1],
            log_likelihood_history=tuple(self.log_likelihood_history),
        )

    def __repr__(self) -> str:
        """String representation of the HMM."""
        return (f"DiscreteHMM(n_states={self.n_states}, n_symbols={self.n_symbols}, "
                f"T={self.T}, status={self.status.value})")
