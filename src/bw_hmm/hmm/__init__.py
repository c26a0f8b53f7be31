"""
Hidden Markov Model module.

Discrete HMM estimation with scaled forward/backward recursions and
Baum-Welch re-estimation.
"""

from .inference import ForwardResult, backward_scaled, forward_scaled
from .learning import HMMParameters, Occupancy, compute_occupancy, reestimate_parameters
from .model import (
    DiscreteHMM,
    IterationRecord,
    IterationSnapshot,
    TrainingResult,
    TrainingStatus,
)

__all__ = [
    "DiscreteHMM",
    "IterationRecord",
    "IterationSnapshot",
    "TrainingResult",
    "TrainingStatus",
    "ForwardResult",
    "forward_scaled",
    "backward_scaled",
    "Occupancy",
    "HMMParameters",
    "compute_occupancy",
    "reestimate_parameters",
]
