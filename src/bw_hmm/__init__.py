"""
bw-hmm: Baum-Welch estimation of discrete Hidden Markov Models

Estimates initial, transition and emission probabilities of a discrete HMM
from a single observation sequence, using Rabiner-scaled forward/backward
recursions and a seeded, fully deterministic initialization.
"""

__version__ = "0.1.0"
__author__ = "bw-hmm Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .numerics import log_sum_exp
from .prng import Mulberry32
from .hmm import DiscreteHMM, TrainingStatus

__all__ = [
    "DiscreteHMM",
    "TrainingStatus",
    "Mulberry32",
    "log_sum_exp",
    "get_config",
    "set_config",
    "get_logger",
    "__version__"
]
