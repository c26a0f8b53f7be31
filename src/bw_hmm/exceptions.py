"""
Exception hierarchy for the bw-hmm system.
"""


class BwHmmError(Exception):
    """Base exception for the bw-hmm system."""
    pass


class ModelConfigurationError(BwHmmError, ValueError):
    """Invalid model dimensions or training hyperparameters."""
    pass


class ObservationError(BwHmmError, ValueError):
    """Observation sequence too short, malformed, or out of symbol range."""
    pass


class StochasticMatrixError(BwHmmError, ValueError):
    """A probability vector or matrix row is negative or does not sum to 1."""
    pass


class PersistenceError(BwHmmError):
    """Model saving or loading failures."""
    pass


class ConfigurationError(BwHmmError):
    """Configuration file parsing issues."""
    pass
