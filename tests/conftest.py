"""
Test configuration and fixtures for bw-hmm.

This file contains pytest configuration and shared fixtures
for testing the bw-hmm system.
"""

import itertools

import pytest
import numpy as np

from bw_hmm.config import reset_config
from bw_hmm.logger import configure_logging


@pytest.fixture(autouse=True)
def clean_config():
    """Restore default configuration and logging handlers around every test."""
    reset_config()
    yield
    reset_config()
    configure_logging()


@pytest.fixture
def autocorrelated_sequence():
    """Strongly autocorrelated binary sequence."""
    return [0, 0, 1, 1, 0, 0, 1, 1, 0, 0]


@pytest.fixture
def weather_sequence():
    """Three-symbol sequence used by the built-in example."""
    return [0, 0, 1, 1, 2, 0, 0, 1, 2, 2, 1, 0, 0, 0, 1, 1, 2, 1, 0, 0, 1, 2, 0, 0, 1]


@pytest.fixture
def small_model_parameters():
    """Hand-written 2-state, 3-symbol parameter set."""
    pi = np.array([0.6, 0.4])
    A = np.array([
        [0.7, 0.3],
        [0.4, 0.6]
    ])
    B = np.array([
        [0.5, 0.4, 0.1],
        [0.1, 0.3, 0.6]
    ])
    return pi, A, B


def brute_force_posteriors(pi, A, B, observations):
    """
    Enumerate every hidden path to get P(O), gamma and xi exactly.

    Only usable for tiny models; serves as ground truth.
    """
    n_states = len(pi)
    T = len(observations)
    likelihood = 0.0
    gamma = np.zeros((T, n_states))
    xi = np.zeros((T - 1, n_states, n_states))

    for path in itertools.product(range(n_states), repeat=T):
        p = pi[path[0]] * B[path[0], observations[0]]
        for t in range(1, T):
            p *= A[path[t - 1], path[t]] * B[path[t], observations[t]]
        likelihood += p
        for t in range(T):
            gamma[t, path[t]] += p
        for t in range(T - 1):
            xi[t, path[t], path[t + 1]] += p

    return likelihood, gamma / likelihood, xi / likelihood


@pytest.fixture
def brute_force():
    """Exact posterior computation by path enumeration."""
    return brute_force_posteriors


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
