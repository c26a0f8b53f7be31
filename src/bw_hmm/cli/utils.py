"""
CLI utility functions.

Observation parsing and rich rendering of estimated parameters.
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
from rich.table import Table

from ..hmm.model import MIN_SEQUENCE_LENGTH
from .errors import InputError


_SEPARATORS = re.compile(r"[\s,]+")


def read_observation_text(source: str) -> str:
    """Return ``source`` itself, or the contents of a file when given ``@path``."""
    if not source.startswith("@"):
        return source

    path = Path(source[1:])
    if not path.is_file():
        raise InputError(
            f"Observation file not found: {path}",
            suggestions=["Pass the symbols inline, e.g. '0 1 1 0 2'",
                         "Check the path after '@'"]
        )
    return path.read_text(encoding="utf-8")


def parse_observations(text: str) -> List[int]:
    """
    Parse whitespace- or comma-separated symbol codes.

    Raises:
        InputError: If a token is not a non-negative integer or fewer than
            three symbols are given
    """
    tokens = [tok for tok in _SEPARATORS.split(text.strip()) if tok]

    observations = []
    for tok in tokens:
        try:
            value = int(tok)
        except ValueError:
            raise InputError(f"Invalid observation symbol: {tok!r}",
                             suggestions=["Symbols must be non-negative integers"])
        if value < 0:
            raise InputError(f"Negative observation symbol: {value}",
                             suggestions=["Symbols must be non-negative integers"])
        observations.append(value)

    if len(observations) < MIN_SEQUENCE_LENGTH:
        raise InputError(
            f"Please enter at least {MIN_SEQUENCE_LENGTH} observations (got {len(observations)})"
        )

    return observations


def infer_n_symbols(observations: Sequence[int], n_symbols: Optional[int] = None) -> int:
    """Alphabet size: the explicit value, or ``max(observations) + 1``."""
    if n_symbols:
        return n_symbols
    return max(observations) + 1


def matrix_table(title: str, data: np.ndarray, row_labels: Sequence[str],
                 col_labels: Sequence[str]) -> Table:
    """Render a probability matrix as a rich table."""
    table = Table(title=title)
    table.add_column("", style="cyan")
    for label in col_labels:
        table.add_column(label, justify="right", style="magenta")

    for label, row in zip(row_labels, np.atleast_2d(data)):
        table.add_row(label, *[f"{v:.4f}" for v in row])

    return table


def parameter_tables(pi: np.ndarray, A: np.ndarray, B: np.ndarray) -> List[Table]:
    """Tables for A, B and pi with S0.. / sym-0.. labels."""
    state_labels = [f"S{i}" for i in range(A.shape[0])]
    symbol_labels = [f"sym-{k}" for k in range(B.shape[1])]
    return [
        matrix_table("Transition matrix A", A, state_labels, state_labels),
        matrix_table("Emission matrix B", B, state_labels, symbol_labels),
        matrix_table("Initial distribution π", pi[np.newaxis, :], ["π"], state_labels),
    ]
