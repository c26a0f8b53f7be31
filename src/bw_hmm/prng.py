"""
Seeded pseudo-random number generator.

Mulberry32 is a 32-bit hash-based generator: every draw adds a fixed odd
constant to the state and mixes the result. All arithmetic wraps modulo 2^32,
so the stream is fully determined by the seed and identical on every platform.
"""

from typing import Iterator, List

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiplication with wraparound."""
    return (a * b) & _MASK32


class Mulberry32:
    """
    Deterministic generator of floats uniformly distributed in [0, 1).

    Two instances built from the same seed produce the same sequence.
    Negative and oversized seeds are reduced to their two's complement
    32-bit value.
    """

    def __init__(self, seed: int = 42):
        self.seed = int(seed)
        self._state = self.seed & _MASK32

    def random(self) -> float:
        """Advance the state and return the next float in [0, 1)."""
        self._state = (self._state + _INCREMENT) & _MASK32
        s = self._state
        t = _imul(s ^ (s >> 15), 1 | s)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def random_row(self, k: int) -> List[float]:
        """Draw ``k`` consecutive floats."""
        return [self.random() for _ in range(k)]

    def __iter__(self) -> Iterator[float]:
        while True:
            yield self.random()

    def __repr__(self) -> str:
        return f"Mulberry32(seed={self.seed})"
