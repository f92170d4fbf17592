"""
Deterministic Random Source

Seeded pseudo-random generator built on the mulberry32 algorithm. Two
instances created with the same integer seed and driven through the same
sequence of calls produce bit-identical outputs, across process restarts.

Every probabilistic decision in the simulation receives a random source
explicitly; nothing reaches for the ``random`` module's global state.
"""

import math
from typing import Any, MutableSequence, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


class RandomSource(Protocol):
    """Anything that yields uniform floats in [0, 1)."""

    def random(self) -> float:
        ...


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK32


class SeededRNG:
    """
    Reproducible random number generator.

    Internal state is a single unsigned 32-bit integer advanced by a fixed
    increment on every draw, so ``reset()`` restores the exact sequence.
    """

    def __init__(self, seed: int = 0):
        self.seed = int(seed) & _MASK32
        self.state = self.seed

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        self.state = (self.state + _INCREMENT) & _MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def random_int(self, minimum: int, maximum: int) -> int:
        """Uniform integer in [minimum, maximum], both inclusive."""
        return math.floor(self.random() * (maximum - minimum + 1)) + minimum

    def random_float(self, minimum: float, maximum: float) -> float:
        """Uniform float in [minimum, maximum)."""
        return self.random() * (maximum - minimum) + minimum

    def chance(self, probability: float) -> bool:
        """Bernoulli draw: True with the given probability."""
        return self.random() < probability

    def pick(self, items: Sequence[T]) -> Optional[T]:
        """Uniformly chosen element, or None for an empty sequence."""
        if not items:
            return None
        return items[self.random_int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[Any]) -> MutableSequence[Any]:
        """Fisher-Yates shuffle in place; returns the same sequence."""
        for i in range(len(items) - 1, 0, -1):
            j = self.random_int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def gaussian(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        """Normal draw via the Box-Muller transform."""
        # 1 - U keeps u1 in (0, 1] so the log is always defined
        u1 = 1.0 - self.random()
        u2 = self.random()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * std_dev + mean

    def reset(self) -> None:
        """Restore the seed's initial internal state."""
        self.state = self.seed

    def set_seed(self, seed: int) -> None:
        self.seed = int(seed) & _MASK32
        self.state = self.seed
