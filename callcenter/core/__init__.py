"""
Core building blocks shared by every simulation component:
the deterministic random source and the formula library.
"""

from . import formulas
from .rng import RandomSource, SeededRNG

__all__ = [
    "formulas",
    "RandomSource",
    "SeededRNG",
]
