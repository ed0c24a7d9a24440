"""
Hidden Markov Model module.

Immutable discrete HMM with validated name lookups.
"""

from .model import HiddenMarkovModel

__all__ = [
    "HiddenMarkovModel"
]
