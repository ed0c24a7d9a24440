"""
Shared plumbing for the inference engines.
"""

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..config import get_config
from ..hmm.model import HiddenMarkovModel


def resolve_log_space(log_space: Optional[bool]) -> bool:
    """Explicit flag wins; otherwise fall back to ``inference.log_space``."""
    if log_space is None:
        return bool(get_config('inference', 'log_space'))
    return bool(log_space)


def safe_log(value: float) -> float:
    """Natural log with ``log(0) = -inf``."""
    return math.log(value) if value > 0 else -math.inf


class InferenceEngine:
    """
    Base class binding an engine to one model.

    Engines hold no per-sequence state: every table is local to a call, so
    one engine may serve any number of sequences.
    """

    def __init__(self, model: HiddenMarkovModel, log_space: Optional[bool] = None):
        self.model = model
        self.log_space = resolve_log_space(log_space)

    def _encode(self, observations: Sequence[str]) -> np.ndarray:
        """
        Map observation symbols to indices.

        Raises:
            ValueError: If the sequence is empty
            UnknownSymbolError: If a symbol is not in the output alphabet
        """
        if isinstance(observations, str):
            observations = observations.split()
        obs = self.model.encode_observations(observations)
        if obs.size == 0:
            raise ValueError("Observation sequence must contain at least one symbol")
        return obs

    def score(self, observations: Sequence[str]) -> float:
        """Probability of the sequence, or its log when ``log_space`` is set."""
        raise NotImplementedError

    def score_batch(self, sequences: Iterable[Sequence[str]]) -> List[float]:
        """Score every sequence in order; the first failure propagates."""
        return [self.score(observations) for observations in sequences]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model!r}, log_space={self.log_space})"
