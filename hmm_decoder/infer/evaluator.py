"""
Joint probability of one fully specified path.

P(O, Q | model) = pi[q_0] * B[q_0, o_0] * prod_{t>=1} A[q_{t-1}, q_t] * B[q_t, o_t]
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..hmm.model import HiddenMarkovModel
from ..logger import get_logger
from .base import resolve_log_space

logger = get_logger(__name__)


class SequenceEvaluator:
    """Chain-rule evaluation of (observation sequence, state sequence) pairs."""

    def __init__(self, model: HiddenMarkovModel, log_space: Optional[bool] = None):
        self.model = model
        self.log_space = resolve_log_space(log_space)

    def evaluate(self, observations: Sequence[str], states: Sequence[str]) -> float:
        """
        Joint probability of the observations and the given state path.

        A length mismatch is an impossible path, not an error: the result is
        0 (``-inf`` in log space). Empty sequences are treated the same way.

        Raises:
            UnknownStateError: If a state is not in the state alphabet
            UnknownSymbolError: If a symbol is not in the output alphabet
        """
        impossible = -math.inf if self.log_space else 0.0

        if isinstance(observations, str):
            observations = observations.split()
        if isinstance(states, str):
            states = states.split()

        if len(observations) != len(states) or len(observations) == 0:
            logger.debug(f"Length mismatch: {len(observations)} observations, {len(states)} states")
            return impossible

        obs = self.model.encode_observations(observations)
        path = self.model.encode_states(states)

        if self.log_space:
            log_A, log_B = self.model.log_A, self.model.log_B
            total = self.model.log_pi[path[0]] + log_B[path[0], obs[0]]
            total += np.sum(log_A[path[:-1], path[1:]]) + np.sum(log_B[path[1:], obs[1:]])
            return float(total)

        A, B = self.model.A, self.model.B
        probability = self.model.pi[path[0]] * B[path[0], obs[0]]
        for t in range(1, len(path)):
            probability *= A[path[t - 1], path[t]] * B[path[t], obs[t]]
        return float(probability)

    def evaluate_batch(self, pairs: Iterable[Tuple[Sequence[str], Sequence[str]]]) -> List[float]:
        """Evaluate every (observations, states) pair; the first failure propagates."""
        return [self.evaluate(observations, states) for observations, states in pairs]
