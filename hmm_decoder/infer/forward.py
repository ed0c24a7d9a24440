"""
Forward algorithm.

alpha[t, s] = P(o_0 .. o_t, q_t = s | model), filled one time step at a time
so every (t, s) entry is computed exactly once: O(T * N^2).
"""

import math
from dataclasses import dataclass
from typing import List, Iterable, Sequence

import numpy as np
from scipy.special import logsumexp

from ..logger import get_logger
from .base import InferenceEngine, safe_log

logger = get_logger(__name__)


@dataclass(frozen=True)
class ForwardResult:
    """Forward table and total sequence probability.

    ``alpha`` holds log values when the engine runs in log space.
    """
    alpha: np.ndarray
    probability: float
    log_probability: float
    log_space: bool = False


class ForwardEngine(InferenceEngine):
    """Total observation probability summed over all state paths."""

    def compute(self, observations: Sequence[str]) -> ForwardResult:
        """
        Run the forward recursion over one observation sequence.

        Args:
            observations: Sequence of output symbols [T], T >= 1

        Returns:
            ForwardResult with the [T, N] alpha table

        Raises:
            UnknownSymbolError: If a symbol is not in the output alphabet
            ValueError: If the sequence is empty
        """
        obs = self._encode(observations)
        if self.log_space:
            result = self._compute_log(obs)
        else:
            result = self._compute_linear(obs)

        logger.debug(f"Forward completed: T={len(obs)}, log_probability={result.log_probability:.6f}")
        return result

    def _compute_linear(self, obs: np.ndarray) -> ForwardResult:
        A, B, pi = self.model.A, self.model.B, self.model.pi
        T = len(obs)

        alpha = np.zeros((T, self.model.state_count()))
        alpha[0] = pi * B[:, obs[0]]

        for t in range(1, T):
            # sum over predecessors s' of alpha[t-1, s'] * A[s', s]
            alpha[t] = (alpha[t - 1] @ A) * B[:, obs[t]]

        probability = float(alpha[T - 1].sum())
        return ForwardResult(alpha, probability, safe_log(probability), log_space=False)

    def _compute_log(self, obs: np.ndarray) -> ForwardResult:
        log_A, log_B, log_pi = self.model.log_A, self.model.log_B, self.model.log_pi
        T = len(obs)

        log_alpha = np.zeros((T, self.model.state_count()))
        log_alpha[0] = log_pi + log_B[:, obs[0]]

        for t in range(1, T):
            log_alpha[t] = logsumexp(log_alpha[t - 1][:, np.newaxis] + log_A, axis=0) + log_B[:, obs[t]]

        log_probability = float(logsumexp(log_alpha[T - 1]))
        return ForwardResult(log_alpha, math.exp(log_probability), log_probability, log_space=True)

    def probability(self, observations: Sequence[str]) -> float:
        """P(observations | model)."""
        return self.compute(observations).probability

    def log_probability(self, observations: Sequence[str]) -> float:
        """log P(observations | model), ``-inf`` for impossible sequences."""
        return self.compute(observations).log_probability

    def score(self, observations: Sequence[str]) -> float:
        result = self.compute(observations)
        return result.log_probability if self.log_space else result.probability

    def probabilities(self, sequences: Iterable[Sequence[str]]) -> List[float]:
        """Total probability of each sequence, in input order."""
        return [self.probability(observations) for observations in sequences]
