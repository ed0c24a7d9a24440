"""
Backward algorithm.

beta[t, s] = P(o_{t+1} .. o_{T-1} | q_t = s, model), filled from the last
time step down to the first. The totals must agree with the forward engine.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np
from scipy.special import logsumexp

from ..logger import get_logger
from .base import InferenceEngine, safe_log

logger = get_logger(__name__)


@dataclass(frozen=True)
class BackwardResult:
    """Backward table and total sequence probability.

    ``beta`` holds log values when the engine runs in log space.
    """
    beta: np.ndarray
    probability: float
    log_probability: float
    log_space: bool = False


class BackwardEngine(InferenceEngine):
    """Total observation probability via the backward variable."""

    def compute(self, observations: Sequence[str]) -> BackwardResult:
        """
        Run the backward recursion over one observation sequence.

        Returns:
            BackwardResult with the [T, N] beta table

        Raises:
            UnknownSymbolError: If a symbol is not in the output alphabet
            ValueError: If the sequence is empty
        """
        obs = self._encode(observations)
        if self.log_space:
            result = self._compute_log(obs)
        else:
            result = self._compute_linear(obs)

        logger.debug(f"Backward completed: T={len(obs)}, log_probability={result.log_probability:.6f}")
        return result

    def _compute_linear(self, obs: np.ndarray) -> BackwardResult:
        A, B, pi = self.model.A, self.model.B, self.model.pi
        T = len(obs)

        beta = np.zeros((T, self.model.state_count()))
        beta[T - 1] = 1.0

        for t in range(T - 2, -1, -1):
            # sum over successors s' of A[s, s'] * B[s', o_{t+1}] * beta[t+1, s']
            beta[t] = A @ (B[:, obs[t + 1]] * beta[t + 1])

        probability = float(np.sum(pi * B[:, obs[0]] * beta[0]))
        return BackwardResult(beta, probability, safe_log(probability), log_space=False)

    def _compute_log(self, obs: np.ndarray) -> BackwardResult:
        log_A, log_B, log_pi = self.model.log_A, self.model.log_B, self.model.log_pi
        T = len(obs)

        log_beta = np.zeros((T, self.model.state_count()))

        for t in range(T - 2, -1, -1):
            log_beta[t] = logsumexp(log_A + (log_B[:, obs[t + 1]] + log_beta[t + 1])[np.newaxis, :], axis=1)

        log_probability = float(logsumexp(log_pi + log_B[:, obs[0]] + log_beta[0]))
        return BackwardResult(log_beta, math.exp(log_probability), log_probability, log_space=True)

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
