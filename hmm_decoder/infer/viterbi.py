"""
Viterbi decoding.

delta[t, s] is the best joint probability of any path ending in state s at
time t; psi[t, s] is the predecessor that achieves it. Both tables are filled
in one forward sweep and the best path is read back through psi.

Ties go to the lowest state index, both for predecessors and for the final
state, since ``numpy.argmax`` returns the first maximum.
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ..logger import get_logger
from .base import InferenceEngine, safe_log

logger = get_logger(__name__)


@dataclass(frozen=True)
class ViterbiPath:
    """Most probable state path and its joint probability.

    ``states`` is empty when the model gives every path probability 0.
    """
    probability: float
    log_probability: float
    states: Tuple[str, ...]
    indices: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.states)


class ViterbiDecoder(InferenceEngine):
    """Single most probable state path for an observation sequence."""

    def tables(self, observations: Sequence[str]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Fill the delta and psi tables.

        Returns:
            Tuple of:
            - delta: Best path scores [T, N] (log values in log space)
            - psi: Best predecessor indices [T, N]; row 0 is -1
        """
        obs = self._encode(observations)
        if self.log_space:
            return self._tables_log(obs)
        return self._tables_linear(obs)

    def _tables_linear(self, obs: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        A, B, pi = self.model.A, self.model.B, self.model.pi
        T, N = len(obs), self.model.state_count()

        delta = np.zeros((T, N))
        psi = np.full((T, N), -1, dtype=np.intp)
        delta[0] = pi * B[:, obs[0]]

        for t in range(1, T):
            # candidates[s', s] = delta[t-1, s'] * A[s', s]
            candidates = delta[t - 1][:, np.newaxis] * A
            psi[t] = np.argmax(candidates, axis=0)
            delta[t] = candidates[psi[t], np.arange(N)] * B[:, obs[t]]

        return delta, psi

    def _tables_log(self, obs: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        log_A, log_B, log_pi = self.model.log_A, self.model.log_B, self.model.log_pi
        T, N = len(obs), self.model.state_count()

        delta = np.zeros((T, N))
        psi = np.full((T, N), -1, dtype=np.intp)
        delta[0] = log_pi + log_B[:, obs[0]]

        for t in range(1, T):
            candidates = delta[t - 1][:, np.newaxis] + log_A
            psi[t] = np.argmax(candidates, axis=0)
            delta[t] = candidates[psi[t], np.arange(N)] + log_B[:, obs[t]]

        return delta, psi

    def decode(self, observations: Sequence[str]) -> ViterbiPath:
        """
        Find the most probable state path.

        Args:
            observations: Sequence of output symbols [T], T >= 1

        Returns:
            ViterbiPath; probability 0 and an empty path if no path is possible

        Raises:
            UnknownSymbolError: If a symbol is not in the output alphabet
            ValueError: If the sequence is empty
        """
        delta, psi = self.tables(observations)
        T = delta.shape[0]

        last = int(np.argmax(delta[T - 1]))
        best = float(delta[T - 1, last])

        if self.log_space:
            log_probability, probability = best, math.exp(best)
            impossible = best == -math.inf
        else:
            log_probability, probability = safe_log(best), best
            impossible = best <= 0.0

        if impossible:
            logger.debug(f"Viterbi found no possible path: T={T}")
            return ViterbiPath(0.0, -math.inf, (), ())

        path = [last]
        for t in range(T - 1, 0, -1):
            path.append(int(psi[t, path[-1]]))
        path.reverse()

        logger.debug(f"Viterbi completed: T={T}, log_probability={log_probability:.6f}")
        return ViterbiPath(probability, log_probability, self.model.decode_states(path), tuple(path))

    def score(self, observations: Sequence[str]) -> float:
        path = self.decode(observations)
        return path.log_probability if self.log_space else path.probability

    def decode_batch(self, sequences: Iterable[Sequence[str]]) -> List[ViterbiPath]:
        """Decode every sequence in order; the first failure propagates."""
        return [self.decode(observations) for observations in sequences]
