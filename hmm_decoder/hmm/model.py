"""
Discrete Hidden Markov Model representation.

This module holds the state and output alphabets together with the
transition, emission and initial-state probability tables. Names are mapped
to dense integer indices once at construction; the tables are read-only
numpy arrays, so a model can be shared freely between inference calls.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import get_config
from ..exceptions import ModelValidationError, UnknownStateError, UnknownSymbolError
from ..io.model_file import ModelSpec, parse_model_file, parse_model_text
from ..logger import get_logger

logger = get_logger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


def _safe_log(array: np.ndarray) -> np.ndarray:
    # log(0) = -inf by convention
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.log(array)


class HiddenMarkovModel:
    """
    Immutable discrete HMM.

    - ``A[i, j]`` = P(next state = j | current state = i)
    - ``B[i, k]`` = P(observe symbol k | current state = i)
    - ``pi[i]`` = P(start in state i)
    """

    def __init__(self, states: Sequence[str], outputs: Sequence[str],
                 transitions, emissions, initial,
                 nominal_length: Optional[int] = None,
                 validate: Optional[bool] = None,
                 tolerance: Optional[float] = None):
        """
        Build a model from alphabets and probability tables.

        Args:
            states: Ordered, unique state names [N]
            outputs: Ordered, unique observation symbols [M]
            transitions: Transition matrix [N, N]
            emissions: Emission matrix [N, M]
            initial: Initial state probabilities [N]
            nominal_length: Informational sequence length from the model header
            validate: Check that every distribution sums to 1 (default: config)
            tolerance: Allowed deviation of each sum from 1 (default: config)

        Raises:
            ModelValidationError: If shapes, alphabets or distributions are invalid
        """
        self._states = tuple(str(s) for s in states)
        self._outputs = tuple(str(o) for o in outputs)

        if not self._states:
            raise ModelValidationError("State alphabet is empty")
        if not self._outputs:
            raise ModelValidationError("Output alphabet is empty")

        self._state_index = self._build_index(self._states, "state")
        self._symbol_index = self._build_index(self._outputs, "output symbol")

        n, m = len(self._states), len(self._outputs)
        A = self._as_table(transitions, "A")
        B = self._as_table(emissions, "B")
        pi = self._as_table(initial, "pi")

        if A.shape != (n, n):
            raise ModelValidationError(f"A shape {A.shape} doesn't match expected ({n}, {n})")
        if B.shape != (n, m):
            raise ModelValidationError(f"B shape {B.shape} doesn't match expected ({n}, {m})")
        if pi.shape != (n,):
            raise ModelValidationError(f"pi shape {pi.shape} doesn't match expected ({n},)")

        self._A = _frozen(A)
        self._B = _frozen(B)
        self._pi = _frozen(pi)
        self._log_A = _frozen(_safe_log(A))
        self._log_B = _frozen(_safe_log(B))
        self._log_pi = _frozen(_safe_log(pi))
        self._nominal_length = nominal_length

        if tolerance is None:
            tolerance = get_config('model', 'stochastic_tolerance')
        self._tolerance = float(tolerance if tolerance is not None else 1e-6)

        if validate is None:
            validate = get_config('model', 'validate')
            validate = True if validate is None else validate
        if validate:
            self.validate_stochastic_matrices()

        logger.debug(f"Initialized {self!r}")

    @staticmethod
    def _build_index(names: Tuple[str, ...], what: str) -> Dict[str, int]:
        index = {}
        for i, name in enumerate(names):
            if name in index:
                raise ModelValidationError(f"Duplicate {what} name: {name}")
            index[name] = i
        return index

    @staticmethod
    def _as_table(values, name: str) -> np.ndarray:
        try:
            return np.array(values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ModelValidationError(f"{name} is not a rectangular table of numbers: {e}") from e

    # Construction helpers

    @classmethod
    def from_spec(cls, spec: ModelSpec, **kwargs) -> "HiddenMarkovModel":
        """Build a model from a parsed ``ModelSpec``."""
        return cls(spec.states, spec.outputs, spec.transitions, spec.emissions,
                   spec.initial, nominal_length=spec.nominal_length, **kwargs)

    @classmethod
    def from_text(cls, text: str, source: str = "<string>", **kwargs) -> "HiddenMarkovModel":
        """Parse model-file text and build a model."""
        return cls.from_spec(parse_model_text(text, source), **kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "HiddenMarkovModel":
        """
        Load a model file.

        Raises:
            FileNotFoundError: If the file cannot be opened
            ParseError: If the file is malformed
            ModelValidationError: If a distribution does not sum to 1
        """
        model = cls.from_spec(parse_model_file(path), **kwargs)
        logger.info(f"Loaded model from {path}: {model.state_count()} states, "
                    f"{model.output_count()} outputs")
        return model

    # Read-only views

    @property
    def states(self) -> Tuple[str, ...]:
        return self._states

    @property
    def outputs(self) -> Tuple[str, ...]:
        return self._outputs

    @property
    def A(self) -> np.ndarray:
        return self._A

    @property
    def B(self) -> np.ndarray:
        return self._B

    @property
    def pi(self) -> np.ndarray:
        return self._pi

    @property
    def log_A(self) -> np.ndarray:
        return self._log_A

    @property
    def log_B(self) -> np.ndarray:
        return self._log_B

    @property
    def log_pi(self) -> np.ndarray:
        return self._log_pi

    @property
    def nominal_length(self) -> Optional[int]:
        return self._nominal_length

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def state_count(self) -> int:
        return len(self._states)

    def output_count(self) -> int:
        return len(self._outputs)

    # Name lookups

    def state_index(self, state: str) -> int:
        """Index of ``state`` in the state alphabet, or ``UnknownStateError``."""
        try:
            return self._state_index[state]
        except (KeyError, TypeError):
            raise UnknownStateError(state) from None

    def symbol_index(self, symbol: str) -> int:
        """Index of ``symbol`` in the output alphabet, or ``UnknownSymbolError``."""
        try:
            return self._symbol_index[symbol]
        except (KeyError, TypeError):
            raise UnknownSymbolError(symbol) from None

    def encode_states(self, states: Iterable[str]) -> np.ndarray:
        return np.array([self.state_index(s) for s in states], dtype=np.intp)

    def encode_observations(self, observations: Iterable[str]) -> np.ndarray:
        return np.array([self.symbol_index(o) for o in observations], dtype=np.intp)

    def decode_states(self, indices: Iterable[int]) -> Tuple[str, ...]:
        return tuple(self._states[i] for i in indices)

    # Probability lookups

    def transition_probability(self, from_state: str, to_state: str) -> float:
        """P(next state = ``to_state`` | current state = ``from_state``)."""
        return float(self._A[self.state_index(from_state), self.state_index(to_state)])

    def emission_probability(self, state: str, symbol: str) -> float:
        """P(observe ``symbol`` | current state = ``state``)."""
        return float(self._B[self.state_index(state), self.symbol_index(symbol)])

    def initial_probability(self, state: str) -> float:
        """P(start in ``state``)."""
        return float(self._pi[self.state_index(state)])

    def initial_joint(self, symbol: str, state: str) -> float:
        """Probability of starting in ``state`` and emitting ``symbol``."""
        return self.initial_probability(state) * self.emission_probability(state, symbol)

    def step_joint(self, symbol: str, prev_state: str, state: str) -> float:
        """Probability of moving ``prev_state`` -> ``state`` and emitting ``symbol``."""
        return self.transition_probability(prev_state, state) * self.emission_probability(state, symbol)

    # Validation

    def validate_stochastic_matrices(self) -> bool:
        """
        Validate that all probability tables are proper distributions.

        Returns:
            bool: True if pi, every row of A and every row of B are valid

        Raises:
            ModelValidationError: If any table has negative entries or a row
                whose sum differs from 1 by more than the tolerance
        """
        tolerance = self._tolerance

        for name, table in (("Initial", self._pi), ("Transition", self._A), ("Emission", self._B)):
            if not np.all(np.isfinite(table)):
                raise ModelValidationError(f"{name} probabilities contain non-finite values")

        if np.any(self._pi < 0):
            raise ModelValidationError("Initial probabilities contain negative values")
        if abs(self._pi.sum() - 1.0) > tolerance:
            raise ModelValidationError(f"Initial probabilities sum to {self._pi.sum()}, expected 1.0")

        for name, matrix in (("Transition", self._A), ("Emission", self._B)):
            if np.any(matrix < 0):
                raise ModelValidationError(f"{name} matrix contains negative values")
            row_sums = matrix.sum(axis=1)
            bad = np.flatnonzero(np.abs(row_sums - 1.0) > tolerance)
            if bad.size:
                row = int(bad[0])
                raise ModelValidationError(
                    f"{name} matrix row for state {self._states[row]} sums to "
                    f"{row_sums[row]}, expected 1.0"
                )

        logger.debug("All stochastic matrix properties validated successfully")
        return True

    def summary(self) -> Dict[str, Any]:
        """Plain-data description of the model."""
        return {
            'n_states': self.state_count(),
            'n_outputs': self.output_count(),
            'nominal_length': self._nominal_length,
            'states': list(self._states),
            'outputs': list(self._outputs),
            'transitions': self._A.tolist(),
            'emissions': self._B.tolist(),
            'initial': self._pi.tolist()
        }

    def __repr__(self) -> str:
        return f"HiddenMarkovModel(n_states={self.state_count()}, n_outputs={self.output_count()})"
