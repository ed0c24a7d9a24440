"""
Batch evaluation over the sequences of an observation file.

Two policies are supported: ``abort`` lets the first per-sequence failure
propagate, ``collect`` records it against that sequence and carries on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

from ..config import get_config
from ..exceptions import HMMDecoderError
from ..logger import get_logger

logger = get_logger(__name__)


class BatchPolicy(str, Enum):
    ABORT = "abort"
    COLLECT = "collect"


@dataclass(frozen=True)
class SequenceOutcome:
    """Result of one sequence in a batch; exactly one of value/error is set."""
    index: int
    observations: Sequence[str]
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_policy(policy: Union[str, BatchPolicy, None]) -> BatchPolicy:
    if policy is None:
        policy = get_config('inference', 'batch_policy') or BatchPolicy.ABORT.value
    try:
        return BatchPolicy(policy)
    except ValueError:
        raise ValueError(f"Unknown batch policy: {policy!r} (expected 'abort' or 'collect')") from None


def run_batch(func: Callable[[Sequence[str]], Any],
              sequences: Iterable[Sequence[str]],
              policy: Union[str, BatchPolicy, None] = None) -> List[SequenceOutcome]:
    """
    Apply ``func`` to every sequence, in order.

    Args:
        func: Per-sequence operation, e.g. ``ForwardEngine(model).score``
        sequences: Observation sequences
        policy: ``abort`` or ``collect`` (default: ``inference.batch_policy``)

    Returns:
        One SequenceOutcome per sequence, in input order

    Raises:
        HMMDecoderError, ValueError: Under ``abort``, the first failure
    """
    policy = resolve_policy(policy)
    outcomes = []

    for index, observations in enumerate(sequences):
        try:
            value = func(observations)
        except (HMMDecoderError, ValueError) as e:
            if policy is BatchPolicy.ABORT:
                raise
            logger.warning(f"Sequence {index + 1} failed: {e}")
            outcomes.append(SequenceOutcome(index, observations, error=str(e)))
            continue
        outcomes.append(SequenceOutcome(index, observations, value=value))

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    logger.debug(f"Batch completed: {len(outcomes)} sequences, {failed} failed")
    return outcomes
