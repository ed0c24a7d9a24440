"""
Inference module.

Path evaluation, forward and backward probabilities, and Viterbi decoding.
"""

from .evaluator import SequenceEvaluator
from .forward import ForwardEngine, ForwardResult
from .backward import BackwardEngine, BackwardResult
from .viterbi import ViterbiDecoder, ViterbiPath
from .batch import BatchPolicy, SequenceOutcome, run_batch

__all__ = [
    "SequenceEvaluator",
    "ForwardEngine",
    "ForwardResult",
    "BackwardEngine",
    "BackwardResult",
    "ViterbiDecoder",
    "ViterbiPath",
    "BatchPolicy",
    "SequenceOutcome",
    "run_batch"
]
