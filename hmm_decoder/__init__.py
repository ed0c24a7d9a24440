"""
hmm-decoder: evaluation and decoding for discrete Hidden Markov Models

Computes the total probability of observation sequences (forward and
backward algorithms), the joint probability of a given state path, and the
most probable state path (Viterbi) under a model read from a text file.
"""

__version__ = "0.1.0"
__author__ = "hmm-decoder Development Team"

from .config import get_config, set_config
from .logger import get_logger
from .exceptions import (
    HMMDecoderError,
    ParseError,
    ModelValidationError,
    UnknownStateError,
    UnknownSymbolError
)
from .hmm import HiddenMarkovModel
from .infer import SequenceEvaluator, ForwardEngine, BackwardEngine, ViterbiDecoder

__all__ = [
    "get_config",
    "set_config",
    "get_logger",
    "HMMDecoderError",
    "ParseError",
    "ModelValidationError",
    "UnknownStateError",
    "UnknownSymbolError",
    "HiddenMarkovModel",
    "SequenceEvaluator",
    "ForwardEngine",
    "BackwardEngine",
    "ViterbiDecoder",
    "__version__"
]
