"""
Model and observation file I/O.

Tokenizes the line-oriented text formats and parses them into raw arrays.
"""

from .tokenizer import split_tokens
from .model_file import ModelSpec, parse_model_file, parse_model_text
from .observations import parse_observation_file, parse_observation_text

__all__ = [
    "split_tokens",
    "ModelSpec",
    "parse_model_file",
    "parse_model_text",
    "parse_observation_file",
    "parse_observation_text"
]
