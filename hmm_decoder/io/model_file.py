"""
Model file parsing.

A model file is line oriented::

    N M T
    <N state names>
    <M output symbols>
    a:
    <N lines of N transition probabilities>
    b:
    <N lines of M emission probabilities>
    pi:
    <N initial probabilities>

The label lines are skipped whatever they contain. ``T`` is a nominal
sequence length and is not checked against observation files.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..config import get_config
from ..exceptions import ParseError
from ..logger import get_logger
from .tokenizer import LineReader, read_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    """Raw contents of a parsed model file."""
    n_states: int
    n_outputs: int
    nominal_length: int
    states: Tuple[str, ...]
    outputs: Tuple[str, ...]
    transitions: Tuple[Tuple[float, ...], ...]
    emissions: Tuple[Tuple[float, ...], ...]
    initial: Tuple[float, ...]


def _check_alphabet(names: List[str], what: str, reader: LineReader) -> Tuple[str, ...]:
    seen = set()
    for name in names:
        if name in seen:
            raise ParseError(f"duplicate {what} {name!r}", reader.source, reader.line_number)
        seen.add(name)
    return tuple(names)


def _read_matrix(reader: LineReader, rows: int, cols: int, what: str) -> Tuple[Tuple[float, ...], ...]:
    return tuple(
        tuple(reader.next_tokens(cols, float, f"{what} row {i + 1}"))
        for i in range(rows)
    )


def parse_model_text(text: str, source: str = "<string>") -> ModelSpec:
    """
    Parse model-file text into a ``ModelSpec``.

    Args:
        text: Contents of a model file
        source: Name used in error messages

    Returns:
        Fully populated ModelSpec

    Raises:
        ParseError: On any structural problem; nothing partial is returned
    """
    reader = LineReader(text, source)

    n_states, n_outputs, nominal_length = reader.next_tokens(3, int, "header 'N M T'")
    if n_states < 1:
        raise ParseError(f"state count must be at least 1, got {n_states}", source, reader.line_number)
    if n_outputs < 1:
        raise ParseError(f"output count must be at least 1, got {n_outputs}", source, reader.line_number)

    states = _check_alphabet(reader.next_tokens(n_states, str, "state names"), "state", reader)
    outputs = _check_alphabet(reader.next_tokens(n_outputs, str, "output symbols"), "output symbol", reader)

    reader.skip("transition label")
    transitions = _read_matrix(reader, n_states, n_states, "transition")

    reader.skip("emission label")
    emissions = _read_matrix(reader, n_states, n_outputs, "emission")

    reader.skip("initial-state label")
    initial = tuple(reader.next_tokens(n_states, float, "initial-state probabilities"))

    return ModelSpec(
        n_states=n_states,
        n_outputs=n_outputs,
        nominal_length=nominal_length,
        states=states,
        outputs=outputs,
        transitions=transitions,
        emissions=emissions,
        initial=initial,
    )


def parse_model_file(path: Union[str, Path], encoding: Optional[str] = None) -> ModelSpec:
    """
    Parse a model file from disk.

    Raises:
        FileNotFoundError: If the file cannot be opened
        ParseError: If the file is malformed
    """
    encoding = encoding or get_config('io', 'encoding') or 'utf-8'
    text = read_text(path, encoding)
    spec = parse_model_text(text, source=str(path))
    logger.debug(f"Parsed model file {path}: N={spec.n_states}, M={spec.n_outputs}, "
                 f"T={spec.nominal_length}")
    return spec
