"""
Observation file parsing.

The first line holds the number of sequences. Each sequence then takes two
lines: a header that is skipped and a line of whitespace separated symbols.
Symbols are not checked against any model here.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..config import get_config
from ..exceptions import ParseError
from ..logger import get_logger
from .tokenizer import LineReader, read_text

logger = get_logger(__name__)


def parse_observation_text(text: str, source: str = "<string>") -> List[List[str]]:
    """
    Parse observation-file text into a list of symbol sequences, in file order.

    Raises:
        ParseError: On a bad count line, a missing line or an empty sequence
    """
    reader = LineReader(text, source)

    count, = reader.next_tokens(1, int, "sequence count")
    if count < 0:
        raise ParseError(f"sequence count must not be negative, got {count}", source, reader.line_number)

    sequences = []
    for i in range(count):
        reader.skip(f"header of sequence {i + 1}")
        symbols = reader.next_line(f"symbols of sequence {i + 1}").split()
        if not symbols:
            raise ParseError(f"sequence {i + 1} is empty", source, reader.line_number)
        sequences.append(symbols)

    return sequences


def parse_observation_file(path: Union[str, Path], encoding: Optional[str] = None) -> List[List[str]]:
    """
    Parse an observation file from disk.

    Raises:
        FileNotFoundError: If the file cannot be opened
        ParseError: If the file is malformed
    """
    encoding = encoding or get_config('io', 'encoding') or 'utf-8'
    text = read_text(path, encoding)
    sequences = parse_observation_text(text, source=str(path))
    logger.debug(f"Parsed {len(sequences)} observation sequences from {path}")
    return sequences
