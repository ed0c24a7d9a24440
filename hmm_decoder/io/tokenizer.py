"""
Whitespace tokenizer for the line-oriented model and observation formats.
"""

import math
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar

from ..exceptions import ParseError

T = TypeVar("T")

_KIND_NAMES = {str: "string", int: "integer", float: "floating-point"}


def split_tokens(line: str, kind: Callable[[str], T] = str,
                 source: Optional[str] = None, line_number: Optional[int] = None) -> List[T]:
    """
    Split a line on whitespace and convert every token with ``kind``.

    Args:
        line: Raw text line
        kind: ``str``, ``int`` or ``float``
        source: File name used in error messages
        line_number: 1-based line number used in error messages

    Returns:
        List of converted tokens (empty for a blank line)

    Raises:
        ParseError: If a token cannot be converted, or a float is not finite
    """
    tokens = line.split()
    if kind is str:
        return tokens

    converted = []
    for token in tokens:
        try:
            value = kind(token)
        except ValueError:
            name = _KIND_NAMES.get(kind, getattr(kind, "__name__", "value"))
            raise ParseError(f"expected {name} token, got {token!r}", source, line_number)
        if kind is float and not math.isfinite(value):
            raise ParseError(f"non-finite number {token!r}", source, line_number)
        converted.append(value)
    return converted


def expect_tokens(line: str, count: int, kind: Callable[[str], T], what: str,
                  source: Optional[str] = None, line_number: Optional[int] = None) -> List[T]:
    """Split a line and require exactly ``count`` tokens."""
    tokens = split_tokens(line, kind, source, line_number)
    if len(tokens) != count:
        raise ParseError(f"{what}: expected {count} tokens, found {len(tokens)}",
                         source, line_number)
    return tokens


class LineReader:
    """Sequential reader over numbered lines that fails on premature end of input."""

    def __init__(self, text: str, source: str):
        self.source = source
        self._lines: Iterator[Tuple[int, str]] = enumerate(text.splitlines(), start=1)
        self.line_number = 0

    def next_line(self, what: str) -> str:
        try:
            self.line_number, line = next(self._lines)
        except StopIteration:
            raise ParseError(f"unexpected end of input, expected {what}",
                             self.source, self.line_number + 1)
        return line

    def next_tokens(self, count: int, kind: Callable[[str], T], what: str) -> List[T]:
        line = self.next_line(what)
        return expect_tokens(line, count, kind, what, self.source, self.line_number)

    def skip(self, what: str) -> None:
        self.next_line(what)


def read_text(path, encoding: str = "utf-8") -> str:
    """Read a whole text file; a missing file raises ``FileNotFoundError``."""
    try:
        with open(path, "r", encoding=encoding) as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ParseError(f"not a {encoding} text file ({e.reason})", str(path))
