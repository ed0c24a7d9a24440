"""
Exception hierarchy for hmm-decoder.
"""

from typing import Optional


class HMMDecoderError(Exception):
    """Base exception for hmm-decoder."""
    pass


class ParseError(HMMDecoderError):
    """Structurally malformed model or observation file."""

    def __init__(self, message: str, source: Optional[str] = None, line: Optional[int] = None):
        self.source = source
        self.line = line
        location = ""
        if source is not None:
            location = f"{source}:{line}: " if line is not None else f"{source}: "
        super().__init__(f"{location}{message}")


class ModelValidationError(HMMDecoderError, ValueError):
    """Probability tables that are not proper distributions."""
    pass


class LookupFailure(HMMDecoderError, KeyError):
    """A name that is not part of the model's alphabets."""

    def __init__(self, name):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return self.message()

    def message(self) -> str:
        return f"no such name: {self.name}"


class UnknownStateError(LookupFailure):
    """State name absent from the state alphabet."""

    def message(self) -> str:
        return f"No such state: {self.name}"


class UnknownSymbolError(LookupFailure):
    """Observation symbol absent from the output alphabet."""

    def message(self) -> str:
        return f"No such output: {self.name}"
