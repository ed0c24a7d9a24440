"""
Logging infrastructure for hmm-decoder.

Every module logs under the ``hmm_decoder`` logger tree. Diagnostics go to
stderr, optionally mirrored to a file, so stdout carries only results.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import LOG_LEVELS, get_config

ROOT_LOGGER_NAME = 'hmm_decoder'
DEFAULT_LEVEL = logging.WARNING


def resolve_level(level: Union[str, int, None]) -> int:
    """Numeric level for a name such as ``"debug"``; unknown names give WARNING."""
    if isinstance(level, int):
        return level
    name = str(level or '').strip().upper()
    if name in LOG_LEVELS:
        return getattr(logging, name)
    return DEFAULT_LEVEL


def _file_handler(log_file: str, level: int, formatter: Optional[logging.Formatter]) -> logging.FileHandler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path)
    handler.setLevel(level)
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


class HMMDecoderLogger:
    """Owns the handlers of the ``hmm_decoder`` root logger."""

    def __init__(self):
        self.root = logging.getLogger(ROOT_LOGGER_NAME)
        self._configure()

    def _configure(self):
        level = resolve_level(get_config('logging', 'level'))
        formatter = logging.Formatter(get_config('logging', 'format'))

        self.root.handlers.clear()
        self.root.setLevel(level)
        self.root.propagate = False

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        self.root.addHandler(console_handler)

        if get_config('logging', 'file_logging'):
            log_file = get_config('logging', 'log_file') or 'hmm_decoder.log'
            self.root.addHandler(_file_handler(log_file, level, formatter))

    def get_logger(self, name: str) -> logging.Logger:
        if not name.startswith(ROOT_LOGGER_NAME):
            name = f'{ROOT_LOGGER_NAME}.{name}'
        return logging.getLogger(name)

    def set_level(self, level: Union[str, int]):
        """Apply one level to the root logger and all of its handlers."""
        numeric = resolve_level(level)
        self.root.setLevel(numeric)
        for handler in self.root.handlers:
            handler.setLevel(numeric)

    def _file_handlers(self):
        return [h for h in self.root.handlers if isinstance(h, logging.FileHandler)]

    def enable_file_logging(self, log_file: Optional[str] = None):
        """Mirror log output to a file; a no-op if a file handler exists."""
        if self._file_handlers():
            return

        if log_file is None:
            log_file = get_config('logging', 'log_file') or 'hmm_decoder.log'
        formatter = self.root.handlers[0].formatter if self.root.handlers else None
        self.root.addHandler(_file_handler(log_file, self.root.level, formatter))

    def disable_file_logging(self):
        for handler in self._file_handlers():
            self.root.removeHandler(handler)
            handler.close()


_logger_manager = HMMDecoderLogger()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger inside the ``hmm_decoder`` tree."""
    return _logger_manager.get_logger(name)


def set_log_level(level: Union[str, int]):
    _logger_manager.set_level(level)


def enable_file_logging(log_file: Optional[str] = None):
    _logger_manager.enable_file_logging(log_file)


def disable_file_logging():
    _logger_manager.disable_file_logging()
