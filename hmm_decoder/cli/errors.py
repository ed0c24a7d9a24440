"""
Error handling for CLI commands.

Defines CLI-specific exceptions, exit codes and rich error reporting.
"""

import traceback
from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from ..exceptions import LookupFailure, ModelValidationError, ParseError

console = Console()
logger = logging.getLogger(__name__)


# Exit codes for different error types
EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_usage": 2,
    "parse_error": 10,
    "model_error": 11,
    "file_error": 12,
    "config_error": 13,
    "lookup_error": 14
}


class HMMDecoderCLIError(Exception):
    """Base exception for CLI-specific errors."""

    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[list] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


class UsageError(HMMDecoderCLIError):
    """Bad combination of command-line arguments."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["invalid_usage"], suggestions)


class InputFileError(HMMDecoderCLIError):
    """Model or observation file that cannot be opened."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["file_error"], suggestions)


class ConfigurationError(HMMDecoderCLIError):
    """Configuration file problems."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["config_error"], suggestions)


def exit_code_for(error: Exception) -> int:
    """Map an exception to a process exit code."""
    if isinstance(error, HMMDecoderCLIError):
        return error.exit_code
    if isinstance(error, FileNotFoundError):
        return EXIT_CODES["file_error"]
    if isinstance(error, ParseError):
        return EXIT_CODES["parse_error"]
    if isinstance(error, ModelValidationError):
        return EXIT_CODES["model_error"]
    if isinstance(error, LookupFailure):
        return EXIT_CODES["lookup_error"]
    return EXIT_CODES["general_error"]


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__

    message_parts = [
        f"[red]Error during {escape(operation)}:[/red]",
        f"[red]{error_type}: {escape(str(error))}[/red]"
    ]

    if getattr(error, 'suggestions', None):
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in error.suggestions:
            message_parts.append(f"  • {escape(suggestion)}")

    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{escape(traceback.format_exc())}[/dim]")

    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Report an error and leave with the matching exit code."""
    exit_code = exit_code_for(error)

    console.print(format_error_message(error, operation, debug), markup=True, highlight=False)
    console.print("\n[dim]For more help, run: hmm-decode --help[/dim]")

    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)

    raise typer.Exit(exit_code)


def validate_file_exists(path: Path, file_type: str = "file") -> Path:
    """Validate that a file exists with helpful error messages."""
    if not path.exists():
        suggestions = []

        if not path.parent.exists():
            suggestions.append(f"Directory does not exist: {path.parent}")
        else:
            similar_files = [
                file.name for file in path.parent.iterdir()
                if file.suffix == path.suffix and file.name != path.name
            ]
            if similar_files:
                suggestions.append(f"Did you mean one of: {', '.join(sorted(similar_files)[:3])}")

        raise InputFileError(f"{file_type.capitalize()} not found: {path}", suggestions=suggestions)

    if path.is_dir():
        raise InputFileError(f"{file_type.capitalize()} is a directory: {path}")

    return path


def split_input_paths(paths: Sequence[str], model_suffix: str,
                      observation_suffix: str) -> Tuple[Path, List[Path], List[str]]:
    """
    Sort command-line paths into the model file and observation files.

    Returns:
        Tuple of (model path, observation paths in argument order, ignored arguments)

    Raises:
        UsageError: If no path, or more than one path, names a model file
    """
    model_paths = [p for p in paths if p.endswith(model_suffix)]
    observation_paths = [Path(p) for p in paths if p.endswith(observation_suffix)]
    ignored = [p for p in paths if not p.endswith(model_suffix) and not p.endswith(observation_suffix)]

    if not model_paths:
        raise UsageError(
            f"no {model_suffix} file found",
            suggestions=[f"Usage: hmm-decode run model{model_suffix} [observations{observation_suffix} ...]"]
        )
    if len(model_paths) > 1:
        raise UsageError(
            f"only one {model_suffix} file may be given, got {len(model_paths)}",
            suggestions=[f"Run once per model: {', '.join(model_paths)}"]
        )

    return Path(model_paths[0]), observation_paths, ignored


def create_usage_examples() -> List[str]:
    """Usage examples shown by ``hmm-decode examples``."""
    return [
        "# Forward, backward and Viterbi for every sequence",
        "hmm-decode run weather.hmm walks.obs more.obs",
        "",
        "# One algorithm, in log space, keep going past bad sequences",
        "hmm-decode forward weather.hmm walks.obs --log-space --on-error collect",
        "",
        "# Joint probability of a given state path",
        "hmm-decode evaluate weather.hmm -O 'Walk Shop' -s 'Rainy Sunny'",
        "",
        "# Save results as JSON",
        "hmm-decode viterbi weather.hmm walks.obs -o results.json"
    ]


def display_usage_examples() -> None:
    console.print(Panel.fit(
        "[bold]hmm-decode Usage Examples[/bold]\n\n" + escape("\n".join(create_usage_examples())),
        border_style="green"
    ))
