"""
Main CLI application for hmm-decoder.

Loads a model file and reports forward, backward and Viterbi results for the
sequences of one or more observation files.
"""

import json
import math
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import click
import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..config import get_config, load_config_file
from ..hmm.model import HiddenMarkovModel
from ..infer import (
    BackwardEngine,
    BatchPolicy,
    ForwardEngine,
    SequenceEvaluator,
    ViterbiDecoder,
    run_batch
)
from ..io.observations import parse_observation_file
from ..logger import get_logger, set_log_level
from .errors import (
    ConfigurationError,
    EXIT_CODES,
    display_usage_examples,
    handle_cli_error,
    split_input_paths,
    validate_file_exists
)

console = Console()
logger = get_logger(__name__)

ALGORITHMS = ("forward", "backward", "viterbi")

app = typer.Typer(
    name="hmm-decode",
    help="Evaluate and decode observation sequences with a discrete Hidden Markov Model",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)


def _debug_enabled() -> bool:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return False
    return bool(ctx.find_root().meta.get("debug", False))


def _format_probability(value: Optional[float], log_space: bool) -> str:
    if value is None:
        return "-"
    if log_space and value == -math.inf:
        return "-inf"
    return f"{value:.6g}"


def _json_safe(value: Any) -> Any:
    """Replace non-finite floats with None; JSON has no infinity."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


def _load_model(model_path: Path) -> HiddenMarkovModel:
    validate_file_exists(model_path, "model file")
    return HiddenMarkovModel.from_file(model_path)


def _sequence_analyser(model: HiddenMarkovModel, algorithms: Sequence[str],
                       log_space: bool) -> Callable[[Sequence[str]], Dict[str, Any]]:
    forward = ForwardEngine(model, log_space=log_space)
    backward = BackwardEngine(model, log_space=log_space)
    viterbi = ViterbiDecoder(model, log_space=log_space)

    def analyse(observations: Sequence[str]) -> Dict[str, Any]:
        result = {}
        if "forward" in algorithms:
            result["forward"] = forward.score(observations)
        if "backward" in algorithms:
            result["backward"] = backward.score(observations)
        if "viterbi" in algorithms:
            path = viterbi.decode(observations)
            result["viterbi"] = {
                "probability": path.log_probability if log_space else path.probability,
                "states": list(path.states)
            }
        return result

    return analyse


def _render_file(path: Path, outcomes, algorithms: Sequence[str], log_space: bool) -> None:
    label = "log P" if log_space else "P"
    table = Table(title=str(path))
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Observations", style="magenta")
    if "forward" in algorithms:
        table.add_column(f"Forward {label}", style="green", no_wrap=True)
    if "backward" in algorithms:
        table.add_column(f"Backward {label}", style="green", no_wrap=True)
    if "viterbi" in algorithms:
        table.add_column(f"Viterbi {label}", style="green", no_wrap=True)
        table.add_column("Viterbi path", style="yellow")

    for outcome in outcomes:
        row = [str(outcome.index + 1), escape(" ".join(outcome.observations))]
        if not outcome.ok:
            cells = len(table.columns) - 2
            row.append(f"[red]{escape(outcome.error)}[/red]")
            row.extend([""] * (cells - 1))
        else:
            value = outcome.value
            for name in ("forward", "backward"):
                if name in algorithms:
                    row.append(_format_probability(value[name], log_space))
            if "viterbi" in algorithms:
                row.append(_format_probability(value["viterbi"]["probability"], log_space))
                states = value["viterbi"]["states"]
                row.append(escape(" ".join(states)) if states else "[dim](no possible path)[/dim]")
        table.add_row(*row)

    console.print(table)


def _run_algorithms(model_path: Path, observation_paths: List[Path], algorithms: Sequence[str],
                    log_space: Optional[bool], on_error: Optional[BatchPolicy],
                    output_file: Optional[Path]) -> None:
    if log_space is None:
        log_space = bool(get_config('inference', 'log_space'))

    model = _load_model(model_path)
    analyse = _sequence_analyser(model, algorithms, log_space)

    results = {
        "model": str(model_path),
        "log_space": log_space,
        "algorithms": list(algorithms),
        "files": []
    }

    failed = 0
    for observation_path in observation_paths:
        validate_file_exists(observation_path, "observation file")
        sequences = parse_observation_file(observation_path)
        logger.info(f"Evaluating {len(sequences)} sequences from {observation_path}")

        outcomes = run_batch(analyse, sequences, policy=on_error)
        failed += sum(1 for outcome in outcomes if not outcome.ok)

        _render_file(observation_path, outcomes, algorithms, log_space)
        results["files"].append({
            "path": str(observation_path),
            "sequences": [
                {
                    "index": outcome.index + 1,
                    "observations": list(outcome.observations),
                    "result": _json_safe(outcome.value),
                    "error": outcome.error
                }
                for outcome in outcomes
            ]
        })

    if not observation_paths:
        console.print("[yellow]No observation files given; model loaded successfully[/yellow]")

    if output_file:
        with open(output_file, 'w') as f:
            json.dump(results, f, indent=2, allow_nan=False)
        console.print(f"[green]Results saved to: {escape(str(output_file))}[/green]")

    if failed:
        console.print(f"[yellow]{failed} sequence(s) failed[/yellow]")
        raise typer.Exit(EXIT_CODES["general_error"])


def log_space_option():
    return typer.Option(
        None,
        "--log-space/--linear",
        help="Report natural-log probabilities (default: config inference.log_space)"
    )


def on_error_option():
    return typer.Option(
        None,
        "--on-error",
        case_sensitive=False,
        help="abort on the first bad sequence, or collect errors and continue"
    )


def output_option():
    return typer.Option(
        None,
        "--output",
        "-o",
        help="Write results to a JSON file"
    )


@app.command("run")
def run_all(
    paths: List[str] = typer.Argument(
        ...,
        help="One model file (.hmm) and any number of observation files (.obs)"
    ),
    log_space: Optional[bool] = log_space_option(),
    on_error: Optional[BatchPolicy] = on_error_option(),
    output_file: Optional[Path] = output_option()
):
    """
    Run forward, backward and Viterbi on every observation file.

    Paths are told apart by suffix: exactly one model file, then any number
    of observation files in the order given.
    """
    try:
        model_suffix = get_config('io', 'model_suffix') or '.hmm'
        observation_suffix = get_config('io', 'observation_suffix') or '.obs'
        model_path, observation_paths, ignored = split_input_paths(paths, model_suffix, observation_suffix)
        for path in ignored:
            console.print(f"[yellow]Ignoring argument with unknown suffix: {escape(path)}[/yellow]")

        _run_algorithms(model_path, observation_paths, ALGORITHMS, log_space, on_error, output_file)
    except typer.Exit:
        raise
    except Exception as e:
        handle_cli_error(e, "run", _debug_enabled())


def _single_algorithm_command(name: str, summary: str):
    def command(
        model_file: Path = typer.Argument(..., help="Model file"),
        observation_files: List[Path] = typer.Argument(..., help="Observation files"),
        log_space: Optional[bool] = log_space_option(),
        on_error: Optional[BatchPolicy] = on_error_option(),
        output_file: Optional[Path] = output_option()
    ):
        try:
            _run_algorithms(model_file, observation_files, (name,), log_space, on_error, output_file)
        except typer.Exit:
            raise
        except Exception as e:
            handle_cli_error(e, name, _debug_enabled())

    command.__doc__ = summary
    command.__name__ = name
    return command


app.command("forward")(_single_algorithm_command(
    "forward", "Total probability of each sequence via the forward algorithm."))
app.command("backward")(_single_algorithm_command(
    "backward", "Total probability of each sequence via the backward algorithm."))
app.command("viterbi")(_single_algorithm_command(
    "viterbi", "Most probable state path of each sequence."))


@app.command("evaluate")
def evaluate_path(
    model_file: Path = typer.Argument(..., help="Model file"),
    observations: str = typer.Option(
        ...,
        "--observations",
        "-O",
        help="Whitespace separated observation symbols"
    ),
    states: str = typer.Option(
        ...,
        "--states",
        "-s",
        help="Whitespace separated state names"
    ),
    log_space: Optional[bool] = log_space_option()
):
    """Joint probability of an observation sequence and a given state path."""
    try:
        model = _load_model(model_file)
        evaluator = SequenceEvaluator(model, log_space=log_space)
        value = evaluator.evaluate(observations.split(), states.split())
        label = "log P(O, Q)" if evaluator.log_space else "P(O, Q)"
        console.print(f"{label} = {_format_probability(value, evaluator.log_space)}")
    except Exception as e:
        handle_cli_error(e, "evaluate", _debug_enabled())


@app.command("info")
def model_info(
    model_file: Path = typer.Argument(..., help="Model file")
):
    """Show the alphabets and probability tables of a model."""
    try:
        model = _load_model(model_file)
    except Exception as e:
        handle_cli_error(e, "info", _debug_enabled())

    summary = model.summary()
    console.print(Panel.fit(
        f"[bold]{escape(str(model_file))}[/bold]\n"
        f"States ({summary['n_states']}): {escape(' '.join(summary['states']))}\n"
        f"Outputs ({summary['n_outputs']}): {escape(' '.join(summary['outputs']))}\n"
        f"Nominal length: {summary['nominal_length']}",
        border_style="blue"
    ))

    for title, columns, rows in (
        ("Transitions (A)", summary['states'], summary['transitions']),
        ("Emissions (B)", summary['outputs'], summary['emissions']),
    ):
        table = Table(title=title)
        table.add_column("", style="cyan")
        for column in columns:
            table.add_column(escape(column), no_wrap=True)
        for state, row in zip(summary['states'], rows):
            table.add_row(escape(state), *(f"{p:.4g}" for p in row))
        console.print(table)

    initial = Table(title="Initial (pi)")
    for state in summary['states']:
        initial.add_column(escape(state), no_wrap=True)
    initial.add_row(*(f"{p:.4g}" for p in summary['initial']))
    console.print(initial)


@app.command("examples")
def show_examples():
    """Show usage examples."""
    display_usage_examples()


@app.command("version")
def show_version():
    """Show hmm-decoder version information."""
    from .. import __version__

    console.print(Panel.fit(
        f"[bold]hmm-decoder Version {__version__}[/bold]\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all log output except errors"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode with detailed error traces"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a JSON configuration file"
    )
):
    """
    hmm-decoder: forward, backward and Viterbi for discrete HMMs

    \b
    Quick Start:
    1. All algorithms:   hmm-decode run model.hmm data.obs
    2. One algorithm:    hmm-decode viterbi model.hmm data.obs
    3. A given path:     hmm-decode evaluate model.hmm -O "a b" -s "x y"
    """
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.meta["verbose"] = verbose
        ctx.meta["quiet"] = quiet
        ctx.meta["debug"] = debug

    if config_file:
        try:
            if not config_file.exists():
                raise ConfigurationError(f"Config file not found: {config_file}")
            load_config_file(str(config_file))
        except ValueError as e:
            handle_cli_error(ConfigurationError(str(e)), "configuration loading", debug)
        except ConfigurationError as e:
            handle_cli_error(e, "configuration loading", debug)

    if quiet:
        set_log_level('ERROR')
    elif verbose or debug:
        set_log_level('DEBUG')
    else:
        set_log_level(get_config('logging', 'level') or 'WARNING')


def cli_main():
    """Main entry point for CLI with error handling."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_CODES["general_error"])


if __name__ == "__main__":
    cli_main()
