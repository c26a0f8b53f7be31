"""
Main CLI application for bw-hmm.

Provides the command-line interface for training, the built-in example and
saved model inspection.
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import load_config_file
from ..logger import configure_logging
from .errors import EXIT_CODES, handle_cli_error

console = Console()

app = typer.Typer(
    name="bw-hmm",
    help="Baum-Welch estimation of discrete Hidden Markov Models",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True
)

from .models import models_app  # noqa: E402
from .train import example_command, train_command  # noqa: E402

app.command("train")(train_command)
app.command("example")(example_command)
app.add_typer(models_app, name="models")


@app.command("version")
def show_version():
    """Show bw-hmm version information."""
    from .. import __version__

    console.print(Panel.fit(
        f"[bold]bw-hmm Version {__version__}[/bold]\n"
        f"Baum-Welch HMM estimation\n"
        f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        border_style="blue"
    ))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging and debug information"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress all output except errors"
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
        help="Path to a JSON configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False
    )
):
    """
    bw-hmm: Baum-Welch estimation of discrete Hidden Markov Models

    \b
    Quick Start:
    1. Try the example:    bw-hmm example
    2. Train on your data: bw-hmm train "0 1 1 0 2 2 1" --states 2
    3. Save and inspect:   bw-hmm train @seq.txt -o models/ && bw-hmm models list models/
    """
    ctx.meta["debug"] = debug

    if config_file:
        try:
            load_config_file(str(config_file))
        except Exception as e:
            handle_cli_error(e, "config", debug)

    # Flags win over the config file; without either, only warnings are shown
    if quiet:
        log_level = 'ERROR'
    elif verbose or debug:
        log_level = 'DEBUG'
    elif config_file:
        log_level = None
    else:
        log_level = 'WARNING'
    configure_logging(log_level)


def cli_main():
    """Main entry point for CLI with error handling."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(EXIT_CODES["general_error"])


if __name__ == "__main__":
    cli_main()
