"""
Error handling for CLI commands.

Defines CLI exceptions and error handling utilities for better user experience.
"""

import traceback
from pathlib import Path
from typing import Optional
import logging

import typer
from rich.console import Console
from rich.markup import escape

from ..exceptions import ConfigurationError, PersistenceError

console = Console()
logger = logging.getLogger(__name__)

EXIT_CODES = {
    "success": 0,
    "general_error": 1,
    "invalid_input": 2,
    "model_error": 3,
    "config_error": 4
}


class BwHmmCLIError(Exception):
    """Base exception for CLI-specific errors."""

    def __init__(self, message: str, exit_code: int = 1, suggestions: Optional[list] = None):
        self.message = message
        self.exit_code = exit_code
        self.suggestions = suggestions or []
        super().__init__(message)


class InputError(BwHmmCLIError):
    """Observation input errors."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["invalid_input"], suggestions)


class ModelError(BwHmmCLIError):
    """Model storage errors."""

    def __init__(self, message: str, suggestions: Optional[list] = None):
        super().__init__(message, EXIT_CODES["model_error"], suggestions)


def exit_code_for(error: Exception) -> int:
    """Map an exception to a process exit code."""
    if isinstance(error, BwHmmCLIError):
        return error.exit_code
    if isinstance(error, ValueError):
        return EXIT_CODES["invalid_input"]
    if isinstance(error, PersistenceError):
        return EXIT_CODES["model_error"]
    if isinstance(error, ConfigurationError):
        return EXIT_CODES["config_error"]
    return EXIT_CODES["general_error"]


def format_error_message(error: Exception, operation: str, debug: bool = False) -> str:
    """Format error message with context and suggestions."""
    error_type = type(error).__name__

    message_parts = [
        f"[red]Error during {operation}:[/red]",
        f"[red]{error_type}: {escape(str(error))}[/red]"
    ]

    if getattr(error, 'suggestions', None):
        message_parts.append("")
        message_parts.append("[yellow]Suggestions:[/yellow]")
        for suggestion in error.suggestions:
            message_parts.append(f"  • {suggestion}")

    if debug:
        message_parts.append("")
        message_parts.append("[dim]Debug information:[/dim]")
        message_parts.append(f"[dim]{escape(traceback.format_exc())}[/dim]")

    return "\n".join(message_parts)


def handle_cli_error(error: Exception, operation: str, debug: bool = False) -> None:
    """Display an error with rich formatting and exit with the matching code."""
    console.print(format_error_message(error, operation, debug))
    console.print(f"\n[dim]For more help, run: bw-hmm {operation.split()[0]} --help[/dim]")

    logger.error(f"CLI error in {operation}: {error}", exc_info=debug)

    raise typer.Exit(exit_code_for(error))


def validate_models_directory(path: Path) -> Path:
    """Validate that a directory exists and holds saved models."""
    if not path.exists() or not path.is_dir():
        raise ModelError(
            f"Models directory not found: {path}",
            suggestions=[f"Train and save a model first: bw-hmm train '<observations>' --output {path}"]
        )

    if not list(path.glob("*.pkl")):
        raise ModelError(
            f"No model files (*.pkl) found in: {path}",
            suggestions=[
                f"Train and save a model first: bw-hmm train '<observations>' --output {path}",
                "Verify model file extensions (.pkl expected)"
            ]
        )

    return path


__all__ = [
    "BwHmmCLIError",
    "InputError",
    "ModelError",
    "EXIT_CODES",
    "exit_code_for",
    "format_error_message",
    "handle_cli_error",
    "validate_models_directory",
]
