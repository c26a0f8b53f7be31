"""
Command-line interface module.

Typer application for training and inspecting HMM estimators.
"""

from .main import app, cli_main

__all__ = ["app", "cli_main"]
