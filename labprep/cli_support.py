"""Shared utilities for Labprep CLI modules."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from labprep.core.config import PrepConfig, load_config
from labprep.core.errors import ProvisionError


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Set up file logging for CLI commands."""
    from labprep.core.logger import setup_file_logging as _setup_file_logging
    return _setup_file_logging(log_file=log_file, verbose=verbose)


def load_config_or_exit(config_path: Optional[str], console: Console) -> PrepConfig:
    """Load labprep.yml, reporting config errors as exit 1."""
    try:
        return load_config(config_path)
    except ProvisionError as e:
        handle_cli_error(e, console)


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Print an error consistently and exit.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")
