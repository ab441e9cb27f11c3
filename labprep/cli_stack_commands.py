"""Compose stack CLI commands."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from labprep.cli_support import (
    handle_cli_error,
    load_config_or_exit,
    print_success,
    print_warning,
)
from labprep.core.errors import ProvisionError
from labprep.services.stack import discover_stacks

stack_app = typer.Typer(help="Inspect the homelab compose stacks", add_completion=False)
_STACK_APP_ATTACHED = False
console = Console()


def register_stack_commands(app: typer.Typer, shared_console: Console) -> None:
    """Attach stack subcommands to the main Typer app."""
    global console, _STACK_APP_ATTACHED
    console = shared_console

    if not _STACK_APP_ATTACHED:
        app.add_typer(stack_app, name="stack")
        _STACK_APP_ATTACHED = True


def _mark(present: bool) -> str:
    return "[green]✓[/green]" if present else "[red]✗[/red]"


@stack_app.command("status")
def stack_status(
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Project directory (default: configured project_dir)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config file path"),
) -> None:
    """List compose stacks, their services, images and required files."""
    prep_config = load_config_or_exit(config, console)
    project_dir = Path(path) if path else prep_config.project_dir

    try:
        stacks = discover_stacks(project_dir, prep_config.env_files)
    except ProvisionError as e:
        handle_cli_error(e, console)

    if not stacks:
        print_warning(console, f"No compose stacks found in {project_dir}")
        raise typer.Exit(1)

    table = Table(title=f"Stacks in {project_dir}", show_header=True, header_style="bold cyan")
    table.add_column("Stack")
    table.add_column("Services")
    table.add_column("Images")
    table.add_column("Active files")
    table.add_column("Secrets")

    for stack in stacks:
        table.add_row(
            stack.name,
            ", ".join(stack.services),
            "\n".join(stack.images.values()) or "-",
            "\n".join(f"{_mark(ok)} {name}" for name, ok in stack.active_files.items()) or "-",
            "\n".join(f"{_mark(ok)} {name}" for name, ok in stack.secret_files.items()) or "-",
        )
    console.print(table)

    pending = [s.name for s in stacks if not s.ready]
    if pending:
        print_warning(console, f"Not ready: {', '.join(pending)}")
    else:
        print_success(console, "All stacks ready")
