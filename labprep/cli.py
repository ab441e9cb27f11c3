#!/usr/bin/env python3
"""Labprep CLI - prepare a fresh VM for a self-hosted homelab."""

import typer
from rich.console import Console

from labprep import __version__
from labprep.cli_prep_commands import register_prep_commands
from labprep.cli_stack_commands import register_stack_commands

app = typer.Typer(
    name="labprep",
    help="""Labprep - prepare a fresh VM for a self-hosted homelab

Creates a login user, copies root's SSH keys, hardens sshd and moves
the n8n / watchtower / caddy stacks into the new home.

Quick start:
  labprep detect            # Check the distribution is supported
  sudo labprep prep         # Provision the host
  labprep stack status      # See which stacks still need config
""",
    add_completion=False,
)

console = Console()

register_prep_commands(app, console)
register_stack_commands(app, console)


@app.command()
def version():
    """Show Labprep version."""
    console.print(f"Labprep v{__version__}")


def main():
    app()


if __name__ == "__main__":
    main()
