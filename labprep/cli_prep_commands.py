"""Provisioning CLI commands - prep, harden-ssh, detect."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from labprep.cli_support import (
    handle_cli_error,
    load_config_or_exit,
    print_success,
    setup_file_logging,
)
from labprep.core.context import ProvisionContext
from labprep.core.errors import ProvisionError
from labprep.core.lock import LockError, PrepLock
from labprep.core.runner import CommandRunner
from labprep.discovery.osdetect import detect_distribution, select_profile
from labprep.pipeline import detect_os, run_pipeline
from labprep.services.sshd import SshHardener

# Module-level console instance (will be set by register function)
console: Console = Console()


def prep(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config file path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log commands and file changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
    lock_file: Optional[str] = typer.Option(None, "--lock-file", help="Lock file path"),
):
    """Provision this host: login user, SSH hardening, homelab workspace.

    Runs every step in order and stops at the first failure. Must run as
    root on a supported distribution (Ubuntu, Debian, Amazon Linux).

    Examples:
        sudo labprep prep             # Full run
        labprep prep --dry-run        # Show what would happen
    """
    setup_file_logging(log_file=log_file, verbose=verbose)
    prep_config = load_config_or_exit(config, console)
    ctx = ProvisionContext(config=prep_config, runner=CommandRunner(mock=dry_run))

    try:
        if ctx.dry_run:
            run_pipeline(ctx)
        else:
            with PrepLock(Path(lock_file) if lock_file else prep_config.lock_file):
                run_pipeline(ctx)
    except (ProvisionError, LockError) as e:
        handle_cli_error(e, console, verbose)


def harden_ssh(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config file path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Log changes without applying them"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Log file path"),
):
    """Only patch sshd_config, validate it and restart sshd."""
    setup_file_logging(log_file=log_file, verbose=verbose)
    prep_config = load_config_or_exit(config, console)
    ctx = ProvisionContext(config=prep_config, runner=CommandRunner(mock=dry_run))

    try:
        detect_os(ctx)
        SshHardener(ctx).run()
    except ProvisionError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, "SSH hardened")


def detect(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show the detected distribution and package-manager profile."""
    prep_config = load_config_or_exit(config, console)

    try:
        distribution = detect_distribution(prep_config.os_release)
        profile = select_profile(distribution)
    except ProvisionError as e:
        handle_cli_error(e, console)

    table = Table(title="Host profile", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Distribution", f"{distribution.id} {distribution.version}".strip())
    table.add_row("Family", profile.family)
    table.add_row("Package manager", profile.manager)
    table.add_row("Update", " ".join(profile.update_cmd))
    table.add_row("Install", " ".join(profile.install_cmd))
    table.add_row("Admin group", profile.admin_group)
    table.add_row("SSH service", profile.ssh_service)
    console.print(table)


def register_prep_commands(app: typer.Typer, shared_console: Console) -> None:
    """Register provisioning commands with the main Typer app."""
    global console
    console = shared_console

    app.command()(prep)
    app.command("harden-ssh")(harden_ssh)
    app.command()(detect)
