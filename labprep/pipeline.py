"""Ordered, fail-fast provisioning pipeline."""
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import typer

from labprep.core.context import ProvisionContext
from labprep.core.credentials import collect_password, collect_username
from labprep.core.logger import get_logger
from labprep.discovery.osdetect import describe, detect_distribution, select_profile
from labprep.services.accounts import AccountProvisioner
from labprep.services.packages import PackageInstaller
from labprep.services.shell_profile import ShellProfileWriter
from labprep.services.ssh_keys import SshKeyMigrator
from labprep.services.sshd import SshHardener
from labprep.services.workspace import WorkspaceMigrator

logger = get_logger(__name__)


@dataclass(frozen=True)
class Step:
    """One pipeline stage."""
    step_id: str
    description: str
    action: Callable[[ProvisionContext], None]


def detect_os(ctx: ProvisionContext) -> None:
    ctx.distribution = detect_distribution(ctx.config.os_release)
    ctx.profile = select_profile(ctx.distribution)
    typer.echo(describe(ctx.distribution, ctx.profile))


def install_packages(ctx: ProvisionContext) -> None:
    PackageInstaller(ctx).run()


def collect_credentials(ctx: ProvisionContext) -> None:
    ctx.username = collect_username(ctx.input_source)
    ctx.password = collect_password(ctx.input_source)


def create_account(ctx: ProvisionContext) -> None:
    AccountProvisioner(ctx).run()


def migrate_ssh_keys(ctx: ProvisionContext) -> None:
    SshKeyMigrator(ctx).run()


def write_shell_profile(ctx: ProvisionContext) -> None:
    ShellProfileWriter(ctx).run()


def harden_ssh(ctx: ProvisionContext) -> None:
    SshHardener(ctx).run()
    typer.echo(f"✅ User {ctx.username} created and SSH hardened successfully.")


def migrate_workspace(ctx: ProvisionContext) -> None:
    WorkspaceMigrator(ctx).run()


def build_steps() -> List[Step]:
    return [
        Step("detect_os", "Detect distribution", detect_os),
        Step("packages", "Install and register login shell", install_packages),
        Step("credentials", "Collect username and password", collect_credentials),
        Step("account", "Create user account", create_account),
        Step("ssh_keys", "Copy administrator SSH keys", migrate_ssh_keys),
        Step("shell_profile", "Write shell profile", write_shell_profile),
        Step("sshd", "Harden SSH daemon", harden_ssh),
        Step("workspace", "Move homelab workspace", migrate_workspace),
    ]


def run_pipeline(
    ctx: ProvisionContext,
    steps: Optional[Sequence[Step]] = None,
) -> List[str]:
    """Run steps in order, stopping at the first exception.

    Nothing is rolled back: a failure leaves earlier steps applied.

    Returns:
        IDs of the steps that completed
    """
    completed: List[str] = []

    for step in steps if steps is not None else build_steps():
        logger.info(f"Running step {step.step_id}: {step.description}")
        try:
            step.action(ctx)
        except Exception:
            logger.error(f"Step {step.step_id} failed (completed: {', '.join(completed) or 'none'})")
            raise
        completed.append(step.step_id)

    return completed
