"""Copies the administrator's authorized keys into the new account."""
import os
import shutil
from pathlib import Path

from labprep.core.context import ProvisionContext
from labprep.core.errors import ProvisionError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


class SshKeyMigrator:
    """Sets up ~/.ssh for the new account with the admin's keys."""

    def __init__(self, ctx: ProvisionContext):
        self.ctx = ctx

    @property
    def ssh_dir(self) -> Path:
        return self.ctx.home / ".ssh"

    def run(self) -> Path:
        """Create ~/.ssh (0700), copy authorized_keys (0600), chown -R.

        Returns:
            Path of the copied authorized_keys file

        Raises:
            ProvisionError: If the administrator has no authorized_keys
        """
        source = Path(self.ctx.config.admin_authorized_keys)
        target = self.ssh_dir / "authorized_keys"

        if not source.is_file():
            raise ProvisionError(f"Cannot copy SSH keys: {source} not found")

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would copy {source} to {target}")
        else:
            try:
                self.ssh_dir.mkdir(parents=True, exist_ok=True)
                os.chmod(self.ssh_dir, 0o700)
                shutil.copyfile(source, target)
                os.chmod(target, 0o600)
            except OSError as e:
                raise ProvisionError(f"Cannot install SSH keys in {self.ssh_dir}: {e}") from e
            logger.info(f"Copied {source} to {target}")

        self.ctx.runner.run(["chown", "-R", self.ctx.owner(), str(self.ssh_dir)])
        return target
