"""Package index refresh, alternate shell install and shell registration."""
import shutil
from pathlib import Path
from typing import Callable, Optional

from labprep.core.context import ProvisionContext
from labprep.core.errors import ProvisionError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


class PackageInstaller:
    """Installs the alternate login shell and registers it in /etc/shells."""

    def __init__(self, ctx: ProvisionContext, which: Optional[Callable[[str], Optional[str]]] = None):
        self.ctx = ctx
        self.which = which or shutil.which

    def run(self) -> Optional[str]:
        """Update, install, locate and register the shell.

        Returns:
            Path of the installed shell binary, or None if it is not on PATH
        """
        self.update_index()
        self.install(self.ctx.config.shell_package)

        shell_bin = self.which(self.ctx.config.shell_package)
        self.ctx.shell_bin = shell_bin

        if shell_bin:
            self.register_shell(shell_bin)
        else:
            logger.warning(f"{self.ctx.config.shell_package} not found on PATH after install")

        return shell_bin

    def update_index(self) -> None:
        profile = self.ctx.require_profile()
        self.ctx.runner.run(profile.update_cmd, ok_codes=profile.update_ok_codes)

    def install(self, package: str) -> None:
        profile = self.ctx.require_profile()
        self.ctx.runner.run([*profile.install_cmd, package], env=profile.install_env)

    def register_shell(self, shell_bin: str) -> bool:
        """Append shell_bin to the shells registry unless already listed.

        Returns:
            True if a line was appended
        """
        shells_file = Path(self.ctx.config.shells_file)
        try:
            content = shells_file.read_text() if shells_file.exists() else ""
        except OSError as e:
            raise ProvisionError(f"Cannot read {shells_file}: {e}") from e
        existing = content.splitlines()

        if shell_bin in existing:
            logger.info(f"{shell_bin} already listed in {shells_file}")
            return False

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would append {shell_bin} to {shells_file}")
            return False

        try:
            with open(shells_file, "a") as f:
                if content and not content.endswith("\n"):
                    f.write("\n")
                f.write(f"{shell_bin}\n")
        except OSError as e:
            raise ProvisionError(f"Cannot update {shells_file}: {e}") from e

        logger.info(f"Registered {shell_bin} in {shells_file}")
        return True
