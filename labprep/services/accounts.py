"""OS account creation for the new login user."""
import pwd
from typing import Callable, Optional

from labprep.core.context import ProvisionContext
from labprep.core.errors import UserExistsError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


def _lookup_user(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


class AccountProvisioner:
    """Creates the account exactly once, sets its password and groups."""

    def __init__(self, ctx: ProvisionContext, user_exists: Optional[Callable[[str], bool]] = None):
        self.ctx = ctx
        self.user_exists = user_exists or _lookup_user

    def ensure_absent(self) -> None:
        """Abort if the account already exists.

        Raises:
            UserExistsError: If the username is taken
        """
        if self.user_exists(self.ctx.username):
            raise UserExistsError(f"❌ User {self.ctx.username} already exists.")

    def login_shell(self) -> str:
        """Alternate shell when it is installed and executable, else the fallback."""
        if self.ctx.shell_installed():
            return self.ctx.shell_bin
        return self.ctx.config.fallback_shell

    def run(self) -> None:
        self.ensure_absent()

        username = self.ctx.username
        profile = self.ctx.require_profile()
        runner = self.ctx.runner

        shell = self.login_shell()
        self.ctx.login_shell = shell

        runner.run(["useradd", "--create-home", "--shell", shell, username])
        runner.run(["chpasswd"], input_text=f"{username}:{self.ctx.password}\n")
        runner.run(["usermod", "-aG", profile.admin_group, username])
        runner.run(["usermod", "-aG", self.ctx.config.container_group, username])

        logger.info(
            f"Created {username} (shell {shell}, groups "
            f"{profile.admin_group},{self.ctx.config.container_group})"
        )
