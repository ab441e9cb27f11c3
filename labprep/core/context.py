"""State threaded through every provisioning step."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from labprep.core.config import PrepConfig
from labprep.core.credentials import InputSource, TerminalInput
from labprep.core.runner import CommandRunner
from labprep.discovery.osdetect import Distribution, PackageProfile


@dataclass
class ProvisionContext:
    """Inputs for one provisioning run plus the values steps produce.

    Steps read what earlier steps stored here instead of sharing globals:
    the OS detector fills distribution/profile, the package installer
    fills shell_bin, the credential collector fills username/password,
    and the account provisioner fills login_shell.
    """

    config: PrepConfig = field(default_factory=PrepConfig)
    runner: CommandRunner = field(default_factory=CommandRunner)
    input_source: InputSource = field(default_factory=TerminalInput)

    distribution: Optional[Distribution] = None
    profile: Optional[PackageProfile] = None
    shell_bin: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    login_shell: Optional[str] = None

    @property
    def dry_run(self) -> bool:
        return self.runner.mock

    @property
    def home(self) -> Path:
        """Home directory of the account being provisioned."""
        if self.username is None:
            raise RuntimeError("username has not been collected yet")
        return self.config.home_for(self.username)

    def shell_installed(self) -> bool:
        """True when the alternate shell binary exists and is executable."""
        return bool(self.shell_bin) and os.path.isfile(self.shell_bin) and os.access(self.shell_bin, os.X_OK)

    def require_profile(self) -> PackageProfile:
        if self.profile is None:
            raise RuntimeError("OS detection has not run yet")
        return self.profile

    def owner(self) -> str:
        """Return the user:group owner passed to chown."""
        return f"{self.username}:{self.username}"
