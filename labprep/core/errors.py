"""Error types raised by provisioning steps.

Steps raise, the CLI reports and exits 1. Nothing in between catches.
"""
from typing import Sequence


class ProvisionError(Exception):
    """Base class for every fatal provisioning failure."""
    pass


class UnsupportedOSError(ProvisionError):
    """Raised when the distribution cannot be detected or is not supported."""
    pass


class UserExistsError(ProvisionError):
    """Raised when the requested account is already present."""
    pass


class CredentialError(ProvisionError):
    """Raised when a bounded prompt loop runs out of attempts."""
    pass


class ConfigError(ProvisionError):
    """Raised for an unreadable or malformed labprep.yml."""
    pass


class CommandError(ProvisionError):
    """Raised when an external command exits with an unexpected code."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class SshConfigInvalidError(CommandError):
    """Raised when sshd rejects the patched configuration."""
    pass
