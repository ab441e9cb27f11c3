"""SSH daemon hardening.

Directive patching is a pure function over config lines so it can be
tested without touching /etc/ssh. SshHardener applies it to the real
file, drops the cloud-init override, validates and restarts the daemon.
"""
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import List, Mapping, Pattern, Sequence

from labprep.core.context import ProvisionContext
from labprep.core.errors import CommandError, ProvisionError, SshConfigInvalidError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


def directive_pattern(key: str) -> Pattern[str]:
    """Match a directive line, active or commented out, case-insensitively."""
    return re.compile(rf"^\s*#?\s*{re.escape(key)}\s+", re.IGNORECASE)


def patch_line(lines: Sequence[str], key: str, value: str) -> List[str]:
    """Set `key value` in a list of config lines.

    Every line matching the directive (commented or not) is replaced by
    `key value`. When nothing matches, the directive is appended as one
    new line. Applying the same patch twice gives the same result.
    """
    pattern = directive_pattern(key)
    replacement = f"{key} {value}"

    patched = []
    found = False
    for line in lines:
        if pattern.match(line):
            patched.append(replacement)
            found = True
        else:
            patched.append(line)

    if not found:
        patched.append(replacement)
    return patched


def patch_text(text: str, directives: Mapping[str, str]) -> str:
    """Apply directives in order to the text of an sshd_config."""
    lines = text.splitlines()
    for key, value in directives.items():
        lines = patch_line(lines, key, value)
    return "\n".join(lines) + "\n"


def replace_file(path: Path, text: str) -> None:
    """Swap text into path through a temp file in the same directory.

    The temp file takes over the original's mode and ownership before
    os.replace, so a failed write leaves the original file intact.
    """
    path = Path(path)
    st = path.stat()
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as f:
            tmp_path = Path(f.name)
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        shutil.copystat(path, tmp_path)
        os.chown(tmp_path, st.st_uid, st.st_gid)
        os.replace(tmp_path, path)
    except Exception:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


class SshHardener:
    """Disables password and root login, then reloads sshd."""

    def __init__(self, ctx: ProvisionContext):
        self.ctx = ctx

    def run(self) -> None:
        self.patch_config()
        self.remove_drop_in()
        self.validate()
        self.restart()

    def patch_config(self) -> bool:
        """Rewrite sshd_config with the configured directives.

        Returns:
            True if the file content changed
        """
        config_path = Path(self.ctx.config.sshd_config)
        if not config_path.is_file():
            raise ProvisionError(f"SSH daemon config not found: {config_path}")

        original = config_path.read_text()
        patched = patch_text(original, self.ctx.config.sshd_directives)
        changed = patched != original

        for key, value in self.ctx.config.sshd_directives.items():
            logger.info(f"sshd_config: {key} {value}")

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would write {config_path} (changed={changed})")
        elif changed:
            try:
                replace_file(config_path, patched)
            except OSError as e:
                raise ProvisionError(f"Failed to write {config_path}: {e}") from e

        return changed

    def remove_drop_in(self) -> bool:
        """Delete the cloud-init override so it cannot re-enable passwords."""
        drop_in = Path(self.ctx.config.sshd_drop_in)
        if not drop_in.is_file():
            return False

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would remove {drop_in}")
            return False

        try:
            drop_in.unlink()
        except OSError as e:
            raise ProvisionError(f"Failed to remove {drop_in}: {e}") from e
        logger.info(f"Removed {drop_in}")
        return True

    def validate(self) -> None:
        """Run `sshd -t`.

        Raises:
            SshConfigInvalidError: If sshd rejects the configuration
        """
        try:
            self.ctx.runner.run([str(self.ctx.config.sshd_binary), "-t"])
        except CommandError as e:
            raise SshConfigInvalidError(e.argv, e.returncode, e.stderr) from e

    def restart(self) -> None:
        service = self.ctx.require_profile().ssh_service
        self.ctx.runner.run(["systemctl", "restart", service])
        logger.info(f"Restarted {service}")
