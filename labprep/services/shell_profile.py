"""Minimal zsh startup file for the new account."""
from pathlib import Path
from typing import Optional

from labprep.core.context import ProvisionContext
from labprep.core.errors import ProvisionError
from labprep.core.logger import get_logger

logger = get_logger(__name__)

ZSHRC_TEMPLATE = """\
# ~/.zshrc – minimal starter file
# This tells 'zsh' where to save your command history (all the commands you type).
export HISTFILE=~/.zsh_history
# This sets how many commands 'zsh' remembers in its history.
export HISTSIZE=10000
export SAVEHIST=10000
# These lines make sure your command history is saved properly and shared across different 'zsh' windows.
setopt inc_append_history share_history
# This sets what your command prompt looks like. It makes it colorful and shows your username and where you are.
PROMPT='%F{green}%n@%m%f:%F{blue}%~%f$ '
"""


class ShellProfileWriter:
    """Writes ~/.zshrc when zsh is the installed alternate shell."""

    def __init__(self, ctx: ProvisionContext):
        self.ctx = ctx

    def run(self) -> Optional[Path]:
        if not self.ctx.shell_installed():
            logger.info("Alternate shell not installed; skipping .zshrc")
            return None

        zshrc = self.ctx.home / ".zshrc"
        if self.ctx.dry_run:
            logger.info(f"MOCK: Would write {zshrc}")
        else:
            try:
                zshrc.write_text(ZSHRC_TEMPLATE)
            except OSError as e:
                raise ProvisionError(f"Failed to write {zshrc}: {e}") from e
            logger.info(f"Wrote {zshrc}")

        self.ctx.runner.run(["chown", self.ctx.owner(), str(zshrc)])
        return zshrc
