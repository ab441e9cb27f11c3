"""External command execution with consistent logging."""
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence

from labprep.core.errors import CommandError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def is_mock() -> bool:
    """Return True when LABPREP_MOCK requests a dry run."""
    return os.environ.get("LABPREP_MOCK", "").lower() in ("1", "true")


class CommandRunner:
    """Runs host commands, raising CommandError on unexpected exit codes."""

    def __init__(self, mock: bool = False):
        self.mock = mock or is_mock()

    def run(
        self,
        argv: Sequence[str],
        *,
        input_text: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        ok_codes: Iterable[int] = (0,),
    ) -> CommandResult:
        """Run a command and return its captured output.

        Args:
            argv: Command and arguments
            input_text: Data written to stdin (never logged)
            env: Extra environment variables
            ok_codes: Exit codes treated as success

        Raises:
            CommandError: If the exit code is not in ok_codes
        """
        argv_list = [str(a) for a in argv]

        if self.mock:
            logger.info(f"MOCK: Would run {format_argv(argv_list)}")
            return CommandResult(argv=argv_list, returncode=0)

        logger.info(f"CMD {format_argv(argv_list)}")
        try:
            proc = subprocess.run(
                argv_list,
                input=input_text,
                capture_output=True,
                text=True,
                env=dict(os.environ, **(env or {})),
            )
        except FileNotFoundError as e:
            raise CommandError(argv_list, 127, str(e)) from e

        if proc.stdout:
            logger.debug(f"STDOUT {proc.stdout.strip()}")
        if proc.stderr:
            logger.debug(f"STDERR {proc.stderr.strip()}")

        if proc.returncode not in tuple(ok_codes):
            raise CommandError(argv_list, proc.returncode, proc.stderr or "")

        return CommandResult(
            argv=argv_list,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
