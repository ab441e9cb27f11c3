"""Console and file logging for labprep.

Module loggers are children of the ``labprep`` package logger and carry
no level of their own. The package logger's level (INFO, or DEBUG after
``setup_file_logging(verbose=True)``) decides what reaches the Rich
console handler and the log file.
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

PACKAGE_LOGGER = "labprep"
LOG_FILE = Path("/var/log/labprep/labprep.log")
FALLBACK_LOG_FILE = Path("/tmp/labprep.log")
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

# Path of the active log file once setup_file_logging has run
_log_file_path: Optional[Path] = None


def _package_logger() -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    if package.level == logging.NOTSET:
        package.setLevel(logging.INFO)
    return package


def _open_file_handler(path: Path) -> logging.FileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path)


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> Path:
    """Copy labprep logs into a file for the current run.

    Only the first call in a process attaches a handler; later calls
    return the file already in use. Falls back to /tmp/labprep.log when
    /var/log/labprep is not writable.

    Args:
        log_file: Log file path (default /var/log/labprep/labprep.log)
        verbose: Record debug lines, including captured command output

    Returns:
        Path of the log file
    """
    global _log_file_path

    if _log_file_path is not None:
        return _log_file_path

    target = Path(log_file) if log_file else LOG_FILE
    try:
        handler = _open_file_handler(target)
    except PermissionError:
        target = FALLBACK_LOG_FILE
        handler = _open_file_handler(target)

    level = logging.DEBUG if verbose else logging.INFO
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    package = _package_logger()
    package.addHandler(handler)
    package.setLevel(level)

    _log_file_path = target
    package.info(f"Labprep logging initialized: {target}")
    return target


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a labprep module.

    The Rich console handler lives on the package logger, so records from
    every module share one handler and one level.
    """
    package = _package_logger()

    if not any(isinstance(h, RichHandler) for h in package.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package.addHandler(handler)

    return logging.getLogger(name)
