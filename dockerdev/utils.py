"""Utility functions for the bootstrap tool."""
import logging
import os
import shutil
import sys

import sh

from dockerdev.errors import CommandFailed

LOG_LEVEL_ENV = "DOCKER_DEV_LOG_LEVEL"

logger = logging.getLogger(__name__)


def command_exists(command: str) -> bool:
    """Check if a command exists in the system PATH."""
    return shutil.which(command) is not None


def get_real_user() -> str:
    """Get the real username (handles sudo)."""
    return os.environ.get('SUDO_USER', os.environ.get('USER', ''))


def run_command(program: str, *args: str, sudo: bool = False, interactive: bool = False) -> str:
    """Run an external program and return its stdout.

    Interactive commands run in the foreground so prompts and progress reach
    the terminal; nothing is captured for them and an empty string is returned.
    """
    argv = ['sudo', program, *args] if sudo else [program, *args]
    logger.debug("Running: %s", argv)
    try:
        command = sh.Command(argv[0])
        if interactive:
            command(*argv[1:], _fg=True)
            return ""
        return str(command(*argv[1:], _decode_errors="replace"))
    except sh.CommandNotFound:
        raise CommandFailed(argv, 127) from None
    except sh.ErrorReturnCode as e:
        raise CommandFailed(argv, e.exit_code) from e


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"[INFO] {message}")


def log_action(message: str) -> None:
    """Log an action being performed."""
    print(f"  -> {message}")


def log_warning(message: str) -> None:
    """Log a failure that does not stop the run."""
    print(f"[WARN] {message}")


def log_error(message: str) -> None:
    """Log the reason a run is aborting."""
    print(f"[ERROR] {message}", file=sys.stderr)


def setup_logging() -> None:
    """Configure stdlib logging; sh logs the commands it runs at INFO/DEBUG."""
    level_name = os.environ.get(LOG_LEVEL_ENV, 'WARNING').upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
