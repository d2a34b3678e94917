"""Capability checks: is something already available on this machine?

Every check is read-only and answers False whenever it cannot tell, so the
step that depends on it gets attempted rather than silently skipped.
"""
import logging
from typing import Iterable, List

from dockerdev.errors import CommandFailed
from dockerdev.utils import command_exists, run_command

logger = logging.getLogger(__name__)

# `dory status` prints this when the proxy is down.
DORY_NOT_RUNNING = "not running"


def _probe(program: str, *args: str) -> bool:
    """Run a command and report whether it exited zero."""
    try:
        run_command(program, *args)
    except (CommandFailed, UnicodeError) as e:
        logger.debug("Probe failed: %s", e)
        return False
    return True


def missing_commands(commands: Iterable[str]) -> List[str]:
    """Return the commands that are not on PATH, in the order given."""
    return [command for command in commands if not command_exists(command)]


def docker_daemon_running() -> bool:
    """Check if the docker service reports itself as running."""
    return _probe('service', 'docker', 'status')


def docker_accessible() -> bool:
    """Check if the current session can talk to the docker daemon without sudo."""
    return _probe('docker', 'ps')


def in_group(user: str, group: str) -> bool:
    """Check the group database for the user's membership."""
    try:
        groups = run_command('id', '-Gn', user)
    except (CommandFailed, UnicodeError) as e:
        logger.debug("Could not list groups for %s: %s", user, e)
        return False
    return group in groups.split()


def dory_running() -> bool:
    """Check if the dory proxy is up.

    dory has no structured status query, so this relies on the literal
    "not running" substring in its status output.
    """
    try:
        output = run_command('dory', 'status')
    except (CommandFailed, UnicodeError) as e:
        logger.debug("dory status failed: %s", e)
        return False
    return DORY_NOT_RUNNING not in output


def database_exists(service: str = 'web') -> bool:
    """Check if the application can connect to its database."""
    return _probe(
        'docker-compose', 'run', '--rm', service,
        'bundle', 'exec', 'rails', 'runner', 'ActiveRecord::Base.connection',
    )
