"""Group membership setup and re-exec into a session that has the group."""
import enum
import os
import shlex
import sys
from typing import List, Optional

from dockerdev.context import ESCALATED_ENV, RunContext
from dockerdev.errors import CommandFailed, StepFailed
from dockerdev.presence import in_group
from dockerdev.utils import log_action, log_warning, run_command


class EscalationOutcome(enum.Enum):
    """Result of ensuring group membership."""
    ALREADY_MEMBER = "already_member"
    ADDED_AND_REEXECED = "added_and_reexeced"


def add_user_to_group(user: str, group: str) -> None:
    """Add the user to the group with sudo; failures are tolerated."""
    log_action(f"Adding {user} user to {group} group...")
    try:
        run_command('usermod', '-aG', group, user, sudo=True, interactive=True)
    except CommandFailed as e:
        log_warning(f"Could not add {user} to {group}: {e}")


def ensure_group_membership(context: RunContext, group: str) -> EscalationOutcome:
    """Make sure the user is in `group`.

    ADDED_AND_REEXECED means the caller must stop and hand over to
    `reexec_with_group`; nothing else may run in this process.
    """
    if in_group(context.user, group):
        return EscalationOutcome.ALREADY_MEMBER
    if context.escalated:
        raise StepFailed(
            f"{context.user} is still not in the {group} group after logging in again"
        )
    add_user_to_group(context.user, group)
    log_action('We need to login again to apply that change.')
    return EscalationOutcome.ADDED_AND_REEXECED


def reexec_argv(argv: Optional[List[str]] = None) -> List[str]:
    """The command line that starts this program again with the same arguments."""
    args = sys.argv[1:] if argv is None else argv
    return [sys.executable, '-m', 'dockerdev.cli', *args]


def reexec_with_group(group: str, argv: Optional[List[str]] = None) -> None:
    """Replace the current process with one running under `sg group`. Never returns."""
    env = dict(os.environ)
    env[ESCALATED_ENV] = '1'
    os.execvpe('sg', ['sg', group, '-c', shlex.join(reexec_argv(argv))], env)
