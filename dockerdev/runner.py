"""Runs the ordered bootstrap steps and decides what each failure means."""
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from dockerdev.confirm import confirm
from dockerdev.context import RunContext
from dockerdev.errors import BootstrapError, ConfirmationDeclined, StepFailed
from dockerdev.materialize import PermissionFallback
from dockerdev.utils import log_action, log_error, log_info, log_warning

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReExec:
    """Returned by an action when the process must be replaced to continue."""
    group: str


def never_satisfied() -> bool:
    """Guard for steps that always run."""
    return False


@dataclass
class Step:
    """One named unit of work.

    If `guard` returns True the step is already done and `action` never runs.
    An action may return a ReExec, which ends the run in this process.
    """
    name: str
    action: Callable[[], Optional[ReExec]]
    guard: Callable[[], bool] = never_satisfied
    destructive: bool = False
    confirmation_prompt: str = ""
    best_effort: bool = False
    linux_only: bool = False
    fallback: Optional[PermissionFallback] = None


class RunStatus(enum.Enum):
    """How a run ended."""
    COMPLETED = "completed"
    ABORTED = "aborted"
    REEXEC_REQUESTED = "reexec_requested"


@dataclass(frozen=True)
class RunResult:
    status: RunStatus
    failed_step: Optional[str] = None
    error: Optional[Exception] = None
    reexec: Optional[ReExec] = None

    @property
    def exit_code(self) -> int:
        """Process exit status for this result."""
        return 1 if self.status is RunStatus.ABORTED else 0


class StepRunner:
    """Executes steps strictly in order and stops at the first unrecovered failure."""

    def __init__(self, context: RunContext, confirm_fn: Callable[[str, str], bool] = confirm):
        self.context = context
        self.confirm_fn = confirm_fn

    def run(self, steps: Iterable[Step]) -> RunResult:
        """Run steps in order until one fails or asks for a re-exec."""
        for step in steps:
            try:
                outcome = self.run_step(step)
            except (BootstrapError, OSError) as e:
                log_error(f"{step.name} failed: {e}")
                return RunResult(RunStatus.ABORTED, failed_step=step.name, error=e)
            if isinstance(outcome, ReExec):
                return RunResult(RunStatus.REEXEC_REQUESTED, reexec=outcome)
        return RunResult(RunStatus.COMPLETED)

    def run_step(self, step: Step) -> Optional[ReExec]:
        """Run a single step, applying its gate, guard and failure policy."""
        if step.linux_only and not self.context.is_linux:
            logger.debug("Skipping Linux-only step %r", step.name)
            return None
        if step.guard():
            log_info(f"{step.name}: already done, moving on.")
            return None

        log_info(f"{step.name}...")
        if step.destructive:
            self._require_confirmation(step)
        try:
            return self._attempt(step)
        except (StepFailed, OSError) as e:
            if not step.best_effort:
                raise
            log_warning(f"{step.name} did not succeed, continuing anyway: {e}")
            return None

    def _require_confirmation(self, step: Step) -> None:
        token = self.context.settings.confirmation_token
        prompt_text = step.confirmation_prompt or f"type {token} to continue:"
        if not self.confirm_fn(prompt_text, token):
            raise ConfirmationDeclined(f"Confirmation for {step.name!r} was not given")

    def _attempt(self, step: Step) -> Optional[ReExec]:
        """Run the action, remediating and retrying once if it has a fallback."""
        try:
            return step.action()
        except (StepFailed, OSError):
            if step.fallback is None:
                raise
        # Retried exactly once; a second failure propagates.
        step.fallback.remediate()
        log_action(f"Retrying: {step.name}")
        return step.action()
