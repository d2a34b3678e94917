"""CLI interface for the bootstrap tool."""
import typer

from . import context as run_context
from . import escalate
from . import steps
from . import utils
from .runner import RunStatus, StepRunner


def setup():
    """Set up a docker based development environment. Safe to re-run."""
    utils.setup_logging()
    typer.echo("Welcome! This will guide you through setting up a development environment with docker.")

    context = run_context.detect_context()
    result = StepRunner(context).run(steps.build_steps(context))

    if result.status is RunStatus.REEXEC_REQUESTED:
        try:
            escalate.reexec_with_group(result.reexec.group)
        except OSError as e:
            utils.log_error(f"Could not start a new session in the {result.reexec.group} group: {e}")
            raise typer.Exit(1)
    if result.exit_code != 0:
        raise typer.Exit(result.exit_code)

    typer.echo("✅ Setup complete!")
    typer.echo(steps.next_steps_message(context))


app = typer.Typer(
    name="docker-dev-setup",
    help="Bootstrap a local docker development environment.",
    add_completion=False,
    invoke_without_command=True,
    callback=setup,
)


if __name__ == "__main__":
    app()
