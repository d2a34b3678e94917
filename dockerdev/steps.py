"""Bootstrap workflow steps, in the order they must run."""
import time
from typing import List, Optional

from dockerdev.confirm import ask_yes_no
from dockerdev.context import RunContext
from dockerdev.errors import ConfirmationDeclined, StepFailed, UnsupportedEnvironmentError
from dockerdev.escalate import EscalationOutcome, ensure_group_membership
from dockerdev.materialize import PermissionFallback, copy_missing_files, ensure_file
from dockerdev.presence import (
    database_exists, docker_accessible, docker_daemon_running, dory_running, missing_commands,
)
from dockerdev.runner import ReExec, Step
from dockerdev.utils import command_exists, log_action, run_command

DROP_WARNING = """An existing database was found.

!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!
This script will destroy ALL EXISTING DATA if it continues
If you want to migrate the existing database, use docker_dev_update.sh
!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!!
About to run "bundle exec rake db:drop"
"""


def compose_run(context: RunContext, *args: str, no_deps: bool = False, interactive: bool = True) -> None:
    """Run a command in a throwaway container of the application service."""
    flags = ['--no-deps'] if no_deps else []
    run_command('docker-compose', 'run', *flags, '--rm', context.settings.compose_service, *args,
                interactive=interactive)


def install_dependencies(context: RunContext) -> None:
    """Install missing dependencies with apt-get, after asking."""
    packages = missing_commands(context.settings.dependencies)
    if not packages:
        return

    log_action("First, we need to install some dependencies.")
    if not context.is_linux or not command_exists('apt-get'):
        raise UnsupportedEnvironmentError(
            "This script only supports Debian-based Linux (for now - contributions welcome!)"
        )
    if not ask_yes_no(f"Run 'sudo apt-get install -y {' '.join(packages)}'?"):
        raise ConfirmationDeclined(f"Required dependencies not installed: {', '.join(packages)}")
    run_command('apt-get', 'update', sudo=True, interactive=True)
    run_command('apt-get', 'install', '-y', *packages, sudo=True, interactive=True)


def start_docker_daemon(context: RunContext) -> None:
    """Start the docker service and wait for it to settle."""
    run_command('service', 'docker', 'start', sudo=True, interactive=True)
    # Give the daemon a moment before anything probes it
    time.sleep(context.settings.daemon_grace_period)


def setup_docker_as_nonroot(context: RunContext) -> Optional[ReExec]:
    """Let the user run docker without sudo, re-executing if the group was just added."""
    group = context.settings.docker_group
    if ensure_group_membership(context, group) is EscalationOutcome.ADDED_AND_REEXECED:
        return ReExec(group)
    return None


def install_dory(context: RunContext) -> None:
    """Install the dory gem, with sudo if the user asks for it."""
    if not command_exists('gem'):
        raise StepFailed("You need ruby to run dory (it's a gem). Install ruby and try again.")
    use_sudo = ask_yes_no("Use sudo to install dory gem? You may need this if using system ruby")
    run_command('gem', 'install', 'dory', sudo=use_sudo, interactive=True)


def start_dory(context: RunContext) -> None:
    """Bring up the dory DNS and proxy containers."""
    run_command('dory', 'up', interactive=True)


def copy_override_config(context: RunContext) -> None:
    """Copy the default docker-compose override unless one exists."""
    settings = context.settings
    ensure_file(context.path(settings.override_config), context.path(settings.override_template))


def copy_docker_config(context: RunContext) -> None:
    """Copy the docker config files into config/ without overwriting."""
    settings = context.settings
    for path in copy_missing_files(context.path(settings.docker_config_source),
                                   context.path(settings.docker_config_dest)):
        log_action(f"Copied {path.name}")


def build_images(context: RunContext) -> None:
    """Build the docker images, pulling newer base images."""
    run_command('docker-compose', 'build', '--pull', interactive=True)


def remove_stale_lock(context: RunContext) -> None:
    """Remove an untracked Gemfile.lock left by an earlier install."""
    log_action("The Gemfile.lock is not tracked by git. Removing it to prevent "
               "conflicting dependency errors.")
    context.path(context.settings.lock_file).unlink()


def touch_in_container(context: RunContext, relative_path: str) -> None:
    """Fails if the container user cannot write the file."""
    compose_run(context, 'touch', relative_path, no_deps=True, interactive=False)


def database_steps(context: RunContext) -> List[Step]:
    """Schema file, optional confirmed drop, then create, migrate and seed."""
    settings = context.settings
    return [
        Step(
            name="Making the schema file writable",
            action=lambda: touch_in_container(context, settings.schema_file),
            fallback=PermissionFallback(context.path(settings.schema_file)),
        ),
        Step(
            name="Dropping the existing database",
            guard=lambda: not database_exists(settings.compose_service),
            action=lambda: compose_run(context, 'bundle', 'exec', 'rake', 'db:drop'),
            destructive=True,
            confirmation_prompt=f"{DROP_WARNING}type {settings.confirmation_token} in all caps:",
        ),
        Step(
            name="Creating new database",
            action=lambda: compose_run(context, 'bundle', 'exec', 'rake', 'db:create'),
        ),
        Step(
            name="Migrating the database",
            action=lambda: compose_run(context, 'bundle', 'exec', 'rake', 'db:migrate'),
        ),
        Step(
            name="Running initial setup",
            action=lambda: compose_run(context, 'bundle', 'exec', 'rake', 'db:initial_setup'),
        ),
    ]


def build_steps(context: RunContext) -> List[Step]:
    """The full bootstrap sequence. Later steps assume earlier ones completed."""
    settings = context.settings
    return [
        Step(
            name="Checking dependencies",
            guard=lambda: not missing_commands(settings.dependencies),
            action=lambda: install_dependencies(context),
        ),
        Step(
            name="Starting docker daemon",
            guard=docker_daemon_running,
            action=lambda: start_docker_daemon(context),
            linux_only=True,
        ),
        Step(
            name="Setting up docker for nonroot user",
            guard=docker_accessible,
            action=lambda: setup_docker_as_nonroot(context),
            linux_only=True,
        ),
        Step(
            name="Installing dory",
            guard=lambda: command_exists('dory'),
            action=lambda: install_dory(context),
            linux_only=True,
        ),
        Step(
            name="Starting dory",
            guard=dory_running,
            action=lambda: start_dory(context),
            linux_only=True,
        ),
        Step(
            name="Copying default configuration",
            guard=lambda: context.path(settings.override_config).exists(),
            action=lambda: copy_override_config(context),
        ),
        Step(
            name="Copying docker configuration",
            action=lambda: copy_docker_config(context),
            best_effort=True,
        ),
        Step(
            name="Building docker images",
            action=lambda: build_images(context),
        ),
        Step(
            name="Removing stale Gemfile.lock",
            guard=lambda: not context.path(settings.lock_file).exists(),
            action=lambda: remove_stale_lock(context),
            best_effort=True,
        ),
        Step(
            name="Making Gemfile.lock writable",
            action=lambda: touch_in_container(context, settings.lock_file),
            fallback=PermissionFallback(context.path(settings.lock_file)),
        ),
        Step(
            name="Updating code and data",
            action=lambda: compose_run(context, './script/canvas_update', '-n', 'code', '-n', 'data'),
        ),
        *database_steps(context),
        Step(
            name="Updating code and dependencies",
            action=lambda: compose_run(context, './script/canvas_update', '-n', 'code', '-n', 'deps'),
        ),
    ]


def next_steps_message(context: RunContext) -> str:
    """What to tell the user once everything is set up."""
    message = "You're good to go! Next steps:\n"
    if context.is_linux:
        message += """
  I have added your user to the docker group so you can run docker commands
  without sudo. Note that this has security implications:

  https://docs.docker.com/engine/installation/linux/linux-postinstall/

  You may need to logout and login again for this to take effect.
"""
    message += """
  Running Canvas:

    docker-compose up -d
    open http://canvas.docker

  Running the tests:

    docker-compose run --rm web bundle exec rspec
"""
    return message
