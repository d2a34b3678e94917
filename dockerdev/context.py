"""Run context: what the bootstrap knows about the machine it runs on."""
import enum
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dockerdev.utils import get_real_user

ESCALATED_ENV = "DOCKER_DEV_ESCALATED"


class OSFamily(enum.Enum):
    """The OS families the bootstrap distinguishes."""
    LINUX = "Linux"
    OTHER = "Other"

    @classmethod
    def detect(cls, system: Optional[str] = None) -> "OSFamily":
        """Map `platform.system()` onto the two families we care about."""
        system = platform.system() if system is None else system
        return cls.LINUX if system == "Linux" else cls.OTHER


@dataclass(frozen=True)
class Settings:
    """Names of the tools, files and tokens the bootstrap works with."""
    dependencies: Tuple[str, ...] = ("docker-compose",)
    docker_group: str = "docker"
    compose_service: str = "web"
    override_config: str = "docker-compose.override.yml"
    override_template: str = "config/docker-compose.override.yml.example"
    docker_config_source: str = "docker-compose/config"
    docker_config_dest: str = "config"
    lock_file: str = "Gemfile.lock"
    schema_file: str = "db/structure.sql"
    confirmation_token: str = "NUKE"
    daemon_grace_period: float = 1.0


@dataclass(frozen=True)
class RunContext:
    os_family: OSFamily
    user: str
    project_root: Path
    escalated: bool = False
    settings: Settings = field(default_factory=Settings)

    @property
    def is_linux(self) -> bool:
        """True when Linux-only steps should run."""
        return self.os_family is OSFamily.LINUX

    def path(self, relative: str) -> Path:
        """Resolve a project-relative path."""
        return self.project_root / relative


def detect_context(settings: Optional[Settings] = None) -> RunContext:
    """Read the OS family, user and working directory once, at start."""
    return RunContext(
        os_family=OSFamily.detect(),
        user=get_real_user(),
        project_root=Path.cwd(),
        escalated=os.environ.get(ESCALATED_ENV) == "1",
        settings=settings or Settings(),
    )
