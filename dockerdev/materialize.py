"""Configuration files and the permission fixes for files containers write to."""
import logging
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from dockerdev.utils import log_action, log_info, log_warning

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_file(path: PathLike, template_path: PathLike) -> bool:
    """Copy template_path to path unless path already exists.

    Returns True if a copy was made. An existing file is never touched.
    """
    path = Path(path)
    if path.exists():
        log_info(f"{path.name} exists, skipping copy of default configuration")
        return False
    log_action(f"Copying default configuration from {template_path} to {path}")
    shutil.copyfile(template_path, path)
    return True


def copy_missing_files(source_dir: PathLike, dest_dir: PathLike) -> List[Path]:
    """Materialize every file of source_dir into dest_dir without overwriting."""
    source_dir, dest_dir = Path(source_dir), Path(dest_dir)
    copied = []
    for source in sorted(source_dir.iterdir()):
        if not source.is_file():
            continue
        target = dest_dir / source.name
        if target.exists():
            logger.debug("Keeping existing %s", target)
            continue
        shutil.copyfile(source, target)
        copied.append(target)
    return copied


@dataclass(frozen=True)
class PermissionFallback:
    """A file a container could not write: create it here and open it up."""
    target: Path

    def remediate(self) -> None:
        log_action(f"The container is not allowed to write to {self.target}. Fixing permissions...")
        self.target.parent.mkdir(parents=True, exist_ok=True)
        self.target.touch()
        try:
            mode = self.target.stat().st_mode
            self.target.chmod(mode | stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP
                              | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH)
        except OSError as e:
            log_warning(f"Could not relax permissions on {self.target}: {e}")
