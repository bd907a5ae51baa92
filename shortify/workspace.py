"""
Scoped temporary workspace for one pipeline run.

The workspace directory is created on entry and removed on every exit path,
including exceptions and KeyboardInterrupt. A failing removal is logged and
never replaces an error that is already propagating.
"""

import shutil
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class Workspace:
    """Uniquely named directory tree owned by a single pipeline run."""

    STILLS_SUBDIR = "stills"

    def __init__(self, prefix: str = "temp_shortify_", base_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            prefix: Directory name prefix
            base_dir: Parent directory (default: current working directory)
        """
        self.prefix = prefix
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.root: Optional[Path] = None
        self._torn_down = False

    @property
    def stills_dir(self) -> Path:
        return self._require_root() / self.STILLS_SUBDIR

    def path(self, name: str) -> Path:
        """Path of an intermediate artifact inside the workspace."""
        return self._require_root() / name

    def _require_root(self) -> Path:
        if self.root is None:
            raise RuntimeError("Workspace has not been acquired")
        return self.root

    def acquire(self) -> "Workspace":
        if self.root is not None:
            raise RuntimeError(f"Workspace already acquired: {self.root}")
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.root = Path(tempfile.mkdtemp(prefix=self.prefix, dir=str(self.base_dir)))
        self.stills_dir.mkdir()
        logger.debug(f"Created workspace {self.root}")
        return self

    def teardown(self) -> None:
        """Remove the workspace tree. Safe to call more than once."""
        if self._torn_down or self.root is None:
            return
        self._torn_down = True
        try:
            shutil.rmtree(self.root)
            logger.info(f"Deleted: {self.root}")
        except OSError as e:
            logger.error(f"Error deleting {self.root}: {e}")

    def __enter__(self) -> "Workspace":
        return self.acquire()

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.teardown()
        return False
