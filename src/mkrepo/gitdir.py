"""Detach and reattach a working tree's ``.git`` directory.

Swapping the contents of a working tree is done by parking ``.git`` at a
fixed location, replacing everything else, and moving ``.git`` back. The
parking location is fixed per target so that a copy left behind by an
interrupted run is found, and removed, by the next one.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from mkrepo.errors import StaleStateError

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"


def default_parking_path(worktree: Path, tool: str) -> Path:
    """Return the sibling path where ``worktree``'s git directory is parked."""
    worktree = Path(worktree)
    return worktree.parent / f".{worktree.name}.{tool}.tmp"


class GitDirHandle:
    """Single owner of one working tree's git directory."""

    def __init__(self, worktree: Path, parking_path: Path):
        self.worktree = Path(worktree)
        self.parking_path = Path(parking_path)

    @property
    def git_dir(self) -> Path:
        return self.worktree / GIT_DIR_NAME

    @property
    def is_attached(self) -> bool:
        return self.git_dir.is_dir()

    @property
    def is_detached(self) -> bool:
        return self.parking_path.exists()

    def clear_stale(self) -> bool:
        """Delete a git directory left parked by an aborted run.

        Returns:
            ``True`` when something was removed.

        Raises:
            StaleStateError: If the parking path holds something that is not a
                git directory.
        """
        if not self.parking_path.exists():
            return False
        if not (self.parking_path / "config").is_file():
            raise StaleStateError(
                f"Parking path {self.parking_path} exists and is not a git directory; remove it manually"
            )
        logger.debug("Removing stale parked git directory %s", self.parking_path)
        shutil.rmtree(self.parking_path)
        return True

    def detach(self) -> None:
        """Move the git directory to the parking path."""
        if self.is_detached:
            raise StaleStateError(f"Parking path {self.parking_path} is already in use")
        logger.debug("Detaching %s -> %s", self.git_dir, self.parking_path)
        shutil.move(str(self.git_dir), str(self.parking_path))

    def attach(self) -> None:
        """Move the parked git directory back into the (re-created) working tree."""
        self.worktree.mkdir(parents=True, exist_ok=True)
        if self.git_dir.exists():
            raise StaleStateError(
                f"Cannot reattach: {self.git_dir} already exists; the repository is parked at {self.parking_path}"
            )
        logger.debug("Attaching %s -> %s", self.parking_path, self.git_dir)
        shutil.move(str(self.parking_path), str(self.git_dir))

    @contextmanager
    def detached(self) -> Iterator[None]:
        """Park the git directory for the duration of the block.

        The directory is moved back on every exit path. When nothing is
        attached on entry the block runs without parking anything.
        """
        if not self.is_attached:
            yield
            return
        self.detach()
        try:
            yield
        finally:
            self.attach()
