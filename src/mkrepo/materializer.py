"""Build a working tree from a snapshot directory and optional includes."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path, PurePosixPath

from mkrepo.errors import CopyError

logger = logging.getLogger(__name__)

DEFAULT_MARKER_NAME = ".gitignore"


def only_paths(root: Path, paths: Iterable[str]) -> Callable[[str, list[str]], list[str]]:
    """Build a ``copytree`` ignore callback that keeps only ``paths`` and their parents.

    ``paths`` are POSIX-style and relative to ``root``.
    """
    keep = set(paths)
    keep.update(parent.as_posix() for path in list(keep) for parent in PurePosixPath(path).parents)

    def ignore(dirpath: str, names: list[str]) -> list[str]:
        rel = Path(dirpath).relative_to(root)
        return [name for name in names if (rel / name).as_posix() not in keep]

    return ignore


def copy_tree(source: Path, target: Path, merge: bool = False, only: Iterable[str] | None = None) -> None:
    """Copy ``source`` to ``target`` keeping symlinks, raising ``CopyError`` on failure.

    When ``only`` is given, entries outside that set of relative paths are skipped.
    """
    ignore = only_paths(source, only) if only is not None else None
    try:
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=merge, ignore=ignore)
    except (OSError, shutil.Error) as exc:
        raise CopyError(f"Unable to copy {source} to {target}: {exc}") from exc


def find_empty_dirs(root: Path) -> list[Path]:
    """Return every directory under ``root`` (itself included) with no entries."""
    empty = []
    for dirpath, dirnames, filenames in os.walk(root):
        if not dirnames and not filenames:
            empty.append(Path(dirpath))
    return empty


def mark_empty_dirs(root: Path, marker_name: str = DEFAULT_MARKER_NAME) -> list[Path]:
    """Place an empty marker file in each empty directory so git records it.

    The scan happens once, before any marker is written, so a directory that
    only holds (now marked) empty subdirectories gets no marker of its own.

    Returns:
        The marker files created.
    """
    markers = []
    for directory in find_empty_dirs(root):
        marker = directory / marker_name
        marker.touch()
        markers.append(marker)
    logger.debug("Created %d empty-dir markers under %s", len(markers), root)
    return markers


def materialize(
    snapshot_dir: Path,
    worktree: Path,
    include_dir: Path | None = None,
    marker_name: str = DEFAULT_MARKER_NAME,
) -> None:
    """Populate the (absent) ``worktree`` with a snapshot plus includes.

    Includes are copied after the snapshot, hidden entries included, and
    replace any snapshot file with the same path.

    Raises:
        CopyError: On any copy failure. Partially copied content is left in place.
    """
    if worktree.exists() and any(worktree.iterdir()):
        raise CopyError(f"Working tree {worktree} is not empty")
    copy_tree(snapshot_dir, worktree, merge=True)
    if include_dir is not None:
        copy_tree(include_dir, worktree, merge=True)
    mark_empty_dirs(worktree, marker_name)


def clear_worktree(worktree: Path) -> None:
    """Remove ``worktree`` entirely; the git directory must already be detached."""
    if not worktree.exists():
        return
    try:
        shutil.rmtree(worktree)
    except OSError as exc:
        raise CopyError(f"Unable to clear working tree {worktree}: {exc}") from exc
