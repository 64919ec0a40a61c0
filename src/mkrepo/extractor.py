"""Write one directory (plus an optional message file) per tag of a repository."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from mkrepo.errors import CopyError, GitCommandError, PreconditionError, UsageError
from mkrepo.git import GitRepo
from mkrepo.gitdir import GitDirHandle, default_parking_path
from mkrepo.materializer import copy_tree
from mkrepo.metadata import MESSAGE_SUFFIX
from mkrepo.models import ExtractedSnapshot, ExtractionOptions

logger = logging.getLogger(__name__)


def write_message_file(output_dir: Path, tag: str, message: str) -> Path | None:
    """Write ``<tag>.txt`` unless the message is just the tag name."""
    if message.rstrip("\n") == tag:
        return None
    path = output_dir / f"{tag}{MESSAGE_SUFFIX}"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(message, encoding="utf-8")
    return path


def extract_tag(repo: GitRepo, handle: GitDirHandle, tag: str, output_dir: Path) -> ExtractedSnapshot:
    """Check out ``tag`` and copy the files it tracks into ``output_dir/<tag>``.

    Untracked and ignored files left in the working tree are not copied.
    """
    repo.checkout_detached(tag)
    tracked = repo.tracked_files()
    target = output_dir / tag
    with handle.detached():
        copy_tree(repo.worktree, target, only=tracked)
    message_file = write_message_file(output_dir, tag, repo.commit_message(tag))
    return ExtractedSnapshot(tag=tag, directory=target, message_file=message_file)


def _restore_checkout(repo: GitRepo, ref: str, raise_errors: bool) -> None:
    """Check ``ref`` out again; with ``raise_errors`` off a failure is only logged."""
    logger.debug("Restoring checkout of %s", ref)
    try:
        repo.checkout(ref)
    except GitCommandError as exc:
        if raise_errors:
            raise
        logger.error("Unable to restore checkout of %s: %s", ref, exc)


def extract(
    options: ExtractionOptions,
    progress_callback: Callable[[str], None] | None = None,
) -> list[ExtractedSnapshot]:
    """Copy the tree of each tag (all tags by default) into ``options.output_dir``.

    The repository must have no uncommitted changes. Whatever was checked
    out beforehand is checked out again when the run ends, including when it
    ends with an error.
    """
    repo_dir = options.repo_dir.expanduser().resolve()
    output_dir = options.output_dir.expanduser().resolve()
    if not (repo_dir / ".git").is_dir():
        raise UsageError(f"input-dir must be a directory containing a git repository: {options.repo_dir}")

    handle = GitDirHandle(repo_dir, options.parking_path or default_parking_path(repo_dir, "unmkrepo"))
    if handle.clear_stale():
        logger.info("Removed stale git directory at %s", handle.parking_path)

    repo = GitRepo(repo_dir)
    if not repo.is_clean():
        raise PreconditionError(f"Uncommitted changes detected in {repo_dir}")
    original_ref = repo.current_ref()

    if progress_callback:
        progress_callback(f"Creating directory {output_dir}")
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CopyError(f"Unable to create directory {output_dir}: {exc}") from exc

    tags = list(options.tags) or repo.list_tags()
    extracted = []
    try:
        for index, tag in enumerate(tags, start=1):
            if progress_callback:
                progress_callback(f"Copying source tree for tag {tag} [{index}/{len(tags)}]")
            extracted.append(extract_tag(repo, handle, tag, output_dir))
    except BaseException:
        _restore_checkout(repo, original_ref, raise_errors=False)
        raise
    _restore_checkout(repo, original_ref, raise_errors=True)
    return extracted
