"""Thin subprocess wrapper around the git commands mkrepo drives."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from mkrepo.errors import GitCommandError
from mkrepo.models import CommitMetadata

logger = logging.getLogger(__name__)

IDENTITY_ENV_VARS = (
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_AUTHOR_DATE",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
    "GIT_COMMITTER_DATE",
)

# Inherited values would point git at some other repository.
LOCATION_ENV_VARS = ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE")


def base_env() -> dict[str, str]:
    """Return a copy of ``os.environ`` without repository location overrides."""
    env = dict(os.environ)
    for key in LOCATION_ENV_VARS:
        env.pop(key, None)
    return env


def commit_env(metadata: CommitMetadata) -> dict[str, str]:
    """Build the environment for one ``git commit``.

    Identity and date variables are always cleared first so nothing leaks in
    from the caller's shell or from a previous snapshot.
    """
    env = base_env()
    for key in IDENTITY_ENV_VARS:
        env.pop(key, None)
    if metadata.committer is not None:
        env["GIT_COMMITTER_NAME"] = metadata.committer.name
        env["GIT_COMMITTER_EMAIL"] = metadata.committer.email
    if metadata.author_date is not None:
        env["GIT_AUTHOR_DATE"] = metadata.author_date
    if metadata.committer_date is not None:
        env["GIT_COMMITTER_DATE"] = metadata.committer_date
    return env


def run_git(
    worktree: Path,
    args: list[str],
    env: dict[str, str] | None = None,
    stdin: str | None = None,
) -> str:
    """Run ``git -C worktree *args`` and return stdout, raising on failure."""
    cmd = ["git", "-C", str(worktree), *args]
    logger.debug("Running %s", " ".join(cmd))
    proc = subprocess.run(
        cmd,
        input=stdin,
        capture_output=True,
        text=True,
        encoding="utf-8",
        check=False,
        env=env if env is not None else base_env(),
    )
    if proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, proc.stderr.strip())
    return proc.stdout


class GitRepo:
    """The git operations used by synthesis and extraction, bound to one working tree."""

    def __init__(self, worktree: Path):
        self.worktree = Path(worktree)

    def _git(self, *args: str, env: dict[str, str] | None = None, stdin: str | None = None) -> str:
        return run_git(self.worktree, list(args), env=env, stdin=stdin)

    def init(self, initial_branch: str) -> None:
        self._git("init", "--quiet", f"--initial-branch={initial_branch}")

    def add_all(self) -> None:
        """Stage the whole working tree, including paths matched by ignore rules."""
        self._git("add", "--all", "--force", ".")

    def commit(self, metadata: CommitMetadata) -> str:
        """Commit the index with ``metadata`` and return the new commit id."""
        args = ["commit", "--quiet", "--allow-empty", "--allow-empty-message", "--file=-"]
        if metadata.author is not None:
            args.append(f"--author={metadata.author}")
        self._git(*args, env=commit_env(metadata), stdin=metadata.message)
        return self.rev_parse("HEAD")

    def tag(self, name: str) -> None:
        self._git("tag", name)

    def list_tags(self) -> list[str]:
        return [line for line in self._git("tag", "--list").splitlines() if line]

    def checkout(self, ref: str) -> None:
        self._git("checkout", "--quiet", ref)

    def checkout_detached(self, ref: str) -> None:
        self._git("checkout", "--quiet", "--detach", ref)

    def rev_parse(self, ref: str) -> str:
        return self._git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}").strip()

    def ref_exists(self, ref: str) -> bool:
        try:
            self.rev_parse(ref)
        except GitCommandError:
            return False
        return True

    def current_branch(self) -> str | None:
        """Return the checked-out branch name, or ``None`` when HEAD is detached."""
        try:
            return self._git("symbolic-ref", "--quiet", "--short", "HEAD").strip()
        except GitCommandError:
            return None

    def current_ref(self) -> str:
        """Return something ``checkout`` can restore: the branch, else the commit id."""
        return self.current_branch() or self.rev_parse("HEAD")

    def is_clean(self) -> bool:
        return not self._git("status", "--porcelain").strip()

    def commit_message(self, ref: str) -> str:
        """Return the full message of ``ref`` minus the blank line git log appends."""
        raw = self._git("log", "-1", "--format=%B", ref)
        return raw[:-1] if raw.endswith("\n") else raw

    def tracked_files(self) -> list[str]:
        """Return the paths recorded in the index, relative to the working tree."""
        return [path for path in self._git("ls-files", "-z").split("\0") if path]
