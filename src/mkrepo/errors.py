"""Typed exceptions for mkrepo and unmkrepo.

Every failure is fatal to the run. Core modules raise these and the CLI
turns them into an error message and a non-zero exit status.
"""

from __future__ import annotations


class MkrepoError(RuntimeError):
    """Base class for all synthesis and extraction errors."""
    pass


class UsageError(MkrepoError):
    """Bad arguments or mistyped input paths, detected before any mutation."""
    pass


class PreconditionError(MkrepoError):
    """Output already exists, or the repository has uncommitted changes."""
    pass


class MetadataError(MkrepoError):
    """A sidecar file could not be interpreted."""
    pass


class CopyError(MkrepoError):
    """Copying a snapshot or include tree failed."""
    pass


class StaleStateError(MkrepoError):
    """The parking path for a detached git directory is unusable."""
    pass


class GitCommandError(MkrepoError):
    """A git command exited non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git command failed ({' '.join(cmd)}): {stderr or f'exit {returncode}'}")


class GraftError(MkrepoError):
    """The parent ref named by a branch-pointer file cannot be used."""

    def __init__(self, tag: str, ref: str, reason: str):
        self.tag = tag
        self.ref = ref
        super().__init__(f"Cannot graft {tag} onto {ref}: {reason}")
