"""Turn an ordered series of snapshot directories into a tagged git history."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from mkrepo.errors import PreconditionError, UsageError
from mkrepo.git import GitRepo
from mkrepo.gitdir import GitDirHandle, default_parking_path
from mkrepo.grafter import ParentPlan, plan_parent, position, return_to_main
from mkrepo.materializer import clear_worktree, materialize
from mkrepo.metadata import DirectorySidecars, resolve_metadata
from mkrepo.models import CommitRecord, SynthesisOptions
from mkrepo.ordering import resolve_order

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def _describe(plan: ParentPlan, has_repo: bool, main_branch: str) -> str:
    if plan.grafted:
        return f"Adding {plan.tag} as branched child of {plan.ref}"
    if has_repo:
        return f"Adding {plan.tag} as latest child of {main_branch}"
    return f"Adding {plan.tag} as root commit on {main_branch}"


def validate_options(options: SynthesisOptions) -> SynthesisOptions:
    """Check paths before anything is touched and return them made absolute."""
    input_dir = options.input_dir.expanduser().resolve()
    output_dir = options.output_dir.expanduser().resolve()
    include_dir = options.include_dir.expanduser().resolve() if options.include_dir else None

    if not input_dir.is_dir():
        raise UsageError(f"input-dir must be a directory: {options.input_dir}")
    if include_dir is not None and not include_dir.is_dir():
        raise UsageError(f"if specified, include-dir must be a directory: {options.include_dir}")
    if output_dir.exists():
        raise PreconditionError(f"output-dir must not exist yet: {options.output_dir}")

    return options.model_copy(
        update={
            "input_dir": input_dir,
            "output_dir": output_dir,
            "include_dir": include_dir,
            "parking_path": options.parking_path or default_parking_path(output_dir, "mkrepo"),
        }
    )


def synthesize_snapshot(
    name: str,
    options: SynthesisOptions,
    handle: GitDirHandle,
    sidecars: Mapping[str, str],
    progress_callback: ProgressCallback | None = None,
) -> CommitRecord:
    """Commit and tag one snapshot.

    Steps: resolve metadata and parent, check out the parent, swap the
    working tree contents with ``.git`` parked, stage everything, commit,
    tag, then return to the main line.
    """
    snapshot_dir = options.input_dir / name
    if not snapshot_dir.is_dir():
        raise UsageError(f"Snapshot {name!r} is not a directory in {options.input_dir}")

    metadata = resolve_metadata(name, sidecars)
    plan = plan_parent(name, sidecars)
    repo = GitRepo(options.output_dir) if handle.is_attached else None

    if progress_callback:
        progress_callback(_describe(plan, repo is not None, options.main_branch))

    parent = position(repo, plan)
    if parent is None and repo is not None:
        parent = repo.rev_parse("HEAD")

    with handle.detached():
        clear_worktree(options.output_dir)
        materialize(snapshot_dir, options.output_dir, options.include_dir, options.marker_name)

    if repo is None:
        repo = GitRepo(options.output_dir)
        repo.init(options.main_branch)

    repo.add_all()
    commit = repo.commit(metadata)
    repo.tag(name)
    return_to_main(repo, plan, options.main_branch)

    logger.debug("Tagged %s at %s (parent %s)", name, commit, parent)
    return CommitRecord(tag=name, commit=commit, parent=parent, grafted=plan.grafted)


def synthesize(
    options: SynthesisOptions,
    progress_callback: ProgressCallback | None = None,
) -> list[CommitRecord]:
    """Create ``options.output_dir`` as a repository with one tagged commit per snapshot.

    The first failure stops the run. Snapshots already committed stay in the
    repository, so it always holds a valid prefix of the history.

    Returns:
        One record per processed snapshot, in processing order.
    """
    options = validate_options(options)
    handle = GitDirHandle(options.output_dir, options.parking_path)
    if handle.clear_stale():
        logger.info("Removed stale git directory at %s", options.parking_path)

    sidecars = DirectorySidecars(options.input_dir)
    names = resolve_order(options.input_dir)

    if progress_callback:
        progress_callback(f"Creating repository at {options.output_dir}")

    records = []
    for name in names:
        records.append(synthesize_snapshot(name, options, handle, sidecars, progress_callback))
    return records
