"""Choose and check out the parent of the next snapshot commit."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from pydantic import BaseModel

from mkrepo.errors import GraftError
from mkrepo.git import GitRepo
from mkrepo.metadata import branch_pointer

logger = logging.getLogger(__name__)


class ParentPlan(BaseModel):
    """Where the next commit attaches.

    ``ref`` is ``None`` for a commit on the main line (or the root commit).
    """

    tag: str
    ref: str | None = None

    @property
    def grafted(self) -> bool:
        return self.ref is not None


def plan_parent(name: str, sidecars: Mapping[str, str]) -> ParentPlan:
    """Plan a graft when ``<name>.branch`` names a parent, else a main-line commit."""
    return ParentPlan(tag=name, ref=branch_pointer(name, sidecars))


def position(repo: GitRepo | None, plan: ParentPlan) -> str | None:
    """Check out the parent of the commit about to be made.

    Main-line commits need nothing: the tree is already at the main tip.
    Grafted commits get a detached checkout of the named ref, so no branch
    ref is ever created for them.

    Returns:
        The parent commit id for grafts, ``None`` otherwise.

    Raises:
        GraftError: If there is no repository yet or the ref does not exist.
    """
    if not plan.grafted:
        return None
    if repo is None:
        raise GraftError(plan.tag, plan.ref, "no repository exists yet")
    if not repo.ref_exists(plan.ref):
        raise GraftError(plan.tag, plan.ref, "ref does not exist")
    parent = repo.rev_parse(plan.ref)
    logger.debug("Checking out %s (%s) detached for %s", plan.ref, parent, plan.tag)
    repo.checkout_detached(plan.ref)
    return parent


def return_to_main(repo: GitRepo, plan: ParentPlan, main_branch: str) -> None:
    """Put the working tree back on the main line after a grafted commit."""
    if plan.grafted:
        repo.checkout(main_branch)
