"""Resolve commit metadata for a snapshot from its sidecar files.

Sidecars are looked up by file name in a mapping, so precedence can be
exercised without a filesystem. ``DirectorySidecars`` is the mapping backed
by the input directory.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path

from mkrepo.models import CommitMetadata, Identity

MESSAGE_SUFFIX = ".txt"
BRANCH_SUFFIX = ".branch"
AUTHOR_SUFFIX = ".author"
COMMITTER_SUFFIX = ".committer"
DATE_SUFFIX = ".date"
AUTHOR_DATE_SUFFIX = ".author-date"
COMMITTER_DATE_SUFFIX = ".committer-date"

DEFAULT_AUTHOR_FILE = "author"
DEFAULT_COMMITTER_FILE = "committer"


class DirectorySidecars(Mapping[str, str]):
    """Read-only view of the regular files directly inside ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def __getitem__(self, key: str) -> str:
        path = self.root / key
        if not path.is_file():
            raise KeyError(key)
        return path.read_text(encoding="utf-8")

    def __iter__(self) -> Iterator[str]:
        return (entry.name for entry in self.root.iterdir() if entry.is_file())

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and (self.root / key).is_file()


def _first(sidecars: Mapping[str, str], *keys: str) -> str | None:
    """Return the stripped content of the first key present in ``sidecars``."""
    for key in keys:
        if key in sidecars:
            return sidecars[key].strip()
    return None


def branch_pointer(name: str, sidecars: Mapping[str, str]) -> str | None:
    """Return the parent ref named by ``<name>.branch``, if any."""
    return _first(sidecars, f"{name}{BRANCH_SUFFIX}") or None


def resolve_metadata(name: str, sidecars: Mapping[str, str]) -> CommitMetadata:
    """Resolve message, identities and dates for snapshot ``name``.

    Precedence:
    - message: ``<name>.txt`` verbatim, else ``name``.
    - author / committer: ``<name>.author`` then ``author`` (same for committer).
    - dates: ``<name>.date`` sets both; otherwise ``<name>.author-date`` and
      ``<name>.committer-date`` apply independently.

    Raises:
        MetadataError: If a committer sidecar is not ``Name <email>``.
    """
    message_key = f"{name}{MESSAGE_SUFFIX}"
    message = sidecars[message_key] if message_key in sidecars else name

    author = _first(sidecars, f"{name}{AUTHOR_SUFFIX}", DEFAULT_AUTHOR_FILE)
    committer_line = _first(sidecars, f"{name}{COMMITTER_SUFFIX}", DEFAULT_COMMITTER_FILE)
    committer = Identity.parse(committer_line) if committer_line else None

    date = _first(sidecars, f"{name}{DATE_SUFFIX}")
    if date:
        author_date = committer_date = date
    else:
        author_date = _first(sidecars, f"{name}{AUTHOR_DATE_SUFFIX}") or None
        committer_date = _first(sidecars, f"{name}{COMMITTER_DATE_SUFFIX}") or None

    return CommitMetadata(
        message=message,
        author=author or None,
        committer=committer,
        author_date=author_date,
        committer_date=committer_date,
    )
