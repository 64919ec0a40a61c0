"""Pydantic models shared by the synthesis and extraction pipelines."""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field

from mkrepo.errors import MetadataError

IDENTITY_RE = re.compile(r"^(?P<name>.*?)\s*<(?P<email>[^<>]*)>\s*$")


class Identity(BaseModel):
    """A git identity split into display name and email."""

    name: str
    email: str

    @classmethod
    def parse(cls, line: str) -> Identity:
        """Parse a ``Display Name <email>`` line.

        Raises:
            MetadataError: If the line has no trailing bracketed email.
        """
        match = IDENTITY_RE.match(line.strip())
        if not match:
            raise MetadataError(f"Expected 'Name <email>', got: {line.strip()!r}")
        return cls(name=match.group("name"), email=match.group("email"))

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class CommitMetadata(BaseModel):
    """Resolved message, identities and dates for one commit.

    ``None`` means the engine default applies.
    """

    message: str
    author: str | None = None
    committer: Identity | None = None
    author_date: str | None = None
    committer_date: str | None = None


class CommitRecord(BaseModel):
    """One tagged commit created during synthesis."""

    tag: str
    commit: str
    parent: str | None = None
    grafted: bool = False


class ExtractedSnapshot(BaseModel):
    """One snapshot directory written during extraction."""

    tag: str
    directory: Path
    message_file: Path | None = None


class SynthesisOptions(BaseModel):
    input_dir: Path
    output_dir: Path
    include_dir: Path | None = None
    main_branch: str = Field(default="master", min_length=1)
    marker_name: str = Field(default=".gitignore", min_length=1)
    parking_path: Path | None = None


class ExtractionOptions(BaseModel):
    repo_dir: Path
    output_dir: Path
    tags: list[str] = Field(default_factory=list)
    parking_path: Path | None = None
