from __future__ import annotations

import pytest

from mkrepo.errors import MetadataError
from mkrepo.metadata import DirectorySidecars, branch_pointer, resolve_metadata
from mkrepo.models import Identity


def test_resolve_metadata_given_no_sidecars_when_resolved_then_message_is_name_and_rest_unset() -> None:
    # Given
    sidecars: dict[str, str] = {}

    # When
    metadata = resolve_metadata("rel1", sidecars)

    # Then
    assert metadata.message == "rel1"
    assert metadata.author is None
    assert metadata.committer is None
    assert metadata.author_date is None
    assert metadata.committer_date is None


def test_resolve_metadata_given_message_file_when_resolved_then_content_is_verbatim() -> None:
    # Given
    sidecars = {"rel1.txt": "Release one\n\nWith details.\n"}

    # When
    metadata = resolve_metadata("rel1", sidecars)

    # Then
    assert metadata.message == "Release one\n\nWith details.\n"


def test_resolve_metadata_given_per_snapshot_and_default_identities_when_resolved_then_per_snapshot_wins() -> None:
    # Given
    sidecars = {
        "author": "Default Author <default@example.com>\n",
        "rel1.author": "Specific Author <specific@example.com>\n",
        "committer": "Default Committer <dc@example.com>",
        "rel1.committer": "Release Bot <bot@example.com>",
    }

    # When
    metadata = resolve_metadata("rel1", sidecars)
    other = resolve_metadata("rel2", sidecars)

    # Then
    assert metadata.author == "Specific Author <specific@example.com>"
    assert metadata.committer == Identity(name="Release Bot", email="bot@example.com")
    assert other.author == "Default Author <default@example.com>"
    assert other.committer == Identity(name="Default Committer", email="dc@example.com")


def test_resolve_metadata_given_combined_date_when_resolved_then_it_overrides_separate_dates() -> None:
    # Given
    sidecars = {
        "rel1.date": "2001-02-03T04:05:06+00:00\n",
        "rel1.author-date": "1999-01-01T00:00:00+00:00",
        "rel1.committer-date": "1999-06-01T00:00:00+00:00",
    }

    # When
    metadata = resolve_metadata("rel1", sidecars)

    # Then
    assert metadata.author_date == "2001-02-03T04:05:06+00:00"
    assert metadata.committer_date == "2001-02-03T04:05:06+00:00"


def test_resolve_metadata_given_only_author_date_when_resolved_then_committer_date_stays_unset() -> None:
    # Given
    sidecars = {"rel1.author-date": "1999-01-01T00:00:00+00:00"}

    # When
    metadata = resolve_metadata("rel1", sidecars)

    # Then
    assert metadata.author_date == "1999-01-01T00:00:00+00:00"
    assert metadata.committer_date is None


def test_resolve_metadata_given_malformed_committer_when_resolved_then_raises_metadata_error() -> None:
    # Given
    sidecars = {"committer": "just a name"}

    # When
    with pytest.raises(MetadataError, match="Name <email>"):
        resolve_metadata("rel1", sidecars)

    # Then
    # MetadataError indicates the identity line must carry an email.


def test_identity_parse_given_display_name_line_when_parsed_then_name_and_email_split() -> None:
    # Given
    line = "  Ada Q. Lovelace   <ada@example.com>  \n"

    # When
    identity = Identity.parse(line)

    # Then
    assert identity.name == "Ada Q. Lovelace"
    assert identity.email == "ada@example.com"
    assert str(identity) == "Ada Q. Lovelace <ada@example.com>"


def test_branch_pointer_given_branch_file_when_read_then_ref_is_stripped() -> None:
    # Given
    sidecars = {"b.branch": "a\n", "c.branch": "  \n"}

    # When
    b_ref = branch_pointer("b", sidecars)
    c_ref = branch_pointer("c", sidecars)
    d_ref = branch_pointer("d", sidecars)

    # Then
    assert b_ref == "a"
    assert c_ref is None
    assert d_ref is None


def test_directory_sidecars_given_files_and_dirs_when_looked_up_then_only_files_are_visible(input_dir) -> None:
    # Given
    (input_dir / "rel1").mkdir()
    (input_dir / "rel1.txt").write_text("hello\n", encoding="utf-8")
    (input_dir / "author").write_text("A <a@example.com>\n", encoding="utf-8")
    sidecars = DirectorySidecars(input_dir)

    # When
    metadata = resolve_metadata("rel1", sidecars)

    # Then
    assert "rel1" not in sidecars
    assert "rel1.txt" in sidecars
    assert sorted(sidecars) == ["author", "rel1.txt"]
    assert len(sidecars) == 2
    assert metadata.message == "hello\n"
    assert metadata.author == "A <a@example.com>"
    with pytest.raises(KeyError):
        sidecars["missing"]
