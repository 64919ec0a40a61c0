"""Typer-based CLIs: ``mkrepo`` (snapshots -> repository) and ``unmkrepo`` (repository -> snapshots)."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from mkrepo.errors import MkrepoError, UsageError
from mkrepo.extractor import extract
from mkrepo.materializer import DEFAULT_MARKER_NAME
from mkrepo.models import ExtractionOptions, SynthesisOptions
from mkrepo.synthesizer import synthesize

VERSION = "1.1.0"
DEFAULT_MAIN_BRANCH = "master"
MKREPO_PARK_ENVVAR = "MKREPO_PARK_PATH"
UNMKREPO_PARK_ENVVAR = "UNMKREPO_PARK_PATH"

MKREPO_HELP = """\
Make a tagged git repository out of a series of directories, each a
significant state of a source tree.

Every directory in INPUT_DIR becomes one commit, tagged with the directory
name. Directories are processed in byte-wise name order, or in the order
listed (one name per line) in INPUT_DIR/mkrepo.order. OUTPUT_DIR must not
exist yet. Files in INCLUDE_DIR, if given, are added to every commit.

Empty directories receive an empty .gitignore so git records them.

Sidecar files next to a snapshot directory N:

  N.txt              commit message (default: N)

  N.branch           parent ref; N is committed and tagged off the main line

  N.author, author   author identity

  N.committer, committer   committer identity, "Name <email>"

  N.date             author and committer date

  N.author-date, N.committer-date   separate dates
"""

UNMKREPO_HELP = """\
Make a series of directories out of a git repository, one for each tag.

This is the inverse of mkrepo. Each tag (all tags, or the TAGS given) is
checked out and its source tree copied into OUTPUT_DIR/<tag>. When the
commit message is anything other than the tag name it is written to
OUTPUT_DIR/<tag>.txt. The repository must have no uncommitted changes and
is returned to its original checkout afterwards.
"""

mkrepo_app = typer.Typer(add_completion=False)
unmkrepo_app = typer.Typer(add_completion=False)


def _version_callback(tool: str):
    def callback(value: bool) -> None:
        if value:
            typer.echo(f"{tool} {VERSION}")
            raise typer.Exit()

    return callback


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _run(action) -> None:
    """Run ``action`` and map mkrepo errors to CLI exits."""
    try:
        action()
    except UsageError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except MkrepoError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo("Done")


@mkrepo_app.command(help=MKREPO_HELP)
def mkrepo(
    input_dir: Path = typer.Argument(..., help="Directory containing the snapshot directories"),
    output_dir: Path = typer.Argument(..., help="Where to create the repository; must not exist"),
    include_dir: Path | None = typer.Argument(None, help="Files to include in every commit"),
    main_branch: str = typer.Option(DEFAULT_MAIN_BRANCH, "--branch", help="Name of the main line branch"),
    park_path: Path | None = typer.Option(
        None,
        "--park-path",
        envvar=MKREPO_PARK_ENVVAR,
        help="Exact, not yet existing path .git is moved to while the tree is replaced",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every git command"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback("mkrepo"), is_eager=True, help="Show version and exit"
    ),
) -> None:
    _configure_logging(verbose)
    options = SynthesisOptions(
        input_dir=input_dir,
        output_dir=output_dir,
        include_dir=include_dir,
        main_branch=main_branch,
        marker_name=DEFAULT_MARKER_NAME,
        parking_path=park_path,
    )
    _run(lambda: synthesize(options, progress_callback=typer.echo))


@unmkrepo_app.command(help=UNMKREPO_HELP)
def unmkrepo(
    input_dir: Path = typer.Argument(..., help="Directory containing the git repository"),
    output_dir: Path = typer.Argument(..., help="Where the per-tag directories are written"),
    tags: list[str] | None = typer.Argument(None, help="Tags to copy (default: all tags)"),
    park_path: Path | None = typer.Option(
        None,
        "--park-path",
        envvar=UNMKREPO_PARK_ENVVAR,
        help="Exact, not yet existing path .git is moved to while a tree is copied",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every git command"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback("unmkrepo"), is_eager=True, help="Show version and exit"
    ),
) -> None:
    _configure_logging(verbose)
    options = ExtractionOptions(
        repo_dir=input_dir,
        output_dir=output_dir,
        tags=tags or [],
        parking_path=park_path,
    )
    _run(lambda: extract(options, progress_callback=typer.echo))


if __name__ == "__main__":
    mkrepo_app()
