"""Decide the order in which snapshot directories are committed."""

from __future__ import annotations

import os
from pathlib import Path

from mkrepo.metadata import BRANCH_SUFFIX, MESSAGE_SUFFIX

ORDER_FILE_NAME = "mkrepo.order"
RESERVED_SUFFIXES = (MESSAGE_SUFFIX, BRANCH_SUFFIX)


def _is_candidate(entry: Path) -> bool:
    """Return ``True`` for directories that are not reserved sidecar names."""
    if entry.name == ORDER_FILE_NAME:
        return False
    if entry.name.endswith(RESERVED_SUFFIXES):
        return False
    return entry.is_dir()


def read_order_file(path: Path) -> list[str]:
    """Return the non-blank lines of an order file, duplicates included."""
    text = path.read_text(encoding="utf-8")
    return [line for line in text.splitlines() if line.strip()]


def resolve_order(input_dir: Path) -> list[str]:
    """Return snapshot names in processing order.

    ``mkrepo.order`` is authoritative when present. Otherwise every directory
    entry that is not a sidecar is used, sorted byte-wise by name. Names are
    not re-checked here; the synthesizer validates each one before use.
    """
    input_dir = Path(input_dir)
    order_file = input_dir / ORDER_FILE_NAME
    if order_file.is_file():
        return read_order_file(order_file)

    names = [entry.name for entry in input_dir.iterdir() if _is_candidate(entry)]
    return sorted(names, key=os.fsencode)
