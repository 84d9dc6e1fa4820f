"""Read the status of the files in a repository."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterator

from .repo import git, repo_work_dir
from .scopetime import scope_time


class StatusItemType(enum.Enum):
    """The kind of change a file has."""

    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    TYPECHANGE = "typechange"
    CONFLICTED = "conflicted"


class StatusType(enum.Enum):
    """Which side of the changes to report."""

    WORKING_DIR = "working_dir"
    STAGE = "stage"
    BOTH = "both"

    @property
    def shows_index(self) -> bool:
        return self is not StatusType.WORKING_DIR

    @property
    def shows_workdir(self) -> bool:
        return self is not StatusType.STAGE


@dataclass(frozen=True)
class StatusItem:
    """A changed file and the kind of its change."""

    path: str
    status: StatusItemType


_INDEX_CODES = {
    "A": StatusItemType.NEW,
    "C": StatusItemType.NEW,
    "D": StatusItemType.DELETED,
    "R": StatusItemType.RENAMED,
    "T": StatusItemType.TYPECHANGE,
    "M": StatusItemType.MODIFIED,
}

_WORKTREE_CODES = {
    "A": StatusItemType.NEW,
    "D": StatusItemType.DELETED,
    "R": StatusItemType.RENAMED,
    "T": StatusItemType.TYPECHANGE,
    "M": StatusItemType.MODIFIED,
}

_PRIORITY = (
    StatusItemType.NEW,
    StatusItemType.DELETED,
    StatusItemType.RENAMED,
    StatusItemType.TYPECHANGE,
)


@dataclass(frozen=True)
class _Entry:
    path: str
    index: StatusItemType | None = None
    worktree: StatusItemType | None = None
    conflicted: bool = False


def _parse(output: str) -> Iterator[_Entry]:
    fields = iter(output.split("\0"))
    for field in fields:
        if not field:
            continue
        kind = field[0]
        if kind == "1":
            parts = field.split(" ", 8)
            xy, path = parts[1], parts[8]
        elif kind == "2":
            parts = field.split(" ", 9)
            xy, path = parts[1], parts[9]
            next(fields, None)  # original path of the rename
        elif kind == "u":
            yield _Entry(field.split(" ", 10)[10], conflicted=True)
            continue
        elif kind == "?":
            yield _Entry(field[2:], worktree=StatusItemType.NEW)
            continue
        else:
            continue
        yield _Entry(path, _INDEX_CODES.get(xy[0]), _WORKTREE_CODES.get(xy[1]))


def _classify(entry: _Entry, status_type: StatusType) -> StatusItemType | None:
    if entry.conflicted:
        return StatusItemType.CONFLICTED
    found = []
    if status_type.shows_index and entry.index is not None:
        found.append(entry.index)
    if status_type.shows_workdir and entry.worktree is not None:
        found.append(entry.worktree)
    if not found:
        return None
    return next((kind for kind in _PRIORITY if kind in found), StatusItemType.MODIFIED)


def get_status(
    repo_path: str | os.PathLike,
    status_type: StatusType,
    include_untracked: bool,
) -> list[StatusItem]:
    """Return the changed files of the repository, ordered by path."""
    with scope_time("get_status"):
        root = repo_work_dir(repo_path)
        output = git(
            root,
            "status",
            "--porcelain=v2",
            "-z",
            "--renames",
            f"--untracked-files={'all' if include_untracked else 'no'}",
        )
        items = [
            StatusItem(entry.path, kind)
            for entry in _parse(output)
            if (kind := _classify(entry, status_type)) is not None
        ]
        items.sort(key=lambda item: PurePosixPath(item.path).parts)
        return items