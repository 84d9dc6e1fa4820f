"""Detect whether a repository is in the middle of a merge or similar operation."""

from __future__ import annotations

import enum
import os
from pathlib import Path

from .repo import git, repo_work_dir
from .scopetime import scope_time


class RepoState(enum.Enum):
    """The operation a repository is currently in."""

    CLEAN = "clean"
    MERGE = "merge"
    OTHER = "other"


_BEFORE_MERGE = ("rebase-merge", "rebase-apply")
_AFTER_MERGE = ("REVERT_HEAD", "CHERRY_PICK_HEAD", "BISECT_LOG")


def repo_state(repo_path: str | os.PathLike) -> RepoState:
    """Return the state of the repository at ``repo_path``."""
    with scope_time("repo_state"):
        repo_work_dir(repo_path)
        git_dir = Path(git(repo_path, "rev-parse", "--absolute-git-dir").strip())

        if any((git_dir / marker).exists() for marker in _BEFORE_MERGE):
            return RepoState.OTHER
        if (git_dir / "MERGE_HEAD").exists():
            return RepoState.MERGE
        if any((git_dir / marker).exists() for marker in _AFTER_MERGE):
            return RepoState.OTHER
        return RepoState.CLEAN