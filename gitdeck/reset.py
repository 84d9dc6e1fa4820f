"""Reset paths in the index or in the working directory."""

from __future__ import annotations

import os

from .repo import NoHeadError, get_head, git, repo_work_dir
from .scopetime import scope_time


def reset_stage(repo_path: str | os.PathLike, path: str) -> None:
    """Reset the index entries matching ``path`` to the state of HEAD.

    In a repository without any commit the matching entries are removed
    from the index instead.
    """
    with scope_time("reset_stage"):
        root = repo_work_dir(repo_path)
        try:
            head = get_head(root)
        except NoHeadError:
            git(root, "rm", "--cached", "-r", "-q", "--ignore-unmatch", "--", path)
        else:
            git(root, "reset", "-q", head.hex, "--", path)


def reset_workdir(repo_path: str | os.PathLike, path: str) -> None:
    """Restore the working directory under ``path`` to the state of the index.

    Tracked files are overwritten with their indexed content and untracked
    files below ``path`` are removed.
    """
    with scope_time("reset_workdir"):
        root = repo_work_dir(repo_path)
        tracked = [
            name for name in git(root, "ls-files", "-z", "--", path).split("\0") if name
        ]
        if tracked:
            git(root, "checkout-index", "-f", "-q", "--", *dict.fromkeys(tracked))
        git(root, "clean", "-f", "-d", "-q", "--", path)