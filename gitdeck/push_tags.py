"""Push the local tags that a remote does not have yet."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Callable, Optional

from .remotes import get_remotes
from .repo import GitError, git, repo_work_dir
from .scopetime import scope_time

_TAG_PREFIX = "refs/tags/"


class _Phase(enum.Enum):
    CHECK_REMOTE = "check_remote"
    PUSH = "push"
    DONE = "done"


@dataclass(frozen=True)
class PushTagsProgress:
    """Progress of pushing tags: checking the remote, pushing, or done."""

    Phase = _Phase

    phase: _Phase
    pushed: int = 0
    total: int = 0

    @classmethod
    def check_remote(cls) -> PushTagsProgress:
        return cls(_Phase.CHECK_REMOTE)

    @classmethod
    def pushing(cls, pushed: int, total: int) -> PushTagsProgress:
        return cls(_Phase.PUSH, pushed, total)

    @classmethod
    def done(cls) -> PushTagsProgress:
        return cls(_Phase.DONE)

    def is_done(self) -> bool:
        return self.phase is _Phase.DONE

    def progress(self) -> int:
        """Return the progress as a percentage from 0 to 100."""
        if self.phase is _Phase.CHECK_REMOTE:
            return 0
        if self.phase is _Phase.DONE or self.total <= 0:
            return 100
        return max(0, min(self.pushed * 100 // self.total, 100))


ProgressSender = Optional[Callable[[PushTagsProgress], object]]


def _require_remote(root: str, remote: str) -> None:
    if remote not in get_remotes(root):
        raise GitError(f"remote '{remote}' does not exist")


def remote_tag_refs(repo_path: str | os.PathLike, remote: str) -> list[str]:
    """Return the full reference names of the tags ``remote`` has."""
    with scope_time("remote_tags"):
        root = repo_work_dir(repo_path)
        _require_remote(root, remote)
        out = git(root, "ls-remote", "--tags", remote)
        refs = []
        for line in out.splitlines():
            _, _, name = line.partition("\t")
            if name.startswith(_TAG_PREFIX) and not name.endswith("^{}"):
                refs.append(name)
        return refs


def tags_missing_remote(repo_path: str | os.PathLike, remote: str) -> list[str]:
    """Return the reference names of local tags that ``remote`` lacks, sorted."""
    with scope_time("tags_missing_remote"):
        root = repo_work_dir(repo_path)
        out = git(root, "for-each-ref", "--format=%(refname)", _TAG_PREFIX)
        local = {line for line in out.split("\n") if line}
        local.difference_update(remote_tag_refs(root, remote))
        return sorted(local)


def push_tags(
    repo_path: str | os.PathLike,
    remote: str,
    progress_sender: ProgressSender = None,
) -> None:
    """Push every local tag that ``remote`` does not have, one at a time."""
    with scope_time("push_tags"):

        def report(note: PushTagsProgress) -> None:
            if progress_sender is not None:
                progress_sender(note)

        report(PushTagsProgress.check_remote())

        root = repo_work_dir(repo_path)
        missing = tags_missing_remote(root, remote)
        _require_remote(root, remote)

        total = len(missing)
        report(PushTagsProgress.pushing(0, total))

        for pushed, tag in enumerate(missing, start=1):
            git(root, "push", "--quiet", remote, f"{tag}:{tag}")
            report(PushTagsProgress.pushing(pushed, total))

        report(PushTagsProgress.done())