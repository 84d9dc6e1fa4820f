"""List remotes, fetch from and push to them, reporting progress on the way."""

from __future__ import annotations

import codecs
import enum
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional

from .repo import CommitId, GitError, git, repo_work_dir
from .scopetime import scope_time

DEFAULT_REMOTE_NAME = "origin"

_ZERO_ID = CommitId("0" * 40)

ProgressSender = Optional[Callable[["ProgressNotification"], object]]

_PROGRESS_RE = re.compile(
    r"^(?P<label>[A-Za-z ]+):\s+\d+%\s+\((?P<current>\d+)/(?P<total>\d+)\)"
    r"(?:,\s*(?P<size>[\d.]+)\s*(?P<unit>bytes|KiB|MiB|GiB))?"
)
_UNIT_FACTORS = {"bytes": 1, "KiB": 1024, "MiB": 1024**2, "GiB": 1024**3}


class NoDefaultRemoteFoundError(GitError):
    """Raised when several remotes exist and none of them is the default one."""

    def __init__(self, message: str = "no default remote found") -> None:
        super().__init__(message)


class PackingStage(enum.Enum):
    """The phase of building a pack."""

    ADDING_OBJECTS = "adding_objects"
    DELTAFICATION = "deltafication"


class _ProgressKind(enum.Enum):
    UPDATE_TIPS = "update_tips"
    TRANSFER = "transfer"
    PUSH_TRANSFER = "push_transfer"
    PACKING = "packing"
    DONE = "done"


@dataclass(frozen=True)
class ProgressNotification:
    """A progress report of a running fetch or push.

    For transfers ``current`` and ``total`` count the received objects.
    """

    Kind = _ProgressKind

    kind: _ProgressKind
    current: int = 0
    total: int = 0
    bytes: int = 0
    name: str = ""
    a: Optional[CommitId] = None
    b: Optional[CommitId] = None
    stage: Optional[PackingStage] = None

    @classmethod
    def update_tips(cls, name: str, a: CommitId, b: CommitId) -> ProgressNotification:
        return cls(_ProgressKind.UPDATE_TIPS, name=name, a=a, b=b)

    @classmethod
    def transfer(cls, objects: int, total_objects: int) -> ProgressNotification:
        return cls(_ProgressKind.TRANSFER, current=objects, total=total_objects)

    @classmethod
    def push_transfer(cls, current: int, total: int, size: int) -> ProgressNotification:
        return cls(_ProgressKind.PUSH_TRANSFER, current=current, total=total, bytes=size)

    @classmethod
    def packing(
        cls, stage: PackingStage, current: int, total: int
    ) -> ProgressNotification:
        return cls(_ProgressKind.PACKING, current=current, total=total, stage=stage)

    @classmethod
    def done(cls) -> ProgressNotification:
        return cls(_ProgressKind.DONE)

    def is_done(self) -> bool:
        return self.kind is _ProgressKind.DONE

    def progress(self) -> int:
        """Return the progress as a percentage from 0 to 100."""
        if self.kind in (
            _ProgressKind.PACKING,
            _ProgressKind.PUSH_TRANSFER,
            _ProgressKind.TRANSFER,
        ):
            if self.total <= 0:
                return 100
            return max(0, min(self.current * 100 // self.total, 100))
        return 100


def get_remotes(repo_path: str | os.PathLike) -> list[str]:
    """Return the names of all configured remotes, sorted by name."""
    with scope_time("get_remotes"):
        root = repo_work_dir(repo_path)
        return sorted(line for line in git(root, "remote").splitlines() if line)


def get_default_remote(repo_path: str | os.PathLike) -> str:
    """Return ``origin`` if it exists, otherwise the only remote there is.

    Raises NoDefaultRemoteFoundError when the choice is inconclusive.
    """
    with scope_time("get_default_remote_in_repo"):
        remotes = get_remotes(repo_path)
        if DEFAULT_REMOTE_NAME in remotes:
            return DEFAULT_REMOTE_NAME
        if len(remotes) == 1:
            return remotes[0]
        raise NoDefaultRemoteFoundError()


def _parse_progress(line: str) -> ProgressNotification | None:
    match = _PROGRESS_RE.match(line)
    if match is None:
        return None
    label = match["label"].strip()
    current, total = int(match["current"]), int(match["total"])
    if label == "Counting objects":
        return ProgressNotification.packing(PackingStage.ADDING_OBJECTS, current, total)
    if label == "Compressing objects":
        return ProgressNotification.packing(PackingStage.DELTAFICATION, current, total)
    if label == "Writing objects":
        size = 0
        if match["size"] is not None:
            size = int(float(match["size"]) * _UNIT_FACTORS[match["unit"]])
        return ProgressNotification.push_transfer(current, total, size)
    if label in ("Receiving objects", "Unpacking objects"):
        return ProgressNotification.transfer(current, total)
    return None


def _run_with_progress(root: str, args: list[str], sender: ProgressSender) -> None:
    command = ["git", "-C", root, *args]
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    try:
        proc = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            env=env,
        )
    except OSError as exc:
        raise GitError(f"failed to run git: {exc}") from exc

    messages: list[str] = []

    def handle(line: str) -> None:
        line = line.strip()
        if not line:
            return
        note = _parse_progress(line)
        if note is None:
            messages.append(line)
        elif sender is not None:
            sender(note)

    decoder = codecs.getincrementaldecoder("utf-8")("replace")
    pending = ""
    with proc:
        stream = proc.stderr
        if stream is not None:
            for chunk in iter(lambda: stream.read1(4096), b""):
                pending += decoder.decode(chunk)
                *lines, pending = re.split(r"[\r\n]", pending)
                for line in lines:
                    handle(line)
        handle(pending + decoder.decode(b"", final=True))

    if proc.returncode != 0:
        raise GitError(
            "\n".join(messages) or f"git exited with status {proc.returncode}",
            proc.returncode,
        )


def _rev(root: str, ref: str) -> CommitId | None:
    try:
        out = git(root, "rev-parse", "--verify", "--quiet", ref)
    except GitError:
        return None
    return CommitId(out.strip())


def _report_tip(
    root: str, ref: str, before: CommitId | None, sender: ProgressSender
) -> None:
    after = _rev(root, ref)
    if sender is not None and after is not None and after != before:
        sender(ProgressNotification.update_tips(ref, before or _ZERO_ID, after))


def _object_store_kib(root: str) -> int:
    total = 0
    for line in git(root, "count-objects", "-v").splitlines():
        key, _, value = line.partition(":")
        if key.strip() in ("size", "size-pack"):
            total += int(value.strip() or 0)
    return total


def _config(root: str, key: str) -> str | None:
    try:
        value = git(root, "config", "--get", key).strip()
    except GitError:
        return None
    return value or None


def fetch(
    repo_path: str | os.PathLike,
    branch: str,
    progress_sender: ProgressSender = None,
) -> int:
    """Fetch ``branch`` from its upstream remote and return the bytes received.

    ``progress_sender`` is called with every ProgressNotification.
    """
    with scope_time("fetch_origin"):
        root = repo_work_dir(repo_path)
        if _rev(root, f"refs/heads/{branch}") is None:
            raise GitError(f"cannot locate local branch '{branch}'")
        remote = _config(root, f"branch.{branch}.remote")
        if remote is None:
            raise GitError(f"no upstream remote for branch '{branch}'")

        tracking = f"refs/remotes/{remote}/{branch}"
        before = _rev(root, tracking)
        size_before = _object_store_kib(root)

        _run_with_progress(root, ["fetch", "--progress", remote, branch], progress_sender)

        _report_tip(root, tracking, before, progress_sender)
        return max(_object_store_kib(root) - size_before, 0) * 1024


def _set_upstream(root: str, remote: str, branch: str) -> None:
    if _config(root, f"branch.{branch}.remote") is None:
        git(root, "config", f"branch.{branch}.remote", remote)
        git(root, "config", f"branch.{branch}.merge", f"refs/heads/{branch}")


def push(
    repo_path: str | os.PathLike,
    remote: str,
    branch: str,
    force: bool = False,
    progress_sender: ProgressSender = None,
) -> None:
    """Push ``branch`` to ``remote``, overwriting its history when ``force`` is set.

    Afterwards the branch tracks ``remote`` unless it already had an upstream.
    """
    with scope_time("push"):
        root = repo_work_dir(repo_path)
        if remote not in get_remotes(root):
            raise GitError(f"remote '{remote}' does not exist")

        refspec = f"refs/heads/{branch}"
        if force:
            refspec = "+" + refspec

        tracking = f"refs/remotes/{remote}/{branch}"
        before = _rev(root, tracking)

        _run_with_progress(root, ["push", "--progress", remote, refspec], progress_sender)

        _report_tip(root, tracking, before, progress_sender)
        _set_upstream(root, remote, branch)