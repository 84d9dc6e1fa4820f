"""Create, list, apply and drop stashes."""

from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path

from .repo import CommitId, GitError, git, repo_work_dir
from .scopetime import scope_time

_MERGE_LABELS = ("Updated upstream", "Stash base", "Stashed changes")


def _list_stashes(root: str) -> list[CommitId]:
    out = git(root, "stash", "list", "--format=%H")
    return [CommitId(line) for line in out.splitlines() if line.strip()]


def get_stashes(repo_path: str | os.PathLike) -> list[CommitId]:
    """Return the ids of all stashes, newest first."""
    with scope_time("get_stashes"):
        return _list_stashes(repo_work_dir(repo_path))


def is_stash_commit(repo_path: str | os.PathLike, commit_id: CommitId) -> bool:
    """Tell whether ``commit_id`` is one of the repository's stashes."""
    return commit_id in get_stashes(repo_path)


def _stash_ref(root: str, stash_id: CommitId) -> str:
    for index, found in enumerate(_list_stashes(root)):
        if found == stash_id:
            return f"stash@{{{index}}}"
    raise GitError("stash commit not found")


def stash_drop(repo_path: str | os.PathLike, stash_id: CommitId) -> None:
    """Remove the stash ``stash_id`` without applying it."""
    with scope_time("stash_drop"):
        root = repo_work_dir(repo_path)
        git(root, "stash", "drop", "--quiet", _stash_ref(root, stash_id))


def stash_pop(repo_path: str | os.PathLike, stash_id: CommitId) -> None:
    """Apply the stash ``stash_id`` and remove it when that succeeds."""
    with scope_time("stash_pop"):
        root = repo_work_dir(repo_path)
        git(root, "stash", "pop", "--quiet", _stash_ref(root, stash_id))


def _blob(root: str, rev: str, path: str) -> bytes | None:
    try:
        out = git(root, "cat-file", "blob", f"{rev}:{path}")
    except GitError:
        return None
    return out.encode("utf-8", "surrogateescape")


def _has_commit(root: str, rev: str) -> bool:
    try:
        git(root, "rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}")
    except GitError:
        return False
    return True


def _merge_file(ours: bytes, base: bytes, theirs: bytes) -> bytes:
    with tempfile.TemporaryDirectory() as tmp:
        paths = []
        for name, content in (("current", ours), ("base", base), ("other", theirs)):
            target = Path(tmp) / name
            target.write_bytes(content)
            paths.append(str(target))
        labels = [arg for label in _MERGE_LABELS for arg in ("-L", label)]
        try:
            proc = subprocess.run(
                ["git", "merge-file", "-p", *labels, *paths],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise GitError(f"failed to run git: {exc}") from exc
    if proc.returncode < 0 or proc.returncode > 127:
        message = proc.stderr.decode("utf-8", "replace").strip()
        raise GitError(message or "merge failed", proc.returncode)
    return proc.stdout


def _merge_into_workdir(
    root: str, path: str, base: bytes | None, theirs: bytes | None
) -> None:
    target = Path(root) / path
    ours = target.read_bytes() if target.is_file() else None
    if ours == theirs:
        return
    if ours == base:
        if theirs is None:
            target.unlink(missing_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(theirs)
        return
    if theirs is None:
        # removed in the stash but changed locally: keep the local version
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(_merge_file(ours or b"", base or b"", theirs))


def _apply_with_conflicts(root: str, ref: str) -> None:
    base = f"{ref}^1"
    changed = git(root, "diff", "--name-only", "-z", "--no-renames", base, ref)
    for path in filter(None, changed.split("\0")):
        _merge_into_workdir(root, path, _blob(root, base, path), _blob(root, ref, path))

    untracked = f"{ref}^3"
    if _has_commit(root, untracked):
        names = git(root, "ls-tree", "-r", "-z", "--name-only", untracked)
        for path in filter(None, names.split("\0")):
            _merge_into_workdir(root, path, None, _blob(root, untracked, path))


def stash_apply(
    repo_path: str | os.PathLike, stash_id: CommitId, allow_conflicts: bool
) -> None:
    """Apply the stash ``stash_id`` and keep it.

    With ``allow_conflicts`` conflicting changes are written to the working
    directory with conflict markers instead of failing.
    """
    with scope_time("stash_apply"):
        root = repo_work_dir(repo_path)
        ref = _stash_ref(root, stash_id)
        try:
            git(root, "stash", "apply", "--quiet", ref)
        except GitError:
            if not allow_conflicts:
                raise
            if git(root, "diff", "--name-only", "--diff-filter=U").strip():
                return
            _apply_with_conflicts(root, ref)


def _stash_top(root: str) -> CommitId | None:
    try:
        out = git(root, "rev-parse", "--verify", "--quiet", "refs/stash")
    except GitError:
        return None
    return CommitId(out.strip())


def stash_save(
    repo_path: str | os.PathLike,
    message: str | None,
    include_untracked: bool,
    keep_index: bool,
) -> CommitId:
    """Stash the local changes and return the id of the new stash."""
    with scope_time("stash_save"):
        root = repo_work_dir(repo_path)
        before = _stash_top(root)

        args = ["stash", "push", "--quiet"]
        if include_untracked:
            args.append("--include-untracked")
        if keep_index:
            args.append("--keep-index")
        if message is not None:
            args += ["--message", message]
        git(root, *args)

        after = _stash_top(root)
        if after is None or after == before:
            raise GitError("cannot stash changes - there is nothing to stash.")
        return after