"""Basic repository access through the git command line."""

from __future__ import annotations

import os
import string
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePath

from .scopetime import scope_time

_HEX_DIGITS = frozenset(string.hexdigits.lower())
_ID_LENGTHS = (40, 64)


class GitError(Exception):
    """Raised when a git operation fails."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class NoHeadError(GitError):
    """Raised when the repository has no commit checked out."""

    def __init__(self, message: str = "head not found") -> None:
        super().__init__(message)


class NoWorkDirError(GitError):
    """Raised when the repository has no working directory."""

    def __init__(self, message: str = "no work directory") -> None:
        super().__init__(message)


@dataclass(frozen=True, order=True)
class CommitId:
    """The full hexadecimal id of a commit."""

    hex: str

    def __post_init__(self) -> None:
        normalized = self.hex.strip().lower()
        if len(normalized) not in _ID_LENGTHS or not set(normalized) <= _HEX_DIGITS:
            raise ValueError(f"invalid commit id: {self.hex!r}")
        object.__setattr__(self, "hex", normalized)

    def __str__(self) -> str:
        return self.hex

    def get_short_string(self) -> str:
        """Return the abbreviated seven character form of the id."""
        return self.hex[:7]


@dataclass(frozen=True)
class Head:
    """The reference HEAD points at and the commit it resolves to."""

    name: str
    id: CommitId


def git(repo_path: str | os.PathLike, *args: str) -> str:
    """Run git with ``args`` in ``repo_path`` and return its standard output."""
    command = ["git", "-C", os.fspath(repo_path), *args]
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    try:
        proc = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            env=env,
            check=False,
        )
    except OSError as exc:
        raise GitError(f"failed to run git: {exc}") from exc
    if proc.returncode != 0:
        message = proc.stderr.decode("utf-8", "replace").strip()
        raise GitError(
            message or f"git exited with status {proc.returncode}",
            proc.returncode,
        )
    return proc.stdout.decode("utf-8", "surrogateescape")


def _check_repo(repo_path: str | os.PathLike) -> None:
    if git(repo_path, "rev-parse", "--is-bare-repository").strip() == "true":
        raise GitError("bare repo")


def _pathspec(path: str | os.PathLike) -> str:
    return PurePath(path).as_posix()


def is_repo(repo_path: str | os.PathLike) -> bool:
    """Tell whether ``repo_path`` lies inside a git repository."""
    try:
        git(repo_path, "rev-parse", "--git-dir")
    except GitError:
        return False
    return True


def is_bare_repo(repo_path: str | os.PathLike) -> bool:
    """Tell whether the repository at ``repo_path`` is bare."""
    return git(repo_path, "rev-parse", "--is-bare-repository").strip() == "true"


def repo_work_dir(repo_path: str | os.PathLike) -> str:
    """Return the root of the working directory of the repository."""
    _check_repo(repo_path)
    try:
        top = git(repo_path, "rev-parse", "--show-toplevel").strip()
    except GitError:
        git_dir = Path(git(repo_path, "rev-parse", "--absolute-git-dir").strip())
        if git_dir.name != ".git":
            raise NoWorkDirError() from None
        return str(git_dir.parent)
    if not top:
        raise NoWorkDirError()
    return str(Path(top))


def _head_id(repo_path: str | os.PathLike) -> CommitId:
    with scope_time("get_head_repo"):
        try:
            out = git(repo_path, "rev-parse", "--verify", "--quiet", "HEAD^{commit}")
        except GitError as exc:
            raise NoHeadError() from exc
        return CommitId(out.strip())


def get_head(repo_path: str | os.PathLike) -> CommitId:
    """Return the id of the commit HEAD points at."""
    _check_repo(repo_path)
    return _head_id(repo_path)


def get_head_tuple(repo_path: str | os.PathLike) -> Head:
    """Return the HEAD reference name together with its commit id."""
    _check_repo(repo_path)
    head_id = _head_id(repo_path)
    try:
        name = git(repo_path, "symbolic-ref", "--quiet", "HEAD").strip()
    except GitError:
        name = "HEAD"
    return Head(name=name, id=head_id)


def stage_add_file(repo_path: str | os.PathLike, path: str | os.PathLike) -> None:
    """Stage the working directory state of a single file."""
    with scope_time("stage_add_file"):
        root = repo_work_dir(repo_path)
        git(root, "--literal-pathspecs", "add", "--", _pathspec(path))


def stage_add_all(repo_path: str | os.PathLike, pattern: str) -> None:
    """Stage every file or folder matching ``pattern``, leaving removals alone."""
    with scope_time("stage_add_all"):
        root = repo_work_dir(repo_path)
        git(root, "add", "--ignore-removal", "--", pattern)


def stage_addremoved(repo_path: str | os.PathLike, path: str | os.PathLike) -> None:
    """Stage the removal of a file."""
    with scope_time("stage_addremoved"):
        root = repo_work_dir(repo_path)
        git(
            root,
            "--literal-pathspecs",
            "rm",
            "--cached",
            "--quiet",
            "--",
            _pathspec(path),
        )


def get_config_string(repo_path: str | os.PathLike, key: str) -> str | None:
    """Return the configured value of ``key``, or None when it is not set."""
    _check_repo(repo_path)
    try:
        value = git(repo_path, "config", "--get", key)
    except GitError:
        return None
    return value[:-1] if value.endswith("\n") else value


def repo_write_file(repo_path: str | os.PathLike, file: str, content: str) -> None:
    """Write ``content`` to ``file`` relative to the working directory."""
    target = Path(repo_work_dir(repo_path)) / file
    target.write_bytes(content.encode("utf-8"))


def repo_read_file(repo_path: str | os.PathLike, file: str) -> str:
    """Read ``file`` relative to the working directory as UTF-8 text."""
    target = Path(repo_work_dir(repo_path)) / file
    return target.read_bytes().decode("utf-8")