"""Stage, unstage and discard selected lines of a file's diff."""

from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .repo import GitError, repo_work_dir, repo_write_file
from .scopetime import scope_time

logger = logging.getLogger(__name__)

NEWLINE = "\n"

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

# markers for a line that lacks a newline at the end of the file
_EOFNL_AFTER = {"+": ">", "-": "<", " ": "="}
_EOFNL = frozenset(_EOFNL_AFTER.values())


@dataclass(frozen=True)
class DiffLinePosition:
    """The old and new line numbers that identify a line of a diff."""

    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None


@dataclass(frozen=True)
class HunkLine:
    """One line of a hunk with its origin marker and line numbers."""

    origin: str
    content: str
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None

    @property
    def position(self) -> DiffLinePosition:
        return DiffLinePosition(self.old_lineno, self.new_lineno)


@dataclass
class Hunk:
    """A hunk of a diff: its header line, ranges and lines."""

    header: str
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[HunkLine] = field(default_factory=list)


def _git_bytes(root: str, *args: str, stdin: bytes = b"") -> bytes:
    command = ["git", "-C", root, *args]
    env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
    try:
        proc = subprocess.run(
            command, input=stdin, capture_output=True, env=env, check=False
        )
    except OSError as exc:
        raise GitError(f"failed to run git: {exc}") from exc
    if proc.returncode != 0:
        message = proc.stderr.decode("utf-8", "replace").strip()
        raise GitError(
            message or f"git exited with status {proc.returncode}", proc.returncode
        )
    return proc.stdout


def _parse_hunks(raw: bytes) -> list[Hunk]:
    hunks: list[Hunk] = []
    current: Optional[Hunk] = None
    old_rem = new_rem = 0
    old_ln = new_ln = 0
    prev_origin = " "

    for row in raw.split(b"\n"):
        text = row.decode("utf-8", "surrogateescape")
        if current is not None:
            if text.startswith("\\"):
                origin = _EOFNL_AFTER.get(prev_origin, "=")
                current.lines.append(HunkLine(origin, text))
                continue
            if old_rem > 0 or new_rem > 0:
                origin = text[:1] or " "
                content = text[1:]
                if origin == " ":
                    line = HunkLine(origin, content, old_ln, new_ln)
                    old_ln += 1
                    new_ln += 1
                    old_rem -= 1
                    new_rem -= 1
                elif origin == "-":
                    line = HunkLine(origin, content, old_ln, None)
                    old_ln += 1
                    old_rem -= 1
                elif origin == "+":
                    line = HunkLine(origin, content, None, new_ln)
                    new_ln += 1
                    new_rem -= 1
                else:
                    raise GitError(f"unexpected diff line: {text!r}")
                current.lines.append(line)
                prev_origin = origin
                continue
            current = None

        match = _HUNK_RE.match(text)
        if match is None:
            continue
        old_start = int(match[1])
        old_count = int(match[2]) if match[2] is not None else 1
        new_start = int(match[3])
        new_count = int(match[4]) if match[4] is not None else 1
        current = Hunk(text, old_start, old_count, new_start, new_count)
        hunks.append(current)
        old_rem, new_rem = old_count, new_count
        old_ln, new_ln = old_start, new_start
        prev_origin = " "

    return hunks


def file_diff_hunks(
    repo_path: str | os.PathLike, file_path: str, is_stage: bool
) -> list[Hunk]:
    """Return the hunks of ``file_path``: HEAD to index when ``is_stage``,
    otherwise index to working directory."""
    root = repo_work_dir(repo_path)
    args = [
        "--literal-pathspecs",
        "diff",
        "-U3",
        "--no-color",
        "--no-ext-diff",
        "--no-textconv",
        "--no-renames",
        "--no-indent-heuristic",
        "--diff-algorithm=myers",
    ]
    if is_stage:
        args.append("--cached")
    args += ["--", file_path]
    return _parse_hunks(_git_bytes(root, *args))


def _text_lines(text: str) -> list[str]:
    if not text:
        return []
    parts = text.split(NEWLINE)
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


class _NewContent:
    """Builds new file content out of old lines and lines of hunks."""

    def __init__(self, old_lines: Sequence[str]) -> None:
        self._old_lines = old_lines
        self._lines: list[str] = []
        self._old_index = 0

    def add_from_hunk(self, line: HunkLine) -> None:
        content = line.content
        if content.endswith(NEWLINE):
            content = content[:-1]
        self._lines.append(content)

    def skip_old_line(self) -> None:
        self._old_index += 1

    def add_old_line(self) -> None:
        self._lines.append(self._old_lines[self._old_index])
        self._old_index += 1

    def catchup_to_hunkstart(self, hunk_start: int) -> None:
        while hunk_start > self._old_index + 1:
            self.add_old_line()

    def finish(self) -> str:
        self._lines.extend(self._old_lines[self._old_index:])
        text = NEWLINE.join(self._lines)
        return text if text.endswith(NEWLINE) else text + NEWLINE


def apply_selection(
    lines: Iterable[DiffLinePosition],
    hunks: Sequence[Hunk],
    old_lines: Sequence[str],
    is_staged: bool,
    reverse: bool,
) -> str:
    """Return the content of ``old_lines`` with the selected diff lines applied."""
    selection = set(lines)
    new_content = _NewContent(old_lines)

    char_added = "-" if reverse else "+"
    char_deleted = "+" if reverse else "-"

    first_hunk_encountered = False
    for hunk in hunks:
        hunk_start = hunk.new_start if is_staged or reverse else hunk.old_start

        if not first_hunk_encountered:
            first_hunk_encountered = any(
                line.position in selection for line in hunk.lines
            )
        if not first_hunk_encountered:
            continue

        new_content.catchup_to_hunkstart(hunk_start)

        for hunk_line in hunk.lines:
            selected = hunk_line.position in selection
            logger.debug(
                "%s line: %s [%s old, %s new] -> %s",
                "*" if selected else " ",
                hunk_line.origin,
                hunk_line.old_lineno,
                hunk_line.new_lineno,
                hunk_line.content.strip(),
            )

            if hunk_line.origin in _EOFNL:
                break

            origin = hunk_line.origin
            if is_staged != selected:
                if origin == char_added:
                    new_content.add_from_hunk(hunk_line)
                    if is_staged:
                        new_content.skip_old_line()
                elif origin == char_deleted:
                    if not is_staged:
                        new_content.skip_old_line()
                else:
                    new_content.add_old_line()
            else:
                if origin != char_added:
                    new_content.add_from_hunk(hunk_line)
                if (is_staged and origin != char_deleted) or (
                    not is_staged and origin != char_added
                ):
                    new_content.skip_old_line()

    return new_content.finish()


def load_file(repo_path: str | os.PathLike, file_path: str) -> str:
    """Read ``file_path`` from the working directory as UTF-8 text."""
    root = repo_work_dir(repo_path)
    return (os.path.join(root, file_path) and _read_text(root, file_path))


def _read_text(root: str, file_path: str) -> str:
    with open(os.path.join(root, file_path), "rb") as handle:
        return handle.read().decode("utf-8")


def discard_lines(
    repo_path: str | os.PathLike,
    file_path: str,
    lines: Sequence[DiffLinePosition],
) -> None:
    """Revert the selected lines of the unstaged changes of ``file_path``."""
    with scope_time("discard_lines"):
        if not lines:
            return

        root = repo_work_dir(repo_path)
        hunks = file_diff_hunks(root, file_path, False)
        old_lines = _text_lines(load_file(root, file_path))
        new_content = apply_selection(lines, hunks, old_lines, False, True)
        repo_write_file(root, file_path, new_content)


def _index_entry(root: str, file_path: str) -> tuple[str, str]:
    out = _git_bytes(root, "--literal-pathspecs", "ls-files", "-s", "-z", "--", file_path)
    for record in out.decode("utf-8", "surrogateescape").split("\0"):
        if not record:
            continue
        meta, _, path = record.partition("\t")
        mode, sha, stage = meta.split(" ")
        if stage == "0" and path == file_path:
            return mode, sha
    raise GitError("only non new files supported")


def stage_lines(
    repo_path: str | os.PathLike,
    file_path: str,
    is_stage: bool,
    lines: Sequence[DiffLinePosition],
) -> None:
    """Stage the selected lines of ``file_path``, or unstage them when
    ``is_stage`` is set."""
    with scope_time("stage_lines"):
        if not lines:
            return

        root = repo_work_dir(repo_path)
        mode, sha = _index_entry(root, file_path)
        indexed_content = _git_bytes(root, "cat-file", "blob", sha).decode("utf-8")

        hunks = file_diff_hunks(root, file_path, is_stage)
        old_lines = _text_lines(indexed_content)
        new_content = apply_selection(lines, hunks, old_lines, is_stage, False)

        blob = _git_bytes(
            root, "hash-object", "-w", "--stdin", stdin=new_content.encode("utf-8")
        ).decode("ascii").strip()
        _git_bytes(root, "update-index", "--cacheinfo", f"{mode},{blob},{file_path}")