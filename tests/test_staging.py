from pathlib import Path

import pytest

from gitdeck.repo import GitError, git, repo_write_file, stage_add_file
from gitdeck.staging import (
    DiffLinePosition,
    Hunk,
    HunkLine,
    apply_selection,
    discard_lines,
    file_diff_hunks,
    load_file,
    stage_lines,
)
from gitdeck.status import StatusType, get_status


@pytest.fixture
def repo(tmp_path):
    path = str(tmp_path)
    git(path, "init", "-q")
    git(path, "config", "user.name", "name")
    git(path, "config", "user.email", "name@example.com")
    git(path, "config", "commit.gpgsign", "false")
    git(path, "config", "core.autocrlf", "false")
    git(path, "commit", "-q", "--allow-empty", "-m", "initial")
    return path


def write_commit_file(repo_path, file, content, msg):
    repo_write_file(repo_path, file, content)
    stage_add_file(repo_path, Path(file))
    git(repo_path, "commit", "-q", "-m", msg)


def get_statuses(repo_path):
    return (
        len(get_status(repo_path, StatusType.WORKING_DIR, True)),
        len(get_status(repo_path, StatusType.STAGE, True)),
    )


def diff_line_count(repo_path, file, is_stage):
    return sum(1 + len(hunk.lines) for hunk in file_diff_hunks(repo_path, file, is_stage))


def pos(old=None, new=None):
    return DiffLinePosition(old_lineno=old, new_lineno=new)


@pytest.mark.parametrize(
    "file1, file2, lines, expected",
    [
        ("0\n1\n2\n3\n4\n", "0\n\n\n3\n4\n", [pos(old=3), pos(new=2)], "0\n2\n\n3\n4\n"),
        ("start\nend\n", "start\n1\n2\nend\n", [pos(new=3)], "start\n1\nend\n"),
        ("start\n1\nend\n", "start\n2\nend\n", [pos(old=2), pos(new=2)], "start\n1\nend\n"),
        ("start\nmid\nend\n", "start\n1\nmid\n2\nend\n", [pos(new=2), pos(new=4)], "start\nmid\nend\n"),
        ("start\nend\n", "start\n1\nend\n", [pos(new=1), pos(new=2)], "start\nend\n"),
        ("start\nmid\nend\n", "start\nend\n", [pos(old=2)], "start\nmid\nend\n"),
        ("start\n", "start\n1", [pos(new=2)], "start\n"),
    ],
    ids=[
        "discard",
        "discard2",
        "discard3",
        "discard4",
        "first_selected_line_not_in_any_hunk",
        "deletions_filestart_zero_context",
        "discard5",
    ],
)
def test_discard(repo, file1, file2, lines, expected):
    write_commit_file(repo, "test.txt", file1, "c1")
    repo_write_file(repo, "test.txt", file2)

    discard_lines(repo, "test.txt", lines)

    assert load_file(repo, "test.txt") == expected


def test_discard_nothing_selected_keeps_file(repo):
    write_commit_file(repo, "test.txt", "start\n", "c1")
    repo_write_file(repo, "test.txt", "start\n1\n")

    discard_lines(repo, "test.txt", [])

    assert load_file(repo, "test.txt") == "start\n1\n"


def test_stage(repo):
    write_commit_file(repo, "test.txt", "0\n", "c1")
    repo_write_file(repo, "test.txt", "0\n1\n2\n3\n")

    stage_lines(repo, "test.txt", False, [pos(new=2)])

    hunks = file_diff_hunks(repo, "test.txt", True)
    assert diff_line_count(repo, "test.txt", True) == 3
    assert hunks[0].header == "@@ -1 +1,2 @@"


def test_panic_stage_no_newline(repo):
    write_commit_file(repo, "test.txt", "a = 1\nb = 2", "c1")
    repo_write_file(repo, "test.txt", "a = 2\nb = 3\nc = 4")

    stage_lines(repo, "test.txt", False, [pos(old=1), pos(old=2)])

    hunks = file_diff_hunks(repo, "test.txt", True)
    assert diff_line_count(repo, "test.txt", True) == 5
    assert hunks[0].header == "@@ -1,2 +1 @@"


def test_unstage(repo):
    write_commit_file(repo, "test.txt", "0\n", "c1")
    repo_write_file(repo, "test.txt", "0\n1\n2\n3\n")

    assert get_statuses(repo) == (1, 0)

    stage_add_file(repo, Path("test.txt"))

    assert get_statuses(repo) == (0, 1)
    assert diff_line_count(repo, "test.txt", True) == 5

    stage_lines(repo, "test.txt", True, [pos(new=2)])

    assert get_statuses(repo) == (1, 1)
    assert diff_line_count(repo, "test.txt", True) == 4


def test_stage_new_file_is_rejected(repo):
    repo_write_file(repo, "new.txt", "content\n")

    with pytest.raises(GitError, match="only non new files supported"):
        stage_lines(repo, "new.txt", False, [pos(new=1)])


def test_file_diff_hunks_line_positions(repo):
    write_commit_file(repo, "test.txt", "start\n1\nend\n", "c1")
    repo_write_file(repo, "test.txt", "start\n2\nend\n")

    hunks = file_diff_hunks(repo, "test.txt", False)

    assert len(hunks) == 1
    assert [(line.origin, line.content) for line in hunks[0].lines] == [
        (" ", "start"),
        ("-", "1"),
        ("+", "2"),
        (" ", "end"),
    ]
    assert [line.position for line in hunks[0].lines] == [
        pos(1, 1),
        pos(old=2),
        pos(new=2),
        pos(3, 3),
    ]


def test_file_diff_hunks_marks_missing_newline(repo):
    write_commit_file(repo, "test.txt", "start\n", "c1")
    repo_write_file(repo, "test.txt", "start\n1")

    hunks = file_diff_hunks(repo, "test.txt", False)

    assert [line.origin for line in hunks[0].lines] == [" ", "+", ">"]


def _sample_hunk():
    return Hunk(
        header="@@ -1 +1,2 @@",
        old_start=1,
        old_count=1,
        new_start=1,
        new_count=2,
        lines=[HunkLine(" ", "a", 1, 1), HunkLine("+", "b", None, 2)],
    )


def test_apply_selection_adds_selected_line():
    result = apply_selection([pos(new=2)], [_sample_hunk()], ["a"], False, False)
    assert result == "a\nb\n"


def test_apply_selection_without_selection_keeps_old_content():
    result = apply_selection([], [_sample_hunk()], ["a"], False, False)
    assert result == "a\n"