from pathlib import Path

import pytest

from gitdeck.repo import git, stage_add_all, stage_add_file
from gitdeck.reset import reset_stage, reset_workdir
from gitdeck.status import StatusType, get_status

HUNK_A = """
1   start
2
3
4
5
6   middle
7
8
9
0
1   end"""

HUNK_B = """
1   start
2   newa
3
4
5
6   middle
7
8
9
0   newb
1   end"""


@pytest.fixture
def empty_repo(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/master")
    git(root, "config", "user.name", "name")
    git(root, "config", "user.email", "name@example.com")
    git(root, "config", "commit.gpgsign", "false")
    git(root, "config", "core.autocrlf", "false")
    return root


@pytest.fixture
def repo(empty_repo):
    git(empty_repo, "commit", "-q", "--allow-empty", "-m", "initial")
    return empty_repo


def get_statuses(root):
    return (
        len(get_status(root, StatusType.WORKING_DIR, True)),
        len(get_status(root, StatusType.STAGE, True)),
    )


def write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def test_reset_only_unstaged(repo):
    assert len(get_status(repo, StatusType.WORKING_DIR, True)) == 0

    file_path = repo / "bar.txt"
    write(file_path, HUNK_A.encode())
    stage_add_file(repo, Path("bar.txt"))
    write(file_path, HUNK_B.encode())

    assert get_statuses(repo) == (1, 1)

    reset_workdir(repo, "bar.txt")

    assert get_statuses(repo) == (0, 1)
    assert file_path.read_bytes() == HUNK_A.encode()


def test_reset_untracked_in_subdir(repo):
    write(repo / "foo" / "bar.txt", b"test\nfoo")

    assert get_statuses(repo) == (1, 0)

    reset_workdir(repo, "foo/bar.txt")

    assert get_statuses(repo) == (0, 0)
    assert not (repo / "foo" / "bar.txt").exists()


def test_reset_folder(repo):
    write(repo / "foo" / "file1.txt", b"file1")
    write(repo / "foo" / "file2.txt", b"file1")
    write(repo / "file3.txt", b"file3")

    stage_add_all(repo, "*")
    git(repo, "commit", "-q", "-m", "msg")

    write(repo / "foo" / "file1.txt", b"file1\nadded line")
    (repo / "foo" / "file2.txt").unlink()
    write(repo / "foo" / "file4.txt", b"file4")
    write(repo / "foo" / "file5.txt", b"file5")
    write(repo / "file3.txt", b"file3\nadded line")

    assert get_statuses(repo) == (5, 0)

    stage_add_file(repo, Path("foo/file5.txt"))

    assert get_statuses(repo) == (4, 1)

    reset_workdir(repo, "foo")

    assert get_statuses(repo) == (1, 1)
    assert (repo / "foo" / "file1.txt").read_bytes() == b"file1"
    assert (repo / "foo" / "file2.txt").read_bytes() == b"file1"
    assert not (repo / "foo" / "file4.txt").exists()


def test_reset_untracked_in_subdir_and_index(repo):
    file = "foo/bar.txt"
    write(repo / file, b"test\nfoo")

    git(repo, "add", ".")

    write(repo / file, b"test\nfoo\nnewend")

    assert get_statuses(repo) == (1, 1)

    reset_workdir(repo, file)

    assert get_statuses(repo) == (0, 1)
    assert (repo / file).read_bytes() == b"test\nfoo"


def test_unstage_in_empty_repo(empty_repo):
    file_path = Path("foo.txt")
    write(empty_repo / file_path, b"test\nfoo")

    assert get_statuses(empty_repo) == (1, 0)

    stage_add_file(empty_repo, file_path)

    assert get_statuses(empty_repo) == (0, 1)

    reset_stage(empty_repo, "foo.txt")

    assert get_statuses(empty_repo) == (1, 0)


def test_unstage_with_head(repo):
    write(repo / "foo.txt", b"test\nfoo")
    stage_add_file(repo, Path("foo.txt"))

    assert get_statuses(repo) == (0, 1)

    reset_stage(repo, "foo.txt")

    assert get_statuses(repo) == (1, 0)


def test_reset_untracked_in_subdir_with_cwd_in_subdir(repo):
    write(repo / "foo" / "bar.txt", b"test\nfoo")

    assert get_statuses(repo) == (1, 0)

    reset_workdir(repo / "foo", "foo/bar.txt")

    assert get_statuses(repo) == (0, 0)


def test_reset_untracked_subdir(repo):
    write(repo / "foo" / "bar" / "baz.txt", b"test\nfoo")

    assert get_statuses(repo) == (1, 0)

    reset_workdir(repo, "foo/bar")

    assert get_statuses(repo) == (0, 0)
    assert not (repo / "foo" / "bar").exists()