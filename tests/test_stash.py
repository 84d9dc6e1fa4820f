from pathlib import Path

import pytest

from gitdeck.repo import (
    GitError,
    get_head,
    git,
    repo_read_file,
    repo_write_file,
    stage_add_file,
)
from gitdeck.stash import (
    get_stashes,
    is_stash_commit,
    stash_apply,
    stash_drop,
    stash_pop,
    stash_save,
)
from gitdeck.status import StatusType, get_status


@pytest.fixture
def repo(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", "refs/heads/master")
    git(root, "config", "user.name", "name")
    git(root, "config", "user.email", "name@example.com")
    git(root, "config", "commit.gpgsign", "false")
    git(root, "config", "core.autocrlf", "false")
    git(root, "commit", "-q", "--allow-empty", "-m", "initial")
    return root


def get_statuses(root):
    return (
        len(get_status(root, StatusType.WORKING_DIR, True)),
        len(get_status(root, StatusType.STAGE, True)),
    )


def write_commit_file(root, file, content, message):
    repo_write_file(root, file, content)
    stage_add_file(root, Path(file))
    git(root, "commit", "-q", "-m", message)


def test_smoke(repo):
    with pytest.raises(GitError):
        stash_save(repo, None, True, False)

    assert get_stashes(repo) == []


def test_stashing(repo):
    (repo / "foo.txt").write_bytes(b"test\nfoo")

    assert get_statuses(repo) == (1, 0)

    stash_save(repo, None, True, False)

    assert get_statuses(repo) == (0, 0)


def test_stashes(repo):
    (repo / "foo.txt").write_bytes(b"test\nfoo")

    stash_id = stash_save(repo, "foo", True, False)

    res = get_stashes(repo)

    assert res == [stash_id]
    message = git(repo, "log", "-1", "--format=%s", res[0].hex).strip()
    assert message == "On master: foo"


def test_stash_nothing_untracked(repo):
    (repo / "foo.txt").write_bytes(b"test\nfoo")

    with pytest.raises(GitError):
        stash_save(repo, "foo", False, False)


def test_stash_without_2nd_parent(repo):
    write_commit_file(repo, "file1.txt", "test", "c1")
    (repo / "file1.txt").write_bytes(b"modified")

    git(repo, "stash")

    stashes = get_stashes(repo)
    assert len(stashes) == 1
    changed = git(repo, "diff", "--name-only", f"{stashes[0].hex}^1", stashes[0].hex)
    assert changed.splitlines() == ["file1.txt"]


def test_is_stash_commit(repo):
    repo_write_file(repo, "test.txt", "test")
    stash_id = stash_save(repo, "foo", True, False)

    assert is_stash_commit(repo, stash_id) is True
    assert is_stash_commit(repo, get_head(repo)) is False


def test_stash_drop(repo):
    repo_write_file(repo, "test.txt", "test")
    stash_id = stash_save(repo, "foo", True, False)

    stash_drop(repo, stash_id)

    assert get_stashes(repo) == []


def test_stash_drop_unknown(repo):
    with pytest.raises(GitError, match="stash commit not found"):
        stash_drop(repo, get_head(repo))


def test_stash_apply_conflict(repo):
    repo_write_file(repo, "test.txt", "test")

    stash_id = stash_save(repo, "foo", True, False)

    repo_write_file(repo, "test.txt", "foo")

    with pytest.raises(GitError):
        stash_apply(repo, stash_id, False)


def test_stash_apply_conflict2(repo):
    write_commit_file(repo, "test.txt", "test", "c1")
    repo_write_file(repo, "test.txt", "test2")

    stash_id = stash_save(repo, "foo", True, False)

    repo_write_file(repo, "test.txt", "test3")

    with pytest.raises(GitError):
        stash_apply(repo, stash_id, False)


def test_stash_apply_creating_conflict(repo):
    write_commit_file(repo, "test.txt", "test", "c1")
    repo_write_file(repo, "test.txt", "test2")

    stash_id = stash_save(repo, "foo", True, False)

    repo_write_file(repo, "test.txt", "test3")

    with pytest.raises(GitError):
        stash_apply(repo, stash_id, False)

    stash_apply(repo, stash_id, True)

    content = repo_read_file(repo, "test.txt")
    assert "<<<<<<<" in content
    assert "test2" in content
    assert "test3" in content
    assert get_stashes(repo) == [stash_id]


def test_stash_pop_no_conflict(repo):
    write_commit_file(repo, "test.txt", "test", "c1")
    repo_write_file(repo, "test.txt", "test2")

    stash_id = stash_save(repo, "foo", True, False)

    stash_pop(repo, stash_id)

    assert repo_read_file(repo, "test.txt") == "test2"
    assert get_stashes(repo) == []


def test_stash_pop_conflict(repo):
    repo_write_file(repo, "test.txt", "test")

    stash_id = stash_save(repo, "foo", True, False)

    repo_write_file(repo, "test.txt", "test2")

    with pytest.raises(GitError):
        stash_pop(repo, stash_id)

    assert repo_read_file(repo, "test.txt") == "test2"


def test_stash_pop_conflict_after_commit(repo):
    write_commit_file(repo, "test.txt", "test", "c1")
    repo_write_file(repo, "test.txt", "test2")

    stash_id = stash_save(repo, "foo", True, False)

    repo_write_file(repo, "test.txt", "test3")

    with pytest.raises(GitError):
        stash_pop(repo, stash_id)

    assert repo_read_file(repo, "test.txt") == "test3"