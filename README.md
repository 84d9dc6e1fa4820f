# gitdeck

gitdeck is a library of Python functions for working with a Git working
copy. Every operation runs the `git` executable, so `git` must be on your
`PATH`. Git is started with `GIT_TERMINAL_PROMPT=0`, so it never asks for
credentials on the terminal. The library also has small helpers that lay
out a command bar for a terminal interface.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `gitdeck.repo`

- `git(repo_path, *args)` runs `git -C repo_path ...` and returns its
  standard output. A non-zero exit status raises `GitError`, and the
  exception carries `returncode`.
- `is_repo`, `is_bare_repo`, `repo_work_dir`.
- `get_head` returns a `CommitId`. `get_head_tuple` returns a `Head` with
  `name` and `id`. In a repository with no commit, both raise `NoHeadError`.
- `stage_add_file`, `stage_add_all(repo_path, pattern)` and
  `stage_addremoved` stage files, folders and removals.
- `get_config_string(repo_path, key)` returns the value of `key`, or `None`
  when it is not set.
- `repo_write_file` and `repo_read_file` write and read UTF-8 text relative
  to the working directory.

`CommitId` holds a full hexadecimal id. It checks the id and lower-cases
it. `get_short_string()` returns the first seven characters. Functions
that need a working directory raise `GitError("bare repo")` on a bare
repository. `NoWorkDirError` is raised when the repository has no working
directory.

### `gitdeck.status`

`get_status(repo_path, status_type, include_untracked)` returns a list of
`StatusItem(path, status)` sorted by path. `status_type` is a `StatusType`:

- `WORKING_DIR`
- `STAGE`
- `BOTH`

`status` is a `StatusItemType`:

- `NEW`
- `MODIFIED`
- `DELETED`
- `RENAMED`
- `TYPECHANGE`
- `CONFLICTED`

### `gitdeck.state`

`repo_state(repo_path)` returns `RepoState.CLEAN`, `RepoState.MERGE`, or
`RepoState.OTHER`. `OTHER` covers a rebase, revert, cherry-pick or bisect.

### `gitdeck.reset`

- `reset_stage(repo_path, path)` unstages `path`. In a repository without
  commits it removes the entries from the index.
- `reset_workdir(repo_path, path)` restores tracked files under `path` from
  the index and deletes untracked files and folders there.

### `gitdeck.stash`

- `stash_save(repo_path, message, include_untracked, keep_index)` returns
  the id of the new stash. When there is nothing to stash it raises
  `GitError`.
- `get_stashes` lists the stashes, newest first.
- `is_stash_commit(repo_path, commit_id)` checks whether a commit is a stash.
- `stash_apply(repo_path, stash_id, allow_conflicts)` applies a stash. When
  `allow_conflicts` is true, conflicting changes are written to the files
  with conflict markers instead of failing.
- `stash_pop` applies a stash and drops it.
- `stash_drop` drops a stash.

An unknown stash id raises `GitError("stash commit not found")`.

### `gitdeck.remotes`

- `get_remotes` returns the remote names, sorted.
- `get_default_remote` returns `origin` if it exists, or the only remote if
  there is just one. Otherwise it raises `NoDefaultRemoteFoundError`.
- `fetch(repo_path, branch, progress_sender=None)` fetches a local branch
  from its upstream remote. It returns how much the object store grew, in
  bytes.
- `push(repo_path, remote, branch, force=False, progress_sender=None)`
  pushes a branch. With `force=True` it overwrites the remote history. If
  the branch has no upstream yet, it is set to track `remote`.

`progress_sender` is any callable. It receives `ProgressNotification`
values of these kinds: packing (with a `PackingStage`), transfer, push
transfer, update tips. `is_done()` and `progress()` return the state and a
percentage.

### `gitdeck.tags`

`get_tags(repo_path)` returns a dict from `CommitId` to a list of tag names,
ordered by id. It handles both annotated and lightweight tags.

`AsyncTags(repo_path, sender)` reads the tags on a background thread:

- `request(max_age, force=False)` starts a read. It does nothing when a read
  is already running, or when the last result is younger than `max_age`
  (seconds or a `timedelta`), unless `force` is true.
- When the read finishes, `sender` receives `TagsNotification.TAGS` if the
  tags changed, or `TagsNotification.FINISH_UNCHANGED` if not.
- `last()` returns the latest result.
- `is_pending()` tells whether a read is running.

### `gitdeck.push_tags`

- `remote_tag_refs(repo_path, remote)` lists the tag references a remote
  has.
- `tags_missing_remote(repo_path, remote)` lists the local tags the remote
  lacks.
- `push_tags(repo_path, remote, progress_sender=None)` pushes those tags one
  at a time.

During `push_tags`, `progress_sender` receives these `PushTagsProgress`
values, in order:

1. `check_remote()`
2. `pushing(n, total)`
3. `done()`

### `gitdeck.staging`

Single lines are identified by `DiffLinePosition(old_lineno, new_lineno)`.

- `stage_lines(repo_path, file_path, is_stage, lines)` stages the selected
  lines of the unstaged diff of a file that is already tracked. With
  `is_stage=True` it unstages them from the staged diff instead.
- `discard_lines(repo_path, file_path, lines)` reverts selected unstaged
  lines in the working file.
- `file_diff_hunks` returns a file's diff as `Hunk` and `HunkLine` values.
- `apply_selection` is the pure function both operations use to build the
  new content.

### `gitdeck.command` and `gitdeck.cmdbar`

`CommandText(name, desc, group)` and `CommandInfo(text, enabled, available)`
describe a command. Both are immutable:

- `CommandText.hidden_from_help()` returns a copy that is left out of help.
- `CommandInfo.with_order(order)` returns a copy with a new `order`. The
  order must be in -128..127.
- `CommandInfo.hidden()` returns a copy that is hidden from the quick bar.
- `show_in_quickbar()` tells whether the command appears in the quick bar.

`CommandBar(splitter=" ")`:

- `set_cmds(cmds)` keeps the quick-bar commands, sorted by `order`.
- `refresh_width(width)` wraps them into lines. When they do not fit, it
  reserves room for a "more [.]" or "less [.]" label.
- `height()` returns the number of lines to show.
- `toggle_more()` expands or collapses the bar.
- `render(width)` returns the visible rows as plain strings.

### `gitdeck.scopetime`

`scope_time(title)` returns a context manager, which can also be used as a
decorator. It logs the time spent inside at debug level, together with the
caller's module, file and line.

## Example

```python
from gitdeck.repo import get_head
from gitdeck.status import get_status, StatusType
from gitdeck.staging import DiffLinePosition, stage_lines

repo = "/path/to/checkout"

for item in get_status(repo, StatusType.WORKING_DIR, True):
    print(item.status, item.path)

# stage only the second line of the new version of a tracked file
stage_lines(repo, "notes.txt", False, [DiffLinePosition(None, 2)])

print(get_head(repo).get_short_string())
```

## What it does not do

gitdeck is a library only. It has:

- no command to run;
- no terminal screen (`CommandBar.render` returns strings and draws
  nothing);
- no clipboard support;
- no way to supply credentials, so fetch and push work only where git
  already has access without prompting.