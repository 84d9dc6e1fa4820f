"""Read the tags of a repository, directly or in the background."""

from __future__ import annotations

import enum
import logging
import os
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, List, Optional, Tuple, Union

from .repo import CommitId, git, repo_work_dir
from .scopetime import scope_time

logger = logging.getLogger(__name__)

_TAG_PREFIX = "refs/tags/"
_FORMAT = "%(refname)%00%(objecttype)%00%(objectname)%00%(*objectname)"

CommitTags = List[str]
Tags = Dict[CommitId, CommitTags]


class TagsNotification(enum.Enum):
    """What a finished background tag lookup reports."""

    TAGS = "tags"
    FINISH_UNCHANGED = "finish_unchanged"


def get_tags(repo_path: str | os.PathLike) -> Tags:
    """Return every tag of the repository, grouped by the id it points at.

    Annotated tags are keyed by the object they tag, lightweight tags by
    their commit; lightweight tags of anything but a commit are left out.
    The mapping is ordered by id.
    """
    with scope_time("get_tags"):
        root = repo_work_dir(repo_path)
        out = git(root, "for-each-ref", f"--format={_FORMAT}", _TAG_PREFIX)

        tags: Tags = {}
        for line in out.split("\n"):
            if not line:
                continue
            refname, objtype, objname, target = line.split("\0")
            name = refname[len(_TAG_PREFIX):]
            try:
                name.encode("utf-8")
            except UnicodeEncodeError:
                break
            if objtype == "tag":
                key = CommitId(target)
            elif objtype == "commit":
                key = CommitId(objname)
            else:
                continue
            tags.setdefault(key, []).append(name)

        return dict(sorted(tags.items()))


class AsyncTags:
    """Looks up tags on a worker thread and reports to ``sender`` when done."""

    def __init__(
        self,
        repo_path: str | os.PathLike,
        sender: Callable[[TagsNotification], object],
    ) -> None:
        self._repo_path = repo_path
        self._sender = sender
        self._lock = threading.Lock()
        self._last: Optional[Tuple[float, Tags]] = None
        self._pending = 0

    def last(self) -> Optional[Tags]:
        """Return the most recently fetched tags, or None if there are none yet."""
        with self._lock:
            if self._last is None:
                return None
            return {key: list(names) for key, names in self._last[1].items()}

    def is_pending(self) -> bool:
        with self._lock:
            return self._pending > 0

    def _is_outdated(self, max_age: float) -> bool:
        with self._lock:
            return self._last is None or time.monotonic() - self._last[0] > max_age

    def request(
        self, max_age: Union[float, timedelta], force: bool = False
    ) -> None:
        """Start a lookup unless one is running or the last result is younger
        than ``max_age`` (seconds); ``force`` starts one regardless."""
        logger.debug("request")
        if isinstance(max_age, timedelta):
            max_age = max_age.total_seconds()

        if not force and (self.is_pending() or not self._is_outdated(max_age)):
            return

        with self._lock:
            self._pending += 1

        threading.Thread(target=self._run, daemon=True).start()

    def _run(self) -> None:
        try:
            changed = self._fetch()
        except Exception:
            logger.exception("error getting tags")
            raise
        finally:
            with self._lock:
                self._pending -= 1

        self._sender(
            TagsNotification.TAGS if changed else TagsNotification.FINISH_UNCHANGED
        )

    def _fetch(self) -> bool:
        tags = get_tags(self._repo_path)
        with self._lock:
            if self._last is not None and self._last[1] == tags:
                return False
            self._last = (time.monotonic(), tags)
        return True