"""Scope based runtime measurement that logs how long a block took."""

from __future__ import annotations

import inspect
import logging
import time
from contextlib import ContextDecorator

logger = logging.getLogger(__name__)


class ScopeTimeLog(ContextDecorator):
    """Measures the time spent inside a ``with`` block or decorated call."""

    def __init__(self, mod_path: str, title: str, file: str, line: int) -> None:
        self.mod_path = mod_path
        self.title = title
        self.file = file
        self.line = line
        self.elapsed_ms = 0
        self._start = time.perf_counter()

    def __enter__(self) -> ScopeTimeLog:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> bool:
        self.elapsed_ms = int((time.perf_counter() - self._start) * 1000)
        logger.debug(
            "scopetime: %d ms [%s::%s] @%s:%d",
            self.elapsed_ms,
            self.mod_path,
            self.title,
            self.file,
            self.line,
        )
        return False


def scope_time(title: str) -> ScopeTimeLog:
    """Return a timer for the calling scope, labelled with the caller's location."""
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    try:
        if caller is None:
            return ScopeTimeLog("<unknown>", title, "<unknown>", 0)
        module = inspect.getmodule(caller)
        mod_path = module.__name__ if module is not None else "<unknown>"
        return ScopeTimeLog(
            mod_path,
            title,
            caller.f_code.co_filename,
            caller.f_lineno,
        )
    finally:
        del frame, caller