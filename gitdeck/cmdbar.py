"""The command bar listing available commands at the bottom of the screen."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Union

from wcwidth import wcwidth

from .command import CommandInfo

MORE_WIDTH = 9


class _Marker(enum.Enum):
    LINE_BREAK = enum.auto()
    SPLITTER = enum.auto()


@dataclass(frozen=True)
class _Command:
    txt: str
    enabled: bool
    line: int


_Entry = Union[_Marker, _Command]


def _text_width(text: str) -> int:
    return sum(max(wcwidth(ch), 0) for ch in text)


def _truncate(text: str, width: int) -> str:
    used = 0
    for index, ch in enumerate(text):
        w = max(wcwidth(ch), 0)
        if used + w > width:
            return text[:index]
        used += w
    return text


class CommandBar:
    """Lays out command names into lines that fit a given width."""

    def __init__(self, splitter: str = " ") -> None:
        self._splitter = splitter
        self._draw_list: list[_Entry] = []
        self._cmd_infos: list[CommandInfo] = []
        self._lines = 0
        self._width = 0
        self._expandable = False
        self._expanded = False

    def refresh_width(self, width: int) -> None:
        if width != self._width:
            self._refresh_list(width)
            self._width = width

    def _is_multiline(self, width: int) -> bool:
        line_width = 0
        for info in self._cmd_infos:
            entry_w = _text_width(info.text.name)
            if line_width + entry_w > width:
                return True
            line_width += entry_w + 1
        return False

    def _refresh_list(self, width: int) -> None:
        self._draw_list = []
        if self._is_multiline(width):
            width = max(width - MORE_WIDTH, 0)

        line_width = 0
        lines = 1
        for info in self._cmd_infos:
            entry_w = _text_width(info.text.name)
            if line_width + entry_w > width:
                self._draw_list.append(_Marker.LINE_BREAK)
                line_width = 0
                lines += 1
            elif line_width > 0:
                self._draw_list.append(_Marker.SPLITTER)

            line_width += entry_w + 1
            self._draw_list.append(
                _Command(info.text.name, info.enabled, lines - 1)
            )

        self._expandable = lines > 1
        self._lines = lines

    def set_cmds(self, cmds: Iterable[CommandInfo]) -> None:
        shown = [c for c in cmds if c.show_in_quickbar()]
        self._cmd_infos = sorted(shown, key=lambda c: c.order)
        self._refresh_list(self._width)

    def height(self) -> int:
        if self._expandable and self._expanded:
            return self._lines
        return 1

    def toggle_more(self) -> None:
        if self._expandable:
            self._expanded = not self._expanded

    def render(self, width: int) -> list[str]:
        """Return the visible rows of the bar for an area ``width`` columns wide."""
        if width < MORE_WIDTH:
            return []

        rows: list[str] = []
        current: list[str] = []
        for entry in self._draw_list:
            if entry is _Marker.LINE_BREAK:
                rows.append("".join(current))
                current = []
            elif entry is _Marker.SPLITTER:
                current.append(self._splitter)
            else:
                current.append(entry.txt)
        rows.append("".join(current))

        height = self.height()
        rows = [_truncate(row, width) for row in rows[:height]]
        rows.extend([""] * (height - len(rows)))

        if self._expandable:
            label = "less [.]" if self._expanded else "more [.]"
            keep = width - len(label)
            last = _truncate(rows[-1], keep)
            rows[-1] = last + " " * (keep - _text_width(last)) + label

        return rows