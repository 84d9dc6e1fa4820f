"""Descriptions of the commands a view offers to the user."""

from __future__ import annotations

from dataclasses import dataclass, replace

_ORDER_MIN = -128
_ORDER_MAX = 127


@dataclass(frozen=True, order=True)
class CommandText:
    """The name, description and help group of a command."""

    name: str
    desc: str
    group: str
    hide_help: bool = False

    def hidden_from_help(self) -> CommandText:
        """Return a copy that is left out of the help listing."""
        return replace(self, hide_help=True)


@dataclass(frozen=True)
class CommandInfo:
    """A command together with its state in the current context."""

    text: CommandText
    # available but not active in the context
    enabled: bool
    # available in the current app state
    available: bool
    quick_bar: bool = True
    order: int = 0

    def __post_init__(self) -> None:
        if not _ORDER_MIN <= self.order <= _ORDER_MAX:
            raise ValueError(
                f"order {self.order} outside {_ORDER_MIN}..{_ORDER_MAX}"
            )

    def with_order(self, order: int) -> CommandInfo:
        """Return a copy placed at ``order`` in the quick bar."""
        return replace(self, order=order)

    def hidden(self) -> CommandInfo:
        """Return a copy that does not show up in the quick bar."""
        return replace(self, quick_bar=False)

    def show_in_quickbar(self) -> bool:
        return self.quick_bar and self.available