"""Command tables and two-tier lookup.

A shell consults two tables: the custom menu registered by the embedding
application and the built-in default table. The menu wins when executing a
command; completion of argument tokens asks the default table first.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass

CommandHandler = Callable[[str], None]
CompletionGenerator = Callable[[str, int], str | None]
DisplayMatchesHook = Callable[[str, list[str], int], None]


@dataclass(frozen=True)
class CommandEntry:
    """A single registered command."""

    name: str
    handler: CommandHandler
    description: str = ""
    arg_spec: str | None = None
    generator: CompletionGenerator | None = None
    display_hook: DisplayMatchesHook | None = None


class CommandTable:
    """Ordered, immutable sequence of commands with unique names."""

    def __init__(self, entries: Iterable[CommandEntry]):
        self._entries: tuple[CommandEntry, ...] = tuple(entries)
        seen: set[str] = set()
        for entry in self._entries:
            if not entry.name:
                raise ValueError("Command name must not be empty")
            if entry.name in seen:
                raise ValueError(f"Duplicate command name: {entry.name}")
            seen.add(entry.name)

    def __iter__(self) -> Iterator[CommandEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def find(self, name: str) -> CommandEntry | None:
        """Return the entry named exactly ``name`` (case-sensitive)."""
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]


class CommandRegistry:
    """The default table plus at most one custom menu."""

    def __init__(self, defaults: CommandTable):
        self.defaults = defaults
        self.menu: CommandTable | None = None

    def set_menu(self, menu: CommandTable | None) -> bool:
        """Install the custom menu once; later calls fail."""
        if self.menu is not None or not menu:
            return False
        self.menu = menu
        return True

    def tables(self) -> list[CommandTable]:
        """Tables in execution precedence order."""
        if self.menu is None:
            return [self.defaults]
        return [self.menu, self.defaults]

    def resolve(self, name: str) -> CommandEntry | None:
        """Find the command to execute for ``name``; the menu wins."""
        for table in self.tables():
            entry = table.find(name)
            if entry is not None:
                return entry
        return None

    def resolve_for_completion(self, name: str) -> CommandEntry | None:
        """Find the command whose generator completes arguments.

        Defaults are consulted first, then the menu, and only entries that
        declare a generator count.
        """
        for table in reversed(self.tables()):
            entry = table.find(name)
            if entry is not None and entry.generator is not None:
                return entry
        return None
