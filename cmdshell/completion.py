"""Tab completion over the command registry."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document

from cmdshell.commands import CommandRegistry, CompletionGenerator, DisplayMatchesHook
from cmdshell.logging import get_logger

log = get_logger(__name__)

# Upper bound on candidates pulled from a command's generator.
MAX_GENERATED_CANDIDATES = 10_000

# Characters that end the word being completed.
WORD_BREAKS = " \t\n\"\\'`@$><=;|&{("


class CandidateIterator:
    """Lazy, finite, restartable sequence of command names matching a prefix.

    Walks the default table first, then the custom menu.
    """

    def __init__(self, registry: CommandRegistry, text: str):
        self._registry = registry
        self._text = text
        self._inner = self._generate()

    def _generate(self) -> Iterator[str]:
        tables = [self._registry.defaults]
        if self._registry.menu is not None:
            tables.append(self._registry.menu)
        for table in tables:
            for name in table.names():
                if name.startswith(self._text):
                    yield name

    def reset(self, text: str | None = None) -> None:
        if text is not None:
            self._text = text
        self._inner = self._generate()

    def __iter__(self) -> "CandidateIterator":
        return self

    def __next__(self) -> str:
        return next(self._inner)


def _collect(generator: CompletionGenerator, text: str) -> list[str]:
    matches: list[str] = []
    state = 0
    while state < MAX_GENERATED_CANDIDATES:
        candidate = generator(text, state)
        if candidate is None:
            break
        matches.append(candidate)
        state += 1
    else:
        log.warning("Completion generator truncated", text=text, limit=MAX_GENERATED_CANDIDATES)
    return matches


class CompletionEngine(Completer):
    """Produces completion candidates for the token under the cursor."""

    def __init__(self, registry: CommandRegistry):
        self._registry = registry
        self._names: CandidateIterator | None = None
        self.display_hook: DisplayMatchesHook | None = None
        self.attempt_over = False

    def complete(self, text: str, start: int, line_buffer: str) -> list[str]:
        """Return candidates for ``text`` which begins at offset ``start``.

        At offset zero the candidates are command names. Past it, the first
        token of the line names the command whose generator, if any, supplies
        the candidates and whose display hook becomes active.
        """
        self.attempt_over = False

        if start == 0:
            self.display_hook = None
            matches = list(CandidateIterator(self._registry, text))
        else:
            matches = self._complete_argument(text, line_buffer[:start])

        if not matches:
            self.attempt_over = True
        return matches

    def _complete_argument(self, text: str, before: str) -> list[str]:
        tokens = before.split()
        if not tokens:
            return []
        entry = self._registry.resolve_for_completion(tokens[0])
        if entry is None or entry.generator is None:
            return []
        self.display_hook = entry.display_hook
        return _collect(entry.generator, text)

    def get_completions(self, document: Document, complete_event: CompleteEvent) -> Iterable[Completion]:
        before = document.text_before_cursor
        start = len(before)
        while start > 0 and before[start - 1] not in WORD_BREAKS:
            start -= 1
        text = before[start:]
        for match in self.complete(text, start, document.text):
            yield Completion(match, start_position=-len(text))

    def completer(self, text: str, state: int) -> str | None:
        """Readline-style incremental command-name completer.

        ``state == 0`` restarts the candidate sequence; each call returns the
        next candidate, then None once exhausted.
        """
        if state == 0 or self._names is None:
            self._names = CandidateIterator(self._registry, text)
        return next(self._names, None)
