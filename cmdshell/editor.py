"""Line editor driven by the event loop.

The editor never reads from a file descriptor itself: the attached input
source feeds it decoded text as it arrives. Keystrokes are decoded by
prompt_toolkit's VT100 parser and applied to a prompt_toolkit ``Buffer``;
each completed line is reported through a callback. The prompt line is drawn
on one output stream between keystrokes, so unsolicited output can be
written above it at any time.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.completion import CompleteEvent, get_common_complete_suffix
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.history import History as HistoryStore
from prompt_toolkit.input.vt100_parser import Vt100Parser
from prompt_toolkit.key_binding.key_processor import KeyPress
from prompt_toolkit.keys import Keys

from cmdshell.completion import CompletionEngine
from cmdshell.logging import get_logger

log = get_logger(__name__)

CLEAR_LINE = "\r\x1b[K"

LineCallback = Callable[[str | None], None]


class History:
    """Command history, persisted through a prompt_toolkit history store.

    Entries live in memory (oldest first, at most ``max_length``). Until
    ``load`` is called the store is in-memory only; afterwards every added
    line is appended to the history file as it is entered.
    """

    def __init__(self, max_length: int = 1000):
        self.max_length = max_length
        self._store: HistoryStore = InMemoryHistory()
        self._entries: list[str] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> str:
        return self._entries[index]

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def last(self) -> str | None:
        return self._entries[-1] if self._entries else None

    def _remember(self, line: str) -> bool:
        if not line or line == self.last:
            return False
        self._entries.append(line)
        if self.max_length > 0 and len(self._entries) > self.max_length:
            del self._entries[: len(self._entries) - self.max_length]
        return True

    def add(self, line: str) -> bool:
        """Append ``line`` unless empty or equal to the previous entry."""
        if not self._remember(line):
            return False
        try:
            self._store.store_string(line)
        except OSError as e:
            log.debug("Failed to save history", error=str(e))
        return True

    def load(self, path: Path) -> None:
        """Read ``path`` and keep appending new entries to it."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            store = FileHistory(str(path))
            # Newest first.
            stored = list(store.load_history_strings())
        except OSError as e:
            log.debug("Failed to load history", path=str(path), error=str(e))
            return
        self._store = store
        for line in reversed(stored):
            self._remember(line)


class LineEditor:
    """Single-line editor with prompt, history and tab completion."""

    def __init__(
        self,
        output: TextIO,
        on_line: LineCallback,
        completion: CompletionEngine | None = None,
        history: History | None = None,
        erase_empty_line: bool = True,
    ):
        self._output = output
        self._on_line = on_line
        self._completion = completion
        self.history = history if history is not None else History()
        self.erase_empty_line = erase_empty_line

        self._buffer = Buffer(multiline=False)
        self._parser = Vt100Parser(self._on_key)
        self._prompt = ""
        self._message: str | None = None
        self._saved_message: list[str | None] = []
        self._installed = False
        self._done = False
        self._mid_row = False
        self._last_was_cr = False
        self._history_pos: int | None = None
        self._history_draft = ""

        self._edit_keys: dict[str, Callable[[], None]] = {
            Keys.ControlH: self._backspace,
            Keys.Delete: self._delete_char,
            Keys.ControlA: self._start_of_line,
            Keys.Home: self._start_of_line,
            Keys.ControlE: self._end_of_line,
            Keys.End: self._end_of_line,
            Keys.ControlB: self._buffer.cursor_left,
            Keys.Left: self._buffer.cursor_left,
            Keys.ControlF: self._buffer.cursor_right,
            Keys.Right: self._buffer.cursor_right,
            Keys.ControlK: self._kill_line,
            Keys.ControlU: self._kill_line_back,
            Keys.ControlW: self._kill_word_back,
            Keys.ControlP: self._history_prev,
            Keys.Up: self._history_prev,
            Keys.ControlN: self._history_next,
            Keys.Down: self._history_next,
        }

    # -- state ---------------------------------------------------------

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def active(self) -> bool:
        """True while a line is being edited."""
        return self._installed and not self._done

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def visible_prompt(self) -> str:
        return self._message if self._message is not None else self._prompt

    @property
    def buffer(self) -> str:
        return self._buffer.text

    @property
    def point(self) -> int:
        return self._buffer.cursor_position

    @point.setter
    def point(self, value: int) -> None:
        self._buffer.cursor_position = max(0, min(value, len(self._buffer.text)))

    def install(self, prompt: str) -> None:
        """Start accepting input and show ``prompt``."""
        self._prompt = prompt
        self._installed = True
        self._done = False
        self.redisplay()

    def remove(self) -> None:
        """Stop accepting input; pending keystrokes are dropped."""
        self._installed = False
        self._parser.reset()

    # -- prompt handling ------------------------------------------------

    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt
        if self._installed:
            self.redisplay()

    def save_prompt(self) -> None:
        self._saved_message.append(self._message)

    def restore_prompt(self) -> None:
        self._message = self._saved_message.pop() if self._saved_message else None
        if self._installed:
            self.redisplay()

    def message(self, text: str) -> None:
        """Show ``text`` in place of the prompt until restored."""
        self._message = text
        if self._installed:
            self.redisplay()

    def clear_message(self) -> None:
        self._message = None
        self._saved_message.clear()

    # -- drawing --------------------------------------------------------

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()

    def write(self, text: str) -> None:
        """Write output that is not part of the edit line."""
        if not text:
            return
        self._write(text)
        self._mid_row = not text.endswith("\n")

    def redisplay(self) -> None:
        """Redraw the prompt and buffer, leaving the cursor at the point.

        Output that stopped mid-row is kept by starting the prompt on the
        next row.
        """
        text = self._buffer.text
        back = len(text) - self._buffer.cursor_position
        line = CLEAR_LINE + self.visible_prompt + text
        if back:
            line += f"\x1b[{back}D"
        if self._mid_row:
            line = "\n" + line
            self._mid_row = False
        self._write(line)

    def crlf(self) -> None:
        self._write("\n")
        self._mid_row = False

    def replace_line(self, text: str) -> None:
        self._buffer.document = Document(text)

    def insert_text(self, text: str) -> None:
        self._buffer.insert_text(text)

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Blank the edit line for the duration of a write, then restore it.

        Outside of line editing (not installed, or while a completed line is
        being handled) the write goes straight through.
        """
        if not self.active:
            yield
            return

        saved = self._buffer.document
        self._write(CLEAR_LINE)
        try:
            yield
        finally:
            self._buffer.document = saved
            self.redisplay()

    # -- input ----------------------------------------------------------

    def feed(self, text: str) -> None:
        """Process keystrokes as they arrive from the input source."""
        if self._installed:
            self._parser.feed(text)

    def _on_key(self, key_press: KeyPress) -> None:
        if not self._installed:
            return
        key = key_press.key
        if key == Keys.ControlJ and self._last_was_cr:
            self._last_was_cr = False
            return
        self._last_was_cr = key == Keys.ControlM

        if key in (Keys.ControlM, Keys.ControlJ):
            self._accept_line()
        elif key == Keys.ControlD and not self._buffer.text:
            self._end_of_input()
        elif key == Keys.ControlI:
            self._complete()
        elif key == Keys.BracketedPaste:
            self._buffer.insert_text(" ".join(key_press.data.splitlines()))
            self.redisplay()
        elif key == Keys.ControlD:
            self._delete_char()
            self.redisplay()
        elif key in self._edit_keys:
            self._edit_keys[key]()
            self.redisplay()
        elif isinstance(key, Keys):
            log.debug("Ignoring key", key=key.value)
        else:
            self._buffer.insert_text(key_press.data)
            self.redisplay()

    def _backspace(self) -> None:
        self._buffer.delete_before_cursor(1)

    def _delete_char(self) -> None:
        self._buffer.delete(1)

    def _start_of_line(self) -> None:
        self._buffer.cursor_position = 0

    def _end_of_line(self) -> None:
        self._buffer.cursor_position = len(self._buffer.text)

    def _kill_line(self) -> None:
        self._buffer.delete(len(self._buffer.document.text_after_cursor))

    def _kill_line_back(self) -> None:
        self._buffer.delete_before_cursor(self._buffer.cursor_position)

    def _kill_word_back(self) -> None:
        pos = self._buffer.document.find_start_of_previous_word(WORD=True)
        if pos is None:
            pos = -self._buffer.cursor_position
        if pos:
            self._buffer.delete_before_cursor(-pos)

    def _accept_line(self) -> None:
        line = self._buffer.text
        if not line and self.erase_empty_line:
            self._write(CLEAR_LINE)
        else:
            self.crlf()
        self._buffer.document = Document()
        self._history_pos = None

        self._done = True
        try:
            self._on_line(line)
        finally:
            self._done = False
        if self._installed:
            self.redisplay()

    def _end_of_input(self) -> None:
        self._done = True
        try:
            self._on_line(None)
        finally:
            self._done = False
        self._buffer.document = Document()

    # -- history --------------------------------------------------------

    def _history_prev(self) -> None:
        if not len(self.history):
            return
        if self._history_pos is None:
            self._history_draft = self._buffer.text
            self._history_pos = len(self.history)
        if self._history_pos > 0:
            self._history_pos -= 1
            self.replace_line(self.history[self._history_pos])

    def _history_next(self) -> None:
        if self._history_pos is None:
            return
        self._history_pos += 1
        if self._history_pos >= len(self.history):
            self._history_pos = None
            self.replace_line(self._history_draft)
        else:
            self.replace_line(self.history[self._history_pos])

    # -- completion -----------------------------------------------------

    def _complete(self) -> None:
        if self._completion is None:
            return
        document = self._buffer.document
        completions = list(
            self._completion.get_completions(document, CompleteEvent(completion_requested=True))
        )
        if not completions:
            return

        if len(completions) == 1:
            completion = completions[0]
            self._buffer.delete_before_cursor(-completion.start_position)
            self._buffer.insert_text(completion.text + " ")
            self.redisplay()
            return

        common = get_common_complete_suffix(document, completions)
        if common:
            self._buffer.insert_text(common)
            self.redisplay()
            return

        before = document.text_before_cursor
        word = before[len(before) + completions[0].start_position :]
        self._display_matches(word, [completion.text for completion in completions])

    def _display_matches(self, text: str, matches: list[str]) -> None:
        longest = max(len(match) for match in matches)
        hook = self._completion.display_hook if self._completion else None
        if hook is not None:
            hook(text, matches, longest)
        else:
            self._write("\n" + "\n".join(format_columns(matches, longest)) + "\n")
        self.redisplay()


def format_columns(items: list[str], longest: int, width: int | None = None) -> list[str]:
    """Lay ``items`` out in sorted, left-aligned columns."""
    if width is None:
        width = shutil.get_terminal_size().columns
    column = longest + 2
    per_row = max(1, width // column)
    ordered = sorted(items)
    rows: list[str] = []
    for offset in range(0, len(ordered), per_row):
        chunk = ordered[offset : offset + per_row]
        rows.append("".join(item.ljust(column) for item in chunk).rstrip())
    return rows
