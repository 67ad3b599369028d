"""One-shot input requests that borrow the command line.

A command handler that needs a secondary answer from the user (a PIN, a
confirmation) calls ``request_input``; the next completed line is handed to
its callback instead of the dispatcher, then normal command entry resumes.
Only one request can be outstanding at a time.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from cmdshell.colors import COLOR_RED, paint
from cmdshell.editor import LineEditor
from cmdshell.logging import get_logger

log = get_logger(__name__)

InputCallback = Callable[[str, Any], None]


class InputRequest:
    """Single-slot prompt override (IDLE -> PROMPTING -> IDLE)."""

    def __init__(self, editor: LineEditor, colors: bool = True):
        self._editor = editor
        self.colors = colors
        self._callback: InputCallback | None = None
        self._user_data: Any = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def user_data(self) -> Any:
        return self._user_data

    def format_message(self, label: str, message: str) -> str:
        return f"{paint(f'[{label}]', COLOR_RED, self.colors)} {message} "

    def request(self, label: str, message: str, callback: InputCallback, user_data: Any = None) -> bool:
        """Show ``[label] message`` and route the next line to ``callback``.

        Returns False without touching the prompt if a request is already
        outstanding.
        """
        if self._active:
            log.debug("Input already requested, ignoring", label=label)
            return False

        self._editor.save_prompt()
        self._editor.message(self.format_message(label, message))

        self._active = True
        self._callback = callback
        self._user_data = user_data
        return True

    def release(self, text: str) -> bool:
        """Deliver ``text`` to the pending callback; False when idle."""
        if not self._active:
            return False

        self._active = False
        self._editor.restore_prompt()

        callback, user_data = self._callback, self._user_data
        self._callback = None
        self._user_data = None
        if callback is not None:
            callback(text, user_data)
        return True
