"""Attachable input descriptor registered with the event loop."""

from __future__ import annotations

import asyncio
import codecs
import os
import termios
import tty
from collections.abc import Callable

from cmdshell.logging import get_logger

log = get_logger(__name__)

READ_SIZE = 1024


class InputSource:
    """Reads bytes from ``fd`` when the loop reports it readable.

    Decoded text goes to ``on_text``; end of file or a read error goes to
    ``on_hangup``. A TTY is switched to cbreak mode while attached so
    keystrokes arrive one at a time with echo off, and its previous mode is
    restored on close. The descriptor itself is not closed.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        fd: int,
        on_text: Callable[[str], None],
        on_hangup: Callable[[], None],
    ):
        self.loop = loop
        self.fd = fd
        self._on_text = on_text
        self._on_hangup = on_hangup
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._saved_mode: list | None = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if self._open:
            return
        if os.isatty(self.fd):
            try:
                self._saved_mode = termios.tcgetattr(self.fd)
                tty.setcbreak(self.fd)
            except termios.error as e:
                log.warning("Failed to set terminal mode", fd=self.fd, error=str(e))
                self._saved_mode = None
        try:
            self.loop.add_reader(self.fd, self._on_readable)
        except Exception:
            self._restore_mode()
            raise
        self._open = True

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        try:
            self.loop.remove_reader(self.fd)
        finally:
            self._restore_mode()

    def _restore_mode(self) -> None:
        if self._saved_mode is None:
            return
        try:
            termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved_mode)
        except termios.error as e:
            log.warning("Failed to restore terminal mode", fd=self.fd, error=str(e))
        finally:
            self._saved_mode = None

    def _on_readable(self) -> None:
        try:
            data = os.read(self.fd, READ_SIZE)
        except OSError as e:
            log.debug("Input read failed", fd=self.fd, error=str(e))
            data = b""

        if not data:
            self._on_hangup()
            return

        text = self._decoder.decode(data)
        if text:
            self._on_text(text)
