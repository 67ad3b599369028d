"""Delivery of SIGINT/SIGTERM as ordinary event-loop callbacks."""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import TYPE_CHECKING

from cmdshell.exceptions import SignalSetupError
from cmdshell.logging import get_logger

if TYPE_CHECKING:
    from cmdshell.shell import Shell

log = get_logger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalBridge:
    """Maps interrupt and termination signals onto shell actions.

    Handlers are registered with ``loop.add_signal_handler`` so they run
    between other callbacks, never in the middle of one.
    """

    def __init__(self, shell: Shell):
        self._shell = shell
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        self.terminated = False

    @property
    def installed(self) -> bool:
        return bool(self._installed)

    def install(self, loop: asyncio.AbstractEventLoop) -> bool:
        """Register the handlers; on failure report to stderr and undo."""
        if self._installed:
            return True
        self._loop = loop
        try:
            for signo in HANDLED_SIGNALS:
                try:
                    loop.add_signal_handler(signo, self.handle, signo)
                except (NotImplementedError, RuntimeError, ValueError, OSError) as e:
                    raise SignalSetupError(signal.Signals(signo).name, str(e)) from e
                self._installed.append(signal.Signals(signo))
        except SignalSetupError as e:
            print(str(e), file=sys.stderr)
            log.warning("Signal handling disabled", error=str(e))
            self.uninstall()
            return False
        return True

    def uninstall(self) -> None:
        if self._loop is None:
            return
        while self._installed:
            signo = self._installed.pop()
            try:
                self._loop.remove_signal_handler(signo)
            except (RuntimeError, ValueError) as e:
                log.debug("Failed to remove signal handler", signal=signo.name, error=str(e))

    def handle(self, signo: int) -> None:
        if signo == signal.SIGINT and self._shell.input is not None:
            self._clear_line()
            return
        # SIGINT with no input attached ends the shell like SIGTERM.
        if signo in (signal.SIGINT, signal.SIGTERM):
            self._terminate()

    def _clear_line(self) -> None:
        editor = self._shell.editor
        editor.replace_line("")
        editor.crlf()
        editor.redisplay()

    def _terminate(self) -> None:
        if self.terminated:
            return
        self.terminated = True
        log.info("Termination requested by signal")
        editor = self._shell.editor
        editor.replace_line("")
        editor.crlf()
        self._shell.quit()
