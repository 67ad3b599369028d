"""Interactive command shell driven by an asyncio event loop.

``Shell`` owns all shell state: the command tables, the line editor, the
pending input request, the attached input source and the event loop. An
embedding application typically does::

    shell = Shell()
    shell.init(sys.argv)
    shell.set_menu(menu)
    shell.attach(sys.stdin.fileno())
    shell.run()
"""

from __future__ import annotations

import asyncio
import os
import sys
from collections.abc import Iterable, Sequence
from typing import Any, TextIO

from cmdshell.colors import COLOR_HIGHLIGHT, paint
from cmdshell.commands import CommandEntry, CommandRegistry, CommandTable
from cmdshell.completion import CompletionEngine
from cmdshell.config import Config, get_config, set_config
from cmdshell.editor import History, LineEditor
from cmdshell.exceptions import ConfigurationError, ShellStateError
from cmdshell.hexdump import hexdump_lines
from cmdshell.input_source import InputSource
from cmdshell.logging import configure_logging, ensure_logging_configured, get_logger, set_log_sink
from cmdshell.options import OptionError, parse_options
from cmdshell.prompt import InputCallback, InputRequest
from cmdshell.signals import SignalBridge

log = get_logger(__name__)

CMD_LENGTH = 48


def _stream_is_tty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


class Shell:
    """Line-oriented command shell."""

    def __init__(self, config: Config | None = None, output: TextIO | None = None):
        self.output = output if output is not None else sys.stdout
        self.registry = CommandRegistry(self._default_commands())
        self.completion = CompletionEngine(self.registry)
        self.editor = LineEditor(self.output, self._on_line, self.completion, History())
        self.input_request = InputRequest(self.editor)
        self.input: InputSource | None = None
        self.loop: asyncio.AbstractEventLoop | None = None
        self.quit_requested = False
        self._torn_down = False
        self._apply_config(config if config is not None else get_config())
        ensure_logging_configured()

    def _apply_config(self, config: Config) -> None:
        self.config = config
        self.colors = (
            config.shell.colors
            and not os.environ.get("NO_COLOR")
            and _stream_is_tty(self.output)
        )
        self.editor.erase_empty_line = config.shell.erase_empty_line
        self.editor.history.max_length = config.shell.history_length
        self.input_request.colors = self.colors

    @property
    def menu(self) -> CommandTable | None:
        return self.registry.menu

    # -- builtin commands -------------------------------------------------

    def _default_commands(self) -> CommandTable:
        return CommandTable([
            CommandEntry("version", self._cmd_version, "Display version"),
            CommandEntry("quit", self._cmd_quit, "Quit program"),
            CommandEntry("exit", self._cmd_quit, "Quit program"),
            CommandEntry("help", self._cmd_help, "Display help about this program"),
        ])

    def _cmd_version(self, arg: str) -> None:
        from cmdshell import __version__
        self.printf("Version %s\n", __version__)

    def _cmd_quit(self, arg: str) -> None:
        self.quit()

    def _cmd_help(self, arg: str) -> None:
        self.print_menu()

    def _print_text(self, text: str) -> None:
        self.printf("%s\n", paint(text, COLOR_HIGHLIGHT, self.colors))

    def print_menu(self) -> None:
        """Print menu commands, then the defaults, as aligned columns."""
        self._print_text("Available commands:")
        self._print_text("-------------------")
        for table in self.registry.tables():
            for entry in table:
                width = max(0, CMD_LENGTH - len(entry.name))
                head = f"{entry.name} {(entry.arg_spec or ''):<{width}} "
                self.printf("%s%s\n", paint(head, COLOR_HIGHLIGHT, self.colors), entry.description)

    # -- dispatch ---------------------------------------------------------

    def dispatch(self, line: str) -> None:
        """Run the command named by the first word of ``line``."""
        cmd, _, arg = line.lstrip(" ").partition(" ")
        if not cmd:
            return
        if arg.endswith(" "):
            arg = arg[:-1]

        entry = self.registry.resolve(cmd)
        if entry is None:
            self._print_text("Invalid command")
            return

        log.debug("Executing command", command=cmd)
        try:
            entry.handler(arg)
        except Exception as e:
            log.error("Command failed", command=cmd, error=str(e))
            self._print_text(f"Command {cmd} failed: {e}")

    def _on_line(self, line: str | None) -> None:
        if line is None:
            # End of input acts as an implicit quit.
            self.editor.insert_text("quit")
            self.editor.redisplay()
            self.editor.crlf()
            self.quit()
            return

        if not line:
            return

        if self.release_input(line):
            return

        self.editor.history.add(line)
        self.dispatch(line)

    # -- output -----------------------------------------------------------

    def printf(self, fmt: str, *args: Any) -> None:
        """Write formatted text without disturbing the line being edited."""
        text = fmt % args if args else fmt
        with self.editor.suspended():
            self.editor.write(text)

    def hexdump(self, data: bytes | bytearray | memoryview) -> None:
        for line in hexdump_lines(data):
            self.printf("%s\n", line)

    def _print_log_line(self, line: str) -> None:
        self.printf("%s\n", line)

    # -- input requests ---------------------------------------------------

    def request_input(self, label: str, message: str, callback: InputCallback, user_data: Any = None) -> None:
        """Ask the user one question; the next line goes to ``callback``.

        Ignored while another request is outstanding.
        """
        self.input_request.request(label, message, callback, user_data)

    def release_input(self, text: str) -> bool:
        """Answer the outstanding request with ``text``; False if none."""
        return self.input_request.release(text)

    @property
    def prompting(self) -> bool:
        return self.input_request.active

    # -- registration -----------------------------------------------------

    def set_menu(self, menu: CommandTable | Iterable[CommandEntry] | None) -> bool:
        """Install the custom command table; only the first call succeeds."""
        if menu is not None and not isinstance(menu, CommandTable):
            menu = CommandTable(menu)
        if not self.registry.set_menu(menu):
            log.warning("Menu not set", reason="already set" if self.menu else "empty menu")
            return False
        return True

    def set_prompt(self, prompt: str) -> None:
        if self.loop is None:
            return
        self.editor.set_prompt(prompt)

    def attach(self, fd: int) -> bool:
        """Read commands from ``fd``; False if an input is already attached.

        Raises:
            ShellStateError: if called before ``init()``
        """
        if self.input is not None:
            return False
        if self.loop is None:
            raise ShellStateError("attach input", "init() has not been called")

        source = InputSource(self.loop, fd, self.editor.feed, self._on_hangup)
        source.open()
        self.input = source
        log.debug("Input attached", fd=fd)
        return True

    def detach(self) -> bool:
        if self.input is None:
            return False
        source, self.input = self.input, None
        source.close()
        log.debug("Input detached", fd=source.fd)
        return True

    def _on_hangup(self) -> None:
        log.info("Input closed")
        self.quit()

    # -- lifecycle --------------------------------------------------------

    def init(self, argv: Sequence[str] | None = None) -> list[str]:
        """Parse options, create the event loop and show the prompt.

        Exits the process after ``--version`` (status 0) or on an option
        error (status 1). Returns the remaining positional arguments.
        """
        argv = list(sys.argv if argv is None else argv)
        try:
            options = parse_options(argv)
        except OptionError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)

        if options.help_exit_code is not None:
            sys.exit(options.help_exit_code)

        if options.version:
            from cmdshell import __version__
            print(__version__)
            sys.exit(0)

        config = self.config
        if options.config:
            try:
                config = Config.from_yaml(options.config)
            except (ConfigurationError, OSError, ValueError) as e:
                print(f"Failed to load config: {e}", file=sys.stderr)
                sys.exit(1)
        if options.verbose:
            config = config.model_copy(deep=True)
            config.logging.level = "DEBUG"
        set_config(config)
        self._apply_config(config)

        set_log_sink(self._print_log_line)
        configure_logging()

        history_path = config.resolved_history_path()
        if history_path is not None:
            self.editor.history.load(history_path)

        self.loop = asyncio.new_event_loop()
        self.quit_requested = False
        self._torn_down = False
        self.editor.install(config.shell.prompt)
        return options.args

    def quit(self) -> None:
        """Ask the event loop to stop after the current callback."""
        self.quit_requested = True
        # Keystrokes already read but not yet processed are dropped.
        self.editor.remove()
        log.debug("Quit requested")
        if self.loop is not None:
            self.loop.stop()

    def run(self) -> None:
        """Run until quit, then tear the shell down."""
        if self.loop is None:
            raise ShellStateError("run", "init() has not been called")

        bridge = SignalBridge(self)
        bridge.install(self.loop)
        try:
            self.loop.run_forever()
        finally:
            self._teardown(bridge)

    def _teardown(self, bridge: SignalBridge) -> None:
        if self._torn_down:
            return
        self._torn_down = True

        self.release_input("")
        self.detach()
        bridge.uninstall()

        self.editor.message("")
        self.editor.clear_message()
        self.editor.remove()

        set_log_sink(None)
        configure_logging()

        loop, self.loop = self.loop, None
        if loop is not None:
            loop.close()
