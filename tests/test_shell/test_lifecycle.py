import io
import os
import signal

import pytest

import cmdshell.shell as shell_module
from cmdshell.commands import CommandEntry
from cmdshell.config import Config, ShellConfig, set_config
from cmdshell.exceptions import ShellStateError
from cmdshell.logging import configure_logging, set_log_sink
from cmdshell.shell import Shell
from cmdshell.signals import SignalBridge


@pytest.fixture
def shell():
    shell = Shell(config=Config(shell=ShellConfig(history_file="", colors=False)), output=io.StringIO())
    yield shell
    if shell.loop is not None:
        shell.detach()
        shell.loop.close()
        shell.loop = None
    set_log_sink(None)
    set_config(Config(shell=ShellConfig(history_file="")))
    configure_logging()


@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    fds = {"r": read_fd, "w": write_fd}
    yield fds
    for fd in fds.values():
        if fd is not None:
            os.close(fd)


def close_writer(pipe: dict) -> None:
    os.close(pipe["w"])
    pipe["w"] = None


def test_version_flag_prints_version_and_exits_successfully(shell, capsys):
    with pytest.raises(SystemExit) as exc:
        shell.init(["cmdshell", "--version"])
    assert exc.value.code == 0
    assert capsys.readouterr().out == "0.1.0\n"


def test_short_version_flag(shell, capsys):
    with pytest.raises(SystemExit) as exc:
        shell.init(["cmdshell", "-v"])
    assert exc.value.code == 0


def test_unknown_flag_reports_error_and_exits_with_failure(shell, capsys):
    with pytest.raises(SystemExit) as exc:
        shell.init(["cmdshell", "--bogus"])
    assert exc.value.code == 1
    assert "--bogus" in capsys.readouterr().err
    assert shell.loop is None


def test_init_returns_positional_arguments_and_shows_prompt(shell):
    args = shell.init(["cmdshell", "hci0"])
    assert args == ["hci0"]
    assert shell.loop is not None
    assert shell.output.getvalue().endswith("[cmdshell]# ")


def test_set_prompt_is_ignored_before_init(shell):
    shell.set_prompt("[dev]# ")
    assert shell.editor.prompt == ""

    shell.init(["cmdshell"])
    shell.set_prompt("[dev]# ")
    assert shell.editor.prompt == "[dev]# "
    assert shell.output.getvalue().endswith("[dev]# ")


def test_attach_requires_init(shell, pipe):
    with pytest.raises(ShellStateError):
        shell.attach(pipe["r"])


def test_only_one_input_can_be_attached(shell, pipe):
    shell.init(["cmdshell"])
    assert shell.detach() is False
    assert shell.attach(pipe["r"]) is True
    assert shell.attach(pipe["r"]) is False
    assert shell.detach() is True
    assert shell.detach() is False


def test_run_requires_init(shell):
    with pytest.raises(ShellStateError):
        shell.run()


def test_run_processes_input_until_quit_then_tears_down(shell, pipe):
    shell.init(["cmdshell"])
    shell.set_menu([CommandEntry("echo", lambda arg: shell.printf("%s\n", arg), "Echo")])
    os.write(pipe["w"], b"echo hello\nquit\necho never\n")
    shell.attach(pipe["r"])

    shell.run()

    out = shell.output.getvalue()
    assert "hello\n" in out
    assert "never" not in out
    assert shell.input is None
    assert shell.loop is None
    assert shell.editor.installed is False
    assert shell.editor.history.entries == ["echo hello", "quit"]


def test_input_hangup_ends_the_shell(shell, pipe):
    shell.init(["cmdshell"])
    os.write(pipe["w"], b"version\n")
    close_writer(pipe)
    shell.attach(pipe["r"])

    shell.run()

    assert "Version 0.1.0\n" in shell.output.getvalue()
    assert shell.quit_requested is True


def test_ctrl_d_acts_as_quit(shell, pipe):
    shell.init(["cmdshell"])
    os.write(pipe["w"], b"\x04")
    shell.attach(pipe["r"])

    shell.run()

    assert "[cmdshell]# quit\n" in shell.output.getvalue()


def test_pending_request_is_released_on_shutdown(shell, pipe):
    answers: list[str] = []
    shell.init(["cmdshell"])
    shell.set_menu([
        CommandEntry(
            "pair",
            lambda arg: shell.request_input("PIN", "Enter PIN:", lambda text, data: answers.append(text)),
            "Pair device",
        ),
    ])
    os.write(pipe["w"], b"pair\n")
    close_writer(pipe)
    shell.attach(pipe["r"])

    shell.run()

    assert answers == [""]
    assert shell.prompting is False


def test_log_lines_go_through_shell_output_while_running(shell):
    shell.config.logging.level = "INFO"
    shell.init(["cmdshell"])
    shell._on_hangup()
    assert "Input closed" in shell.output.getvalue()


def test_verbose_raises_log_level_on_a_private_copy(shell):
    original = shell.config
    shell.init(["cmdshell", "--verbose"])
    assert shell.config.logging.level == "DEBUG"
    assert original.logging.level == "WARNING"


def test_missing_config_value_exits_with_failure(shell, capsys):
    with pytest.raises(SystemExit) as exc:
        shell.init(["cmdshell", "--config"])
    assert exc.value.code == 1
    assert "--config" in capsys.readouterr().err


def test_repeated_termination_signals_tear_down_once(shell, pipe, monkeypatch):
    bridges: list[SignalBridge] = []

    class RecordingBridge(SignalBridge):
        def __init__(self, owner):
            super().__init__(owner)
            bridges.append(self)

    monkeypatch.setattr(shell_module, "SignalBridge", RecordingBridge)

    detaches: list[bool] = []
    detach = shell.detach

    def counting_detach():
        detaches.append(True)
        return detach()

    monkeypatch.setattr(shell, "detach", counting_detach)

    shell.init(["cmdshell"])
    shell.attach(pipe["r"])
    shell.loop.call_soon(lambda: bridges[0].handle(signal.SIGTERM))
    shell.loop.call_soon(lambda: bridges[0].handle(signal.SIGTERM))

    shell.run()
    shell._teardown(bridges[0])

    assert bridges[0].terminated is True
    assert bridges[0].installed is False
    assert detaches == [True]
    assert shell.loop is None
