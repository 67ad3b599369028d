import io

from cmdshell.config import Config, ShellConfig
from cmdshell.main import build_demo_menu
from cmdshell.shell import Shell


def make_shell() -> Shell:
    shell = Shell(config=Config(shell=ShellConfig(history_file="", colors=False)), output=io.StringIO())
    shell.set_menu(build_demo_menu(shell))
    shell.editor.install("> ")
    return shell


def test_echo_prints_argument():
    shell = make_shell()
    shell.editor.feed("echo hello world\r")
    assert "hello world\n" in shell.output.getvalue()


def test_hexdump_requires_argument():
    shell = make_shell()
    shell.dispatch("hexdump")
    assert "Missing text argument\n" in shell.output.getvalue()


def test_hexdump_dumps_argument_bytes():
    shell = make_shell()
    shell.dispatch("hexdump AB")
    assert "  41 42" in shell.output.getvalue()


def test_pin_prompt_routes_next_line_to_callback():
    shell = make_shell()
    shell.editor.feed("pin hci0\r")
    assert shell.prompting is True
    assert shell.editor.visible_prompt.startswith("[hci0] Enter PIN code:")

    shell.editor.feed("1234\r")

    assert shell.prompting is False
    assert "PIN accepted for hci0 (4 digits)\n" in shell.output.getvalue()
    assert shell.editor.visible_prompt == "> "
    assert shell.editor.history.entries == ["pin hci0"]


def test_pin_rejects_non_digits():
    shell = make_shell()
    shell.editor.feed("pin\r")
    shell.editor.feed("abcd\r")
    assert "Invalid PIN for device\n" in shell.output.getvalue()


def test_color_arguments_complete_from_generator():
    shell = make_shell()
    assert shell.completion.complete("r", 6, "color r") == ["red"]
    assert shell.completion.complete("", 6, "color ") == ["blue", "green", "red", "yellow"]


def test_color_display_hook_marks_current_color():
    shell = make_shell()
    shell.dispatch("color green")
    entry = shell.menu.find("color")

    entry.display_hook("", ["blue", "green"], 5)

    out = shell.output.getvalue()
    assert "  blue\n" in out
    assert "* green\n" in out


def test_unknown_color_is_reported():
    shell = make_shell()
    shell.dispatch("color purple")
    assert "Unknown color: purple\n" in shell.output.getvalue()
