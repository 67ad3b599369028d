import io

from cmdshell.commands import CommandEntry
from cmdshell.config import Config, ShellConfig
from cmdshell.editor import LineEditor
from cmdshell.prompt import InputRequest
from cmdshell.shell import Shell


def make_shell() -> Shell:
    shell = Shell(config=Config(shell=ShellConfig(history_file="", colors=False)), output=io.StringIO())
    shell.editor.install("[cmdshell]# ")
    return shell


def test_request_shows_label_and_routes_next_line_to_callback():
    shell = make_shell()
    answers: list[tuple[str, object]] = []
    dispatched: list[str] = []
    shell.set_menu([CommandEntry("scan", dispatched.append)])

    shell.request_input("agent", "Enter PIN code:", lambda text, data: answers.append((text, data)), "dev0")
    assert shell.prompting is True
    assert shell.editor.visible_prompt == "[agent] Enter PIN code: "

    shell.editor.feed("1234\r")

    assert answers == [("1234", "dev0")]
    assert dispatched == []
    assert shell.prompting is False
    assert shell.editor.visible_prompt == "[cmdshell]# "
    assert shell.input_request.user_data is None


def test_second_request_while_prompting_is_ignored():
    shell = make_shell()
    first: list[str] = []
    second: list[str] = []

    shell.request_input("one", "First?", lambda text, data: first.append(text))
    shell.request_input("two", "Second?", lambda text, data: second.append(text))
    assert shell.editor.visible_prompt == "[one] First? "

    assert shell.release_input("yes") is True
    assert first == ["yes"]
    assert second == []
    assert shell.release_input("again") is False


def test_release_while_idle_fails_without_callback():
    shell = make_shell()
    assert shell.release_input("anything") is False


def test_prompt_answers_are_not_added_to_history():
    shell = make_shell()
    shell.set_menu([CommandEntry("pair", lambda arg: None)])

    shell.editor.feed("pair on\r")
    shell.request_input("PIN", "Enter:", lambda text, data: None)
    shell.editor.feed("0000\r")
    shell.editor.feed("pair off\r")

    assert shell.editor.history.entries == ["pair on", "pair off"]


def test_empty_line_does_not_answer_request():
    shell = make_shell()
    answers: list[str] = []
    shell.request_input("confirm", "Type yes:", lambda text, data: answers.append(text))

    shell.editor.feed("\r")
    assert answers == []
    assert shell.prompting is True


def test_callback_may_request_again():
    shell = make_shell()
    answers: list[str] = []

    def first(text: str, data: object) -> None:
        answers.append(text)
        shell.request_input("confirm", "Again:", lambda t, d: answers.append(t))

    shell.request_input("PIN", "Enter:", first)
    shell.editor.feed("1\r")
    assert shell.prompting is True
    assert shell.editor.visible_prompt == "[confirm] Again: "
    shell.editor.feed("2\r")
    assert answers == ["1", "2"]
    assert shell.editor.visible_prompt == "[cmdshell]# "


def test_label_is_red_when_colors_enabled():
    editor = LineEditor(io.StringIO(), lambda line: None)
    request = InputRequest(editor, colors=True)
    assert request.format_message("PIN", "Enter:") == "\x1b[0;91m[PIN]\x1b[0m Enter: "
