"""Demo entry point: a shell with a small example menu."""

import sys
from typing import Any

from cmdshell.colors import COLOR_BLUE, COLOR_GREEN, COLOR_RED, COLOR_YELLOW, paint
from cmdshell.commands import CommandEntry, CommandTable
from cmdshell.logging import log
from cmdshell.shell import Shell

COLORS = {
    "blue": COLOR_BLUE,
    "green": COLOR_GREEN,
    "red": COLOR_RED,
    "yellow": COLOR_YELLOW,
}


def build_demo_menu(shell: Shell) -> CommandTable:
    """Example commands exercising output, prompts and completion."""
    prompt_color = {"name": ""}

    def cmd_echo(arg: str) -> None:
        shell.printf("%s\n", arg)

    def cmd_hexdump(arg: str) -> None:
        if not arg:
            shell.printf("Missing text argument\n")
            return
        shell.hexdump(arg.encode("utf-8"))

    def pin_entered(text: str, user_data: Any) -> None:
        if not text.isdigit():
            shell.printf("Invalid PIN for %s\n", user_data)
            return
        shell.printf("PIN accepted for %s (%d digits)\n", user_data, len(text))

    def cmd_pin(arg: str) -> None:
        device = arg or "device"
        shell.request_input(device, "Enter PIN code:", pin_entered, device)

    def cmd_color(arg: str) -> None:
        if arg not in COLORS:
            shell.printf("Unknown color: %s\n", arg or "(none)")
            return
        prompt_color["name"] = arg
        shell.set_prompt(paint(shell.config.shell.prompt, COLORS[arg], shell.colors))

    def color_generator(text: str, state: int) -> str | None:
        matches = [name for name in COLORS if name.startswith(text)]
        if state < len(matches):
            return matches[state]
        return None

    def color_display(substitution: str, matches: list[str], longest: int) -> None:
        shell.printf("\n")
        for name in matches:
            marker = "*" if name == prompt_color["name"] else " "
            shell.printf("%s %s\n", marker, paint(name, COLORS[name], shell.colors))

    return CommandTable([
        CommandEntry("echo", cmd_echo, "Print the argument", arg_spec="<text>"),
        CommandEntry("hexdump", cmd_hexdump, "Hex dump of the argument bytes", arg_spec="<text>"),
        CommandEntry("pin", cmd_pin, "Ask for a PIN code", arg_spec="[device]"),
        CommandEntry(
            "color",
            cmd_color,
            "Change the prompt color",
            arg_spec="<name>",
            generator=color_generator,
            display_hook=color_display,
        ),
    ])


def main() -> None:
    """Start the demo shell on standard input."""
    shell = Shell()
    shell.init(sys.argv)
    shell.set_menu(build_demo_menu(shell))
    shell.attach(sys.stdin.fileno())
    try:
        shell.run()
    except KeyboardInterrupt:
        log.info("Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
