"""ANSI colour codes used by the shell."""

COLOR_OFF = "\x1b[0m"
COLOR_RED = "\x1b[0;91m"
COLOR_GREEN = "\x1b[0;92m"
COLOR_YELLOW = "\x1b[0;93m"
COLOR_BLUE = "\x1b[0;94m"
COLOR_HIGHLIGHT = "\x1b[1;39m"


def paint(text: str, color: str, enabled: bool = True) -> str:
    if not enabled:
        return text
    return f"{color}{text}{COLOR_OFF}"
