"""Command-line options understood by every shell."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import click
import typer

from cmdshell.exceptions import CmdShellError


class OptionError(CmdShellError):
    """Unrecognised or malformed command-line option."""

    pass


@dataclass
class ShellOptions:
    version: bool = False
    config: str = ""
    verbose: bool = False
    help_exit_code: int | None = None
    args: list[str] = field(default_factory=list)


def _usage_errors() -> tuple[type[Exception], ...]:
    """Base error classes of click and of the click copy typer may bundle."""
    errors: list[type[Exception]] = [click.ClickException]
    for cls in typer.BadParameter.__mro__:
        if cls.__name__ == "ClickException" and cls not in errors:
            errors.append(cls)
    return tuple(errors)


def _build_command():
    app = typer.Typer(add_completion=False)

    @app.command(context_settings={"allow_extra_args": True})
    def shell_options(
        ctx: typer.Context,
        version: bool = typer.Option(False, "--version", "-v", help="Show version information and exit"),
        config: str = typer.Option("", "--config", "-c", help="Path to config file"),
        verbose: bool = typer.Option(False, "--verbose", help="Debug logging"),
    ) -> ShellOptions:
        return ShellOptions(version=version, config=config, verbose=verbose, args=list(ctx.args))

    return typer.main.get_command(app)


def parse_options(argv: Sequence[str]) -> ShellOptions:
    """Parse ``argv`` (program name first).

    Positional arguments are passed through in ``ShellOptions.args`` for the
    embedding application.

    Raises:
        OptionError: on an unknown option or a missing option value
    """
    prog_name = argv[0] if argv else "cmdshell"
    command = _build_command()
    try:
        result = command.main(args=list(argv[1:]), prog_name=prog_name, standalone_mode=False)
    except _usage_errors() as e:
        raise OptionError(e.format_message()) from e

    # --help prints usage and yields an exit code instead of options.
    if isinstance(result, int):
        return ShellOptions(help_exit_code=result)
    return result
