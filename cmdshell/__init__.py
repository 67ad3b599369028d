"""cmdshell - event-driven interactive command shell core."""

__version__ = "0.1.0"

from cmdshell.commands import CommandEntry, CommandTable
from cmdshell.config import Config
from cmdshell.shell import Shell

__all__ = ["CommandEntry", "CommandTable", "Config", "Shell", "__version__"]
