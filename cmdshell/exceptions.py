"""Custom exceptions for cmdshell."""


class CmdShellError(Exception):
    """Base exception for cmdshell."""

    pass


class ConfigurationError(CmdShellError):
    """Configuration-related errors."""

    pass


class ShellStateError(CmdShellError):
    """Shell lifecycle used out of order."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Cannot {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class SignalSetupError(CmdShellError):
    """Signal handlers could not be registered with the event loop."""

    def __init__(self, signame: str, message: str):
        super().__init__(f"Failed to install handler for {signame}: {message}")
        self.signame = signame
