"""
Custom exceptions for the prism test runner.
"""

from typing import Sequence


class PrismError(Exception):
    """Base exception for prism runner errors."""

    pass


class EventDecodeError(PrismError):
    """Raised when a structured-stream line cannot be decoded into an event."""

    def __init__(self, line: str, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"Failed to decode event: {reason} (line: {line[:200]})")


class ExecutionError(PrismError):
    """Raised when the external command could not run to a usable result."""

    pass


class LaunchError(ExecutionError):
    """Raised when the external command cannot be started."""

    def __init__(self, argv: Sequence[str], original_error: Exception):
        self.argv = list(argv)
        self.original_error = original_error
        super().__init__(f"Failed to start command {' '.join(self.argv)!r}: {original_error}")


class CommandExitError(ExecutionError):
    """Raised when the external command exits with an unexpected status."""

    def __init__(self, argv: Sequence[str], exit_code: int):
        self.argv = list(argv)
        self.exit_code = exit_code
        super().__init__(f"Command exited with non-zero status {exit_code}")


class StreamReadError(ExecutionError):
    """Raised when a stream reader stops before its stream is drained."""

    def __init__(self, stream: str, original_error: BaseException):
        self.stream = stream
        self.original_error = original_error
        super().__init__(f"Reading the {stream} stream failed: {original_error!r}")
