"""
Exception types for the assist pipeline run tracker.
"""

from typing import Any, Optional


class AssistError(Exception):
    """Base class for all assist run errors."""
    pass


class MalformedEventError(AssistError):
    """Raised when a wire event does not have the {type, timestamp, data} shape."""
    pass


class InvalidOptionsError(AssistError):
    """Raised when launch options do not match the requested start stage."""
    pass


class SequencingViolation(AssistError):
    """
    An event arrived out of the expected run order.

    Never raised by the reducer. Instances are handed to the anomaly sink
    so callers decide whether to log, count or ignore them. wait_for_run
    raises one when the run ends before run-start.
    """

    def __init__(self, message: str, event: Optional[Any] = None) -> None:
        super().__init__(message)
        self.event = event


class TransportError(AssistError):
    """Raised when the transport rejects a call or loses its connection."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class AuthenticationError(TransportError):
    """Raised when the server refuses the access token."""
    pass
