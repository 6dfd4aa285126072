# nanocode/errors.py
from typing import Optional


class NanocodeError(Exception):
    """Base class for every error raised by nanocode."""


class ConfigurationError(NanocodeError):
    """Missing credentials or an unusable configuration value."""


class TransportError(NanocodeError):
    """The model endpoint could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(NanocodeError):
    """A single stream frame could not be decoded."""


class ToolArgumentError(NanocodeError):
    """Tool arguments are not valid JSON or do not match the tool's schema."""


class ToolExecutionError(NanocodeError):
    """A tool failed while touching the filesystem or running a process."""


class AmbiguousEditError(ToolExecutionError):
    def __init__(self, occurrences: int):
        super().__init__(f"old_string appears {occurrences} times, use all=true")
        self.occurrences = occurrences
