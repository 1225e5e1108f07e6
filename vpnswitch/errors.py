"""Exceptions raised while maintaining the daemon's log file."""

from __future__ import annotations


class LoggerError(Exception):
    """Base class for every failure reported by the log file manager."""


class DateTimeParseError(LoggerError, ValueError):
    """The creation timestamp at the top of the log file could not be read."""

    def __init__(self, detail: object) -> None:
        self.detail = str(detail)
        super().__init__(f"Error parsing NaiveDateTime: {self.detail}")


class MissingPrefixError(DateTimeParseError):
    """The first line of the log file lacks the creation-time prefix."""

    def __init__(self) -> None:
        super().__init__("Missing DateTime Prefix")