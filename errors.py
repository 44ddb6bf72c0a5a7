"""Exception types raised by the localization checker."""

from typing import Any


class CheckerError(Exception):
    """Base error carrying the operation context needed to diagnose a failure."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = {key: value for key, value in context.items() if value is not None}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class AcquisitionError(CheckerError):
    """A repository could not be cloned or the SSH agent could not be prepared."""


class FilesystemError(CheckerError):
    """A required path is missing or unreadable."""


class ParseError(CheckerError):
    """A translation file is not a valid key-value document."""
