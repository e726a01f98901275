"""Error types raised while parsing and executing scripts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def _with_location(message: str, line_number: Optional[int], source: Optional[Path]) -> str:
    if line_number is None:
        return message
    if source is not None:
        return f"{source.name} line {line_number}: {message}"
    return f"line {line_number}: {message}"


class ScriptError(Exception):
    """Base error for script parsing and execution.

    Attributes:
        message: Human-readable error message
        line_number: 1-based source line, when known
        source: Script file the line came from, when known
    """

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        source: Optional[Path] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.source = source

    def __str__(self) -> str:
        return _with_location(self.message, self.line_number, self.source)


class ParseError(ScriptError):
    """Malformed command structure."""


class MalformedCommandError(ParseError):
    """A command line with no command token."""


class ResolutionError(ScriptError):
    """A dotted path did not resolve in the values or locators dictionary."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path


class CapabilityLoadError(ResolutionError):
    """A capability module could not be found or imported."""


class MissingArgumentError(ScriptError):
    """A built-in action is missing required positional arguments."""


class UnknownCapabilityError(ScriptError):
    """A capability or assertion check does not provide the requested name."""


class DriverError(ScriptError):
    """The automation session reported an error."""


class ElementNotFoundError(DriverError):
    """No element matched a locator (immediately or within the wait timeout)."""


class AssertionFailure(AssertionError):
    """An assertion check reported a mismatch."""

    def __init__(
        self,
        message: str,
        actual=None,
        expected=None,
        line_number: Optional[int] = None,
        source: Optional[Path] = None,
    ):
        super().__init__(message)
        self.message = message
        self.actual = actual
        self.expected = expected
        self.line_number = line_number
        self.source = source

    def __str__(self) -> str:
        return _with_location(self.message, self.line_number, self.source)
