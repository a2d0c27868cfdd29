"""
Error types for Wisp tokenizing, parsing, configuration and execution.

Every failure raised while a program runs derives from ``WispRuntimeError``.
There is no catch construct in the language, so these propagate to the
driver, which is responsible for presenting them.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class WispError(Exception):
    """Base exception for all Wisp errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(WispError):
    """
    Raised when program text cannot be parsed.

    Examples:
    - Unexpected tokens
    - Assignment to something that is not a name or field
    - Reference to an undefined class in a constructor call
    """

    pass


class LexError(ParseError):
    """
    Raised when program text cannot be tokenized.

    Examples:
    - Unterminated string literal
    """

    pass


class ConfigError(WispError):
    """Raised when ``wisp.toml`` cannot be read."""

    pass


class WispRuntimeError(WispError):
    """Base class for failures during program execution."""

    pass


class UndefinedNameError(WispRuntimeError):
    """Raised when a variable or instance field is read before being bound."""

    def __init__(self, name: str, message: str | None = None):
        self.name = name
        super().__init__(message or f"Name '{name}' is not defined")


class OperatorTypeError(WispRuntimeError):
    """Raised when an operator is applied to unsupported operand types."""

    def __init__(self, operator: str, left: str, right: str):
        self.operator = operator
        super().__init__(f"Unsupported operand type(s) for {operator}: '{left}' and '{right}'")


class DivisionError(WispRuntimeError):
    """Raised when the divisor of ``/`` is not a positive number."""

    pass


class DispatchError(WispRuntimeError):
    """
    Raised when a method cannot be dispatched.

    Examples:
    - No method with the requested name and argument count
    - Method call or field access on something that is not an instance
    """

    def __init__(self, message: str, method: str | None = None, arity: int | None = None):
        self.method = method
        self.arity = arity
        super().__init__(message)


class ComparisonError(WispRuntimeError):
    """Raised when two values have no equality or ordering rule."""

    pass


class ReturnOutsideMethodError(WispRuntimeError):
    """Raised when ``return`` unwinds past the outermost statement."""

    pass


@dataclass
class ErrorContext:
    """
    Source location of an error.

    Attributes:
        file: Path to the source file, or None for in-memory text
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line showing the error location
    """

    file: Path | None
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "prog.wisp:10:5"
        """
        location = f"{self.file or '<input>'}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format the offending line with a marker under the error column."""
        prefix = f"{self.line:4d} | "
        marker = " " * (len(prefix) + self.column - 1) + "^^^"
        return f"{prefix}{self.snippet}\n{marker}"


def make_parse_error(
    message: str,
    file: Path | None,
    line: int,
    column: int,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return ParseError(message, context)


def make_lex_error(
    message: str,
    file: Path | None,
    line: int,
    column: int,
    snippet: str | None = None,
) -> LexError:
    """Helper to create a LexError with context."""
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return LexError(message, context)
