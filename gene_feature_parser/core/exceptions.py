#!/usr/bin/env python3

"""
Custom exceptions for the annotation parser.

Provides specific exception types for the few conditions that abort a parse.
Everything else (bad lines, unresolved parents, duplicate IDs) is logged and
reported in the parse summary instead.
"""

class ParserError(Exception):
    """Base exception for all parser-related errors, including misuse of a parser instance."""
    pass


class ParseError(ParserError):
    """Error occurred while reading an annotation source."""

    def __init__(self, message: str, filename: str = "", line_number: int = 0):
        super().__init__(message)
        self.filename = filename
        self.line_number = line_number

    def __str__(self):
        if self.filename and self.line_number:
            return f"Parse error in {self.filename} at line {self.line_number}: {super().__str__()}"
        elif self.filename:
            return f"Parse error in {self.filename}: {super().__str__()}"
        return super().__str__()


class DialectError(ParserError):
    """Sampled content does not look like any supported GFF dialect."""

    def __init__(self, message: str, filename: str = ""):
        super().__init__(message)
        self.filename = filename

    def __str__(self):
        if self.filename:
            return f"Dialect error in {self.filename}: {super().__str__()}"
        return super().__str__()


class ConfigurationError(ParserError):
    """Error in parser configuration."""
    pass


class MemoryError(ParserError):
    """Memory usage exceeded limits."""

    def __init__(self, message: str, current_usage: float, limit: float):
        super().__init__(message)
        self.current_usage = current_usage
        self.limit = limit

    def __str__(self):
        return f"Memory error: {super().__str__()} (current: {self.current_usage:.1f}MB, limit: {self.limit:.1f}MB)"
