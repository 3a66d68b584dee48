#!/usr/bin/env python3

"""
Core module for the gene feature parser.

Contains the feature model, line tokenizer, dialect detection, per-dialect
record converters, identifier registry, hierarchy assembler and the parser
driver that ties them together.
"""

from .data_structures import Feature, ParseSummary
from .exceptions import (
    ParserError, ParseError, DialectError, ConfigurationError, MemoryError
)
from .config import ParserConfig, load_config
from .dialects import Dialect
from .parsers import AnnotationParser

__all__ = [
    'Feature', 'ParseSummary', 'Dialect',
    'ParserError', 'ParseError', 'DialectError', 'ConfigurationError', 'MemoryError',
    'ParserConfig', 'load_config', 'AnnotationParser'
]
