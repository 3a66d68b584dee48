#!/usr/bin/env python3

"""
Gene Feature Parser

Reads GFF3, GTF and generic GFF annotation files and rebuilds the
gene -> transcript -> exon/CDS/UTR/codon hierarchy they describe, tolerating
out-of-order records, duplicated identifiers and implicit GTF ancestors.

Modules:
- core: Tokenizer, dialect detection, record converters, registry, assembler and parser driver
- utils: Performance monitoring
- tests: Unit test suite
"""

__version__ = "1.0.0"
__author__ = "Gene Feature Parser Team"

from .core.data_structures import Feature, ParseSummary
from .core.dialects import Dialect
from .core.exceptions import (
    ParserError, ParseError, DialectError, ConfigurationError, MemoryError
)
from .core.config import ParserConfig, load_config
from .core.parsers import AnnotationParser

__all__ = [
    # Parser driver
    'AnnotationParser',
    # Data structures
    'Feature', 'ParseSummary', 'Dialect',
    # Exceptions
    'ParserError', 'ParseError', 'DialectError', 'ConfigurationError', 'MemoryError',
    # Configuration
    'ParserConfig', 'load_config'
]
