#!/usr/bin/env python3

"""
Line classification for nine-column annotation files.

Every raw line becomes a ParsedLine tagged with its LineKind; the parser
driver decides what to do with each kind.
"""

import re
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Tuple

GFF_COLUMN_COUNT = 9

_GFF_VERSION = re.compile(r'^##gff-version\s+(\S+)', re.IGNORECASE)
_SEQUENCE_REGION = re.compile(r'^##sequence.region', re.IGNORECASE)


class LineKind(Enum):
    BLANK = "blank"
    COMMENT = "comment"
    CLOSE_PRAGMA = "close_pragma"
    SEQUENCE_REGION = "sequence_region"
    SEQUENCE_HEADER = "sequence_header"
    DATA = "data"
    INVALID = "invalid"


@dataclass
class ParsedLine:
    """A classified input line."""
    kind: LineKind
    text: str = ""
    fields: Tuple[str, ...] = ()
    seq_id: Optional[str] = None
    length: Optional[int] = None
    gff_version: Optional[str] = None
    reason: str = ""


def classify_line(line: str) -> ParsedLine:
    """Classify one raw line (trailing newline optional)."""
    text = line.rstrip('\r\n')

    if not text.strip():
        return ParsedLine(LineKind.BLANK)

    if text.startswith('#'):
        if text.rstrip() == '###':
            return ParsedLine(LineKind.CLOSE_PRAGMA, text)

        if _SEQUENCE_REGION.match(text):
            return _classify_sequence_region(text)

        version = _GFF_VERSION.match(text)
        return ParsedLine(LineKind.COMMENT, text,
                          gff_version=version.group(1) if version else None)

    if text.startswith('>'):
        return ParsedLine(LineKind.SEQUENCE_HEADER, text)

    fields = tuple(text.split('\t'))
    if len(fields) != GFF_COLUMN_COUNT:
        return ParsedLine(LineKind.INVALID, text,
                          reason=f"expected {GFF_COLUMN_COUNT} tab-separated fields, found {len(fields)}")
    return ParsedLine(LineKind.DATA, text, fields=fields)


def _classify_sequence_region(text: str) -> ParsedLine:
    """Parse '##sequence-region <id> <start> <end>'; only the end coordinate is kept."""
    parts = text.split()
    if len(parts) >= 4 and parts[2].isdigit() and parts[3].isdigit():
        return ParsedLine(LineKind.SEQUENCE_REGION, text, seq_id=parts[1], length=int(parts[3]))
    return ParsedLine(LineKind.INVALID, text, reason="malformed sequence-region pragma")
