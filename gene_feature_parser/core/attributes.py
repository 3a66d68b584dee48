#!/usr/bin/env python3

"""
Column 9 handling: attribute splitting for each GFF dialect and the
percent-escaping used by GFF3.
"""

import re
import logging
from typing import Dict, List
from urllib.parse import unquote_plus

# Characters that must be escaped for a value to survive a GFF3 round trip
_ESCAPE_PATTERN = re.compile(r'[\t\n\r%&=;,+ ]')


def escape(value: str) -> str:
    """Percent-encode the characters reserved by GFF3 attribute syntax."""
    return _ESCAPE_PATTERN.sub(lambda m: f"%{ord(m.group(0)):02X}", value)


def unescape(value: str) -> str:
    """Decode '+' as space and '%XX' sequences as the byte XX."""
    return unquote_plus(value)


def _add_value(attributes: Dict[str, List[str]], key: str, value: str) -> None:
    attributes.setdefault(key, []).append(value)


def parse_gff3_attributes(attr_string: str) -> Dict[str, List[str]]:
    """Parse 'key=value;key=value' text. Values stay escaped and comma lists unsplit."""
    attributes: Dict[str, List[str]] = {}
    for attr in re.split(r';\s?', attr_string.strip().rstrip(';')):
        if not attr:
            continue
        if '=' not in attr:
            logging.debug(f"Skipping malformed GFF3 attribute: {attr!r}")
            continue
        key, value = attr.split('=', 1)
        _add_value(attributes, key.strip(), value)
    return attributes


def parse_gtf_attributes(attr_string: str) -> Dict[str, List[str]]:
    """Parse 'key "value"; key "value"' text. Repeated keys accumulate."""
    attributes: Dict[str, List[str]] = {}
    for attr in re.split(r';\s?', attr_string.strip().rstrip(';')):
        attr = attr.strip()
        if not attr:
            continue
        parts = attr.split(None, 1)
        if len(parts) != 2:
            logging.debug(f"Skipping malformed GTF attribute: {attr!r}")
            continue
        key, value = parts
        value = value.replace('"', '').strip()
        if not value:
            logging.debug(f"Skipping empty GTF attribute: {attr!r}")
            continue
        _add_value(attributes, key, value)
    return attributes


def parse_generic_attributes(attr_string: str) -> Dict[str, List[str]]:
    """Parse loose 'tag value; tag value' groups with no reserved keys."""
    attributes: Dict[str, List[str]] = {}
    for group in re.split(r'\s*;\s*', attr_string.strip()):
        parts = group.split(None, 1)
        if len(parts) != 2:
            if group:
                logging.debug(f"Skipping malformed attribute group: {group!r}")
            continue
        tag, value = parts
        _add_value(attributes, tag, value.strip())
    return attributes
