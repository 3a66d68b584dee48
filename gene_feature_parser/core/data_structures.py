#!/usr/bin/env python3

"""
Core data structures for the annotation parser.

Defines the Feature class that every dialect converts into, and the
ParseSummary returned after a whole-file parse.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .attributes import escape

VALID_STRANDS = ('+', '-', '.')
VALID_PHASES = (0, 1, 2)


@dataclass(eq=False)
class Feature:
    """One annotated genomic interval with its attributes and materialized children.

    Parents own their children. A child only remembers the identifier of
    the parent that owns it (``owner_id``), so the tree holds no reference
    cycles. A child claimed by a second parent is listed there under
    ``shared_children`` instead of being owned twice.
    """
    seq_id: str
    start: int
    end: int
    type: str
    source: str = "."
    strand: str = "."
    score: Optional[float] = None
    phase: Optional[int] = None
    primary_id: str = ""
    display_name: Optional[str] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)
    parent_ids: List[str] = field(default_factory=list)
    children: List['Feature'] = field(default_factory=list)
    shared_children: List['Feature'] = field(default_factory=list)
    owner_id: Optional[str] = None
    autogenerated: bool = False

    def __post_init__(self):
        """Validate feature data after initialization."""
        if self.start > self.end:
            raise ValueError(f"Invalid feature coordinates: {self.start}-{self.end}")
        if self.strand not in VALID_STRANDS:
            # '?' and anything else unrecognized means unknown
            self.strand = '.'
        if self.phase is not None and self.phase not in VALID_PHASES:
            raise ValueError(f"Invalid phase: {self.phase}")

    def __repr__(self):
        return (f"{self.__class__.__name__}({self.type} {self.primary_id!r} "
                f"{self.seq_id}:{self.start}-{self.end}{self.strand})")

    @property
    def length(self) -> int:
        """Get feature length."""
        return self.end - self.start + 1

    @property
    def subfeatures(self) -> List['Feature']:
        """Owned children followed by shared ones."""
        return self.children + self.shared_children

    def overlaps(self, other: 'Feature') -> bool:
        """Check if this feature overlaps another on the same sequence."""
        if other is None or self.seq_id != other.seq_id:
            return False
        return not (self.start > other.end or self.end < other.start)

    def contains(self, other: 'Feature') -> bool:
        """Check if this feature fully contains another on the same sequence."""
        if other is None or self.seq_id != other.seq_id:
            return False
        return self.start <= other.start and other.end <= self.end

    def expand_to(self, other: 'Feature') -> bool:
        """Grow this span to cover another feature. Returns True if it changed."""
        changed = False
        if other.start < self.start:
            self.start = other.start
            changed = True
        if other.end > self.end:
            self.end = other.end
            changed = True
        return changed

    def add_child(self, child: 'Feature') -> bool:
        """Attach a child. Returns True if this feature became its owner."""
        if child is self or child in self.children or child in self.shared_children:
            return False
        if child.owner_id is None:
            child.owner_id = self.primary_id
            self.children.append(child)
            return True
        self.shared_children.append(child)
        return False

    def has_tag(self, tag: str) -> bool:
        return tag in self.attributes

    def get_tag_values(self, tag: str) -> List[str]:
        return list(self.attributes.get(tag, []))

    def add_tag_value(self, tag: str, *values: str) -> None:
        self.attributes.setdefault(tag, []).extend(values)

    def remove_tag(self, tag: str) -> List[str]:
        return self.attributes.pop(tag, [])

    def all_tags(self) -> List[str]:
        return list(self.attributes.keys())

    def gff_string(self, recurse: bool = False, parent_id: Optional[str] = None) -> str:
        """Render this feature, and optionally its owned subtree, as GFF3 lines."""
        columns = [
            self.seq_id or '.',
            self.source or '.',
            self.type,
            str(self.start),
            str(self.end),
            '.' if self.score is None else f"{self.score:g}",
            self.strand,
            '.' if self.phase is None else str(self.phase),
        ]

        attributes = [f"ID={escape(self.primary_id)}"]
        if self.display_name:
            attributes.append(f"Name={escape(self.display_name)}")
        parents = [parent_id] if parent_id else self.parent_ids
        if parents:
            attributes.append("Parent=" + ",".join(escape(p) for p in parents))
        for tag, values in self.attributes.items():
            if tag in ('ID', 'Name', 'Parent'):
                continue
            attributes.append(f"{escape(tag)}=" + ",".join(escape(v) for v in values))
        columns.append(";".join(attributes))

        lines = ["\t".join(columns) + "\n"]
        if recurse:
            for child in self.children:
                lines.append(child.gff_string(recurse=True, parent_id=self.primary_id))
        return "".join(lines)


@dataclass
class ParseSummary:
    """Outcome of a whole-file parse."""
    dialect: str
    feature_count: int = 0
    top_level_count: int = 0
    skipped_lines: int = 0
    duplicate_ids: Dict[str, int] = field(default_factory=dict)
    orphan_ids: List[str] = field(default_factory=list)
    seq_id_lengths: Dict[str, int] = field(default_factory=dict)

    @property
    def orphan_count(self) -> int:
        return len(self.orphan_ids)

    @property
    def duplicate_count(self) -> int:
        """Number of distinct identifiers that were registered more than once."""
        return len(self.duplicate_ids)

    @property
    def has_errors(self) -> bool:
        return bool(self.orphan_ids or self.duplicate_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dialect': self.dialect,
            'feature_count': self.feature_count,
            'top_level_count': self.top_level_count,
            'skipped_lines': self.skipped_lines,
            'duplicate_ids': dict(self.duplicate_ids),
            'orphan_ids': list(self.orphan_ids),
            'seq_id_lengths': dict(self.seq_id_lengths),
        }
