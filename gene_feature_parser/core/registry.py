#!/usr/bin/env python3

"""
Identifier registry and orphanage used while assembling a feature hierarchy.

Identifiers in real annotation files are expected to be unique but often are
not. The registry therefore keeps every feature registered under an
identifier, and disambiguates lookups by type and overlap with the feature
asking for its parent.
"""

import re
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Union

from .data_structures import Feature

ANY_TYPE = re.compile(r'\w+')

TypePattern = Union[str, Pattern]


@dataclass(eq=False)
class OrphanEntry:
    """A feature waiting for one of its declared parents."""
    feature: Feature
    parent_id: str


def _compile(pattern: TypePattern) -> Pattern:
    if isinstance(pattern, str):
        return re.compile(pattern, re.IGNORECASE)
    return pattern


class FeatureRegistry:
    """Maps identifiers to the features registered under them, and holds orphans."""

    def __init__(self):
        self._features: Dict[str, List[Feature]] = defaultdict(list)
        self._orphans: List[OrphanEntry] = []

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, feature_id: str) -> bool:
        return feature_id in self._features

    def candidates(self, feature_id: str) -> List[Feature]:
        """All features registered under an identifier, in registration order."""
        return list(self._features.get(feature_id, []))

    def register(self, feature: Feature) -> int:
        """
        Remember a feature under its primary_id.

        Returns:
            1 for a new identifier or benign reuse by a different type, otherwise
            1 plus the number of already-registered features of the same type
        """
        existing = self._features[feature.primary_id]
        count = 1 + sum(1 for f in existing if f.type == feature.type)
        existing.append(feature)
        return count

    def resolve(self, feature_id: str, expected_type: TypePattern,
                referencing: Feature) -> Optional[Feature]:
        """
        Find the feature an identifier refers to from the point of view of
        ``referencing``.

        A unique identifier resolves unconditionally. A shared identifier
        resolves to the first candidate whose type matches ``expected_type``
        and whose span overlaps ``referencing``.
        """
        candidates = self._features.get(feature_id)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        type_pattern = _compile(expected_type)
        for candidate in candidates:
            if type_pattern.search(candidate.type) and referencing.overlaps(candidate):
                return candidate
        return None

    def orphan(self, feature: Feature, parent_id: str) -> None:
        """Queue a feature whose parent ``parent_id`` could not be resolved yet."""
        self._orphans.append(OrphanEntry(feature, parent_id))

    @property
    def orphan_entries(self) -> List[OrphanEntry]:
        return list(self._orphans)

    @property
    def orphans(self) -> List[Feature]:
        """Distinct features with at least one unresolved parent, in arrival order."""
        seen = set()
        features = []
        for entry in self._orphans:
            if id(entry.feature) not in seen:
                seen.add(id(entry.feature))
                features.append(entry.feature)
        return features

    def reconcile(self, attach: Optional[Callable[[Feature, Feature], None]] = None) -> int:
        """
        Retry every queued parent reference.

        Args:
            attach: Called as attach(parent, child) for each success; defaults
                to parent.add_child(child)

        Returns:
            Number of parent references resolved in this pass
        """
        if not self._orphans:
            return 0

        if attach is None:
            attach = lambda parent, child: parent.add_child(child)

        remaining = []
        reunited = 0
        for entry in self._orphans:
            parent = self.resolve(entry.parent_id, ANY_TYPE, entry.feature)
            if parent is None:
                remaining.append(entry)
                continue
            attach(parent, entry.feature)
            reunited += 1

        self._orphans = remaining
        if reunited:
            logging.debug(f"Reunited {reunited} orphans with their parents, {len(remaining)} remain")
        return reunited
