#!/usr/bin/env python3

"""
Hierarchy assembly: attaches converted features to their parents.

Features are processed in arrival order. Parent-capable and parentless
features are registered by identifier; children are attached to whichever
registered parent their references resolve to, or queued as orphans until a
later reconciliation pass finds the parent.
"""

import re
import logging
from collections import defaultdict
from typing import Dict, List

from .data_structures import Feature
from .registry import ANY_TYPE, FeatureRegistry

PARENT_CAPABLE = re.compile(r'gene|rna|transcript', re.IGNORECASE)
GRANDPARENT_TYPE = re.compile(r'gene', re.IGNORECASE)


class HierarchyAssembler:
    """Builds the feature tree and the bookkeeping reported after a parse."""

    def __init__(self, registry: FeatureRegistry, correct_boundaries: bool = False):
        """
        Args:
            registry: Identifier registry shared with the record converter
            correct_boundaries: Grow synthesized ancestors to cover attached children
        """
        self.registry = registry
        self.correct_boundaries = correct_boundaries
        self.top_features: List[Feature] = []
        self.duplicate_ids: Dict[str, int] = defaultdict(int)
        self.seq_id_lengths: Dict[str, int] = {}
        self.feature_count = 0

    def add_feature(self, feature: Feature) -> None:
        """Place one converted feature into the hierarchy."""
        self.feature_count += 1

        if PARENT_CAPABLE.search(feature.type) or not feature.parent_ids:
            self._register(feature)

        if not feature.parent_ids:
            self._add_top_feature(feature)
            return

        for parent_id in feature.parent_ids:
            parent = self.registry.resolve(parent_id, ANY_TYPE, feature)
            if parent is None:
                # not loaded yet, maybe later
                self.registry.orphan(feature, parent_id)
            else:
                self.attach(parent, feature)

    def add_ancestor(self, feature: Feature, top_level: bool) -> None:
        """Register an ancestor synthesized by a record converter."""
        self._register(feature)
        if top_level:
            self._add_top_feature(feature)

    def attach(self, parent: Feature, child: Feature) -> None:
        """Attach a child and grow synthesized ancestors two levels up to cover it."""
        parent.add_child(child)

        if not (self.correct_boundaries and parent.autogenerated):
            return
        parent.expand_to(child)

        # in all likelihood parent is a transcript whose gene also needs fixing
        if parent.parent_ids:
            grandparent = self.registry.resolve(parent.parent_ids[0], GRANDPARENT_TYPE, parent)
            if grandparent is not None and grandparent.autogenerated:
                grandparent.expand_to(parent)

    def reconcile(self) -> int:
        """Retry all orphans against the features registered so far."""
        return self.registry.reconcile(self.attach)

    def record_sequence_length(self, seq_id: str, length: int) -> None:
        """Remember a declared sequence length, keeping the largest seen."""
        if length > self.seq_id_lengths.get(seq_id, 0):
            self.seq_id_lengths[seq_id] = length

    @property
    def orphans(self) -> List[Feature]:
        return self.registry.orphans

    def _register(self, feature: Feature) -> None:
        if self.registry.register(feature) > 1:
            self.duplicate_ids[feature.primary_id] += 1
            logging.debug(f"Duplicate identifier {feature.primary_id} ({feature.type})")

    def _add_top_feature(self, feature: Feature) -> None:
        self.top_features.append(feature)
        self.record_sequence_length(feature.seq_id, feature.end)
