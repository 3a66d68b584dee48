#!/usr/bin/env python3

"""
Unit tests for the identifier registry, the orphanage and hierarchy assembly.
"""

import re
import unittest
import sys
import os

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from gene_feature_parser.core.assembler import HierarchyAssembler
from gene_feature_parser.core.data_structures import Feature
from gene_feature_parser.core.registry import ANY_TYPE, FeatureRegistry


def make(feature_type, start, end, primary_id="", parent_ids=None, seq_id="chr1", **kwargs):
    return Feature(seq_id=seq_id, start=start, end=end, type=feature_type,
                   primary_id=primary_id, parent_ids=list(parent_ids or []), **kwargs)


class TestFeatureRegistry(unittest.TestCase):
    """Test registration, lookup and orphan bookkeeping."""

    def setUp(self):
        self.registry = FeatureRegistry()

    def test_register_counts_same_type_only(self):
        self.assertEqual(self.registry.register(make("gene", 1, 100, "g1")), 1)
        # a transcript reusing the gene's id is not a duplicate
        self.assertEqual(self.registry.register(make("mRNA", 1, 100, "g1")), 1)
        self.assertEqual(self.registry.register(make("gene", 200, 300, "g1")), 2)
        self.assertEqual(self.registry.register(make("gene", 400, 500, "g1")), 3)
        self.assertEqual(len(self.registry.candidates("g1")), 4)
        self.assertEqual(len(self.registry), 1)
        self.assertIn("g1", self.registry)

    def test_unique_id_resolves_unconditionally(self):
        gene = make("gene", 1, 100, "g1")
        self.registry.register(gene)
        elsewhere = make("exon", 5000, 5100, seq_id="chr2")
        self.assertIs(self.registry.resolve("g1", "transcript", elsewhere), gene)
        self.assertIsNone(self.registry.resolve("missing", ANY_TYPE, elsewhere))

    def test_shared_id_resolves_by_type_and_overlap(self):
        first = make("exon", 100, 200, "e1")
        second = make("exon", 500, 600, "e1")
        rna = make("mRNA", 100, 600, "e1")
        for feature in (first, second, rna):
            self.registry.register(feature)

        cds = make("CDS", 520, 580)
        self.assertIs(self.registry.resolve("e1", "exon", cds), second)
        self.assertIs(self.registry.resolve("e1", re.compile("rna", re.IGNORECASE), cds), rna)
        # type patterns given as strings ignore case
        self.assertIs(self.registry.resolve("e1", "EXON", make("CDS", 120, 180)), first)
        self.assertIsNone(self.registry.resolve("e1", "exon", make("CDS", 300, 400)))

    def test_reconcile(self):
        orphan = make("exon", 100, 200, "e1", ["t1", "t2"])
        self.registry.orphan(orphan, "t1")
        self.registry.orphan(orphan, "t2")
        self.assertEqual(self.registry.orphans, [orphan])
        self.assertEqual(len(self.registry.orphan_entries), 2)

        t1 = make("mRNA", 100, 500, "t1")
        self.registry.register(t1)
        self.assertEqual(self.registry.reconcile(), 1)
        self.assertEqual(t1.children, [orphan])
        self.assertEqual(self.registry.orphans, [orphan])
        self.assertEqual(self.registry.orphan_entries[0].parent_id, "t2")

        # nothing new to resolve
        self.assertEqual(self.registry.reconcile(), 0)

        t2 = make("mRNA", 100, 500, "t2")
        self.registry.register(t2)
        self.assertEqual(self.registry.reconcile(), 1)
        self.assertEqual(t2.shared_children, [orphan])
        self.assertEqual(self.registry.orphans, [])

    def test_reconcile_with_callback(self):
        attached = []
        orphan = make("exon", 100, 200, "e1", ["t1"])
        self.registry.orphan(orphan, "t1")
        self.registry.register(make("mRNA", 100, 500, "t1"))

        self.registry.reconcile(lambda parent, child: attached.append((parent.primary_id, child)))
        self.assertEqual(attached, [("t1", orphan)])


class TestHierarchyAssembler(unittest.TestCase):
    """Test attaching features to parents in arrival order."""

    def setUp(self):
        self.registry = FeatureRegistry()
        self.assembler = HierarchyAssembler(self.registry)

    def test_parent_then_child(self):
        gene = make("gene", 100, 500, "g1")
        mrna = make("mRNA", 150, 450, "m1", ["g1"])
        exon = make("exon", 150, 250, "exon.1", ["m1"])
        for feature in (gene, mrna, exon):
            self.assembler.add_feature(feature)

        self.assertEqual(self.assembler.top_features, [gene])
        self.assertEqual(gene.children, [mrna])
        self.assertEqual(mrna.children, [exon])
        self.assertEqual(self.assembler.feature_count, 3)
        self.assertEqual(self.assembler.orphans, [])
        # exons with parents are never registered
        self.assertNotIn("exon.1", self.registry)

    def test_child_before_parent(self):
        exon = make("exon", 150, 250, "e1", ["m1"])
        self.assembler.add_feature(exon)
        self.assertEqual(self.assembler.orphans, [exon])

        mrna = make("mRNA", 150, 450, "m1")
        self.assembler.add_feature(mrna)
        self.assertEqual(self.assembler.reconcile(), 1)
        self.assertEqual(mrna.children, [exon])
        self.assertEqual(self.assembler.orphans, [])

    def test_duplicates_counted(self):
        for start in (100, 1000, 2000):
            self.assembler.add_feature(make("gene", start, start + 50, "g1"))
        self.assembler.add_feature(make("mRNA", 100, 150, "g1"))
        self.assertEqual(dict(self.assembler.duplicate_ids), {"g1": 2})

    def test_sequence_lengths(self):
        self.assembler.add_feature(make("gene", 100, 500, "g1"))
        self.assembler.record_sequence_length("chr1", 300)
        self.assertEqual(self.assembler.seq_id_lengths, {"chr1": 500})
        self.assembler.record_sequence_length("chr1", 5000)
        self.assertEqual(self.assembler.seq_id_lengths, {"chr1": 5000})

    def test_boundary_correction(self):
        assembler = HierarchyAssembler(self.registry, correct_boundaries=True)
        gene = make("gene", 200, 300, "g1", autogenerated=True)
        rna = make("transcript", 200, 300, "t1", ["g1"], autogenerated=True)
        assembler.add_ancestor(gene, True)
        assembler.add_ancestor(rna, False)
        assembler.attach(gene, rna)

        assembler.add_feature(make("exon", 100, 150, "exon.1", ["t1"]))
        assembler.add_feature(make("exon", 400, 450, "exon.2", ["t1"]))

        self.assertEqual((rna.start, rna.end), (100, 450))
        self.assertEqual((gene.start, gene.end), (100, 450))
        self.assertEqual(assembler.top_features, [gene])

    def test_no_correction_for_authentic_parents(self):
        assembler = HierarchyAssembler(self.registry, correct_boundaries=True)
        rna = make("transcript", 200, 300, "t1")
        assembler.add_feature(rna)
        assembler.add_feature(make("exon", 100, 150, "exon.1", ["t1"]))
        self.assertEqual((rna.start, rna.end), (200, 300))


if __name__ == '__main__':
    unittest.main()
