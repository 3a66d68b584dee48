#!/usr/bin/env python3

"""
Unit tests for dialect detection and inclusion flag resolution.
"""

import unittest
import sys
import os

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from gene_feature_parser.core.config import ParserConfig
from gene_feature_parser.core.dialects import (
    Dialect, DialectSample, InclusionFlags, detect_dialect, resolve_inclusion
)
from gene_feature_parser.core.exceptions import DialectError

GFF3_LINES = [
    "##gff-version 3\n",
    "chr1\tsrc\tgene\t100\t500\t.\t+\t.\tID=g1;Name=alpha\n",
    "chr1\tsrc\tmRNA\t150\t450\t.\t+\t.\tID=m1;Parent=g1\n",
]

GTF_LINES = [
    'chr1\tsrc\texon\t200\t300\t.\t+\t.\tgene_id "g1"; transcript_id "t1";\n',
    'chr1\tsrc\tCDS\t220\t300\t.\t+\t0\tgene_id "g1"; transcript_id "t1";\n',
]

GENERIC_LINES = [
    'chr1\tsrc\trepeat\t10\t90\t.\t.\t.\tClass Alu ; Note "short"\n',
    'chr1\tsrc\trepeat\t110\t190\t.\t.\t.\tClass L1\n',
]


class TestDetectDialect(unittest.TestCase):
    """Test detect_dialect on sampled lines."""

    def test_gff3_by_version(self):
        sample = detect_dialect(GFF3_LINES)
        self.assertIs(sample.dialect, Dialect.GFF3)
        self.assertEqual(sample.gff_version, "3")
        self.assertEqual(sample.types, {"gene", "mRNA"})
        self.assertEqual(sample.typelist, "gene,mRNA")

    def test_gff3_without_version(self):
        sample = detect_dialect(GFF3_LINES[1:])
        self.assertIs(sample.dialect, Dialect.GFF3)
        self.assertEqual(sample.gff3_votes, 2)

    def test_gtf(self):
        sample = detect_dialect(GTF_LINES)
        self.assertIs(sample.dialect, Dialect.GTF)
        self.assertEqual(sample.gtf_votes, 2)

    def test_generic(self):
        sample = detect_dialect(GENERIC_LINES)
        self.assertIs(sample.dialect, Dialect.GFF)
        self.assertEqual(sample.types, {"repeat"})

    def test_override(self):
        sample = detect_dialect(GFF3_LINES, override="gff")
        self.assertIs(sample.dialect, Dialect.GFF)

    def test_stops_at_sequence_header(self):
        lines = GTF_LINES + [">chr1\n", "chr1\tsrc\tgene\t1\t9\t.\t+\t.\tID=x\n"]
        sample = detect_dialect(lines)
        self.assertNotIn("gene", sample.types)

    def test_no_types_is_an_error(self):
        with self.assertRaises(DialectError) as cm:
            detect_dialect(["# nothing here\n", "\n"], source_name="empty.gff")
        self.assertIn("empty.gff", str(cm.exception))

        with self.assertRaises(DialectError):
            detect_dialect([])


class TestResolveInclusion(unittest.TestCase):
    """Test combining caller flags with the sampled types."""

    def test_flags_follow_config(self):
        sample = DialectSample(dialect=Dialect.GFF3, types={"gene", "mRNA", "exon"})
        config = ParserConfig(include_cds=True, include_exon=False)
        flags = resolve_inclusion(sample, config)
        self.assertEqual(flags, InclusionFlags(gene=True, exon=False, cds=True))

    def test_gtf_without_transcripts_forces_exons(self):
        sample = DialectSample(dialect=Dialect.GTF, types={"exon"})
        flags = resolve_inclusion(sample, ParserConfig(include_exon=False))
        self.assertTrue(flags.exon)

    def test_gtf_without_genes_forces_exons(self):
        sample = DialectSample(dialect=Dialect.GTF, types={"transcript", "exon"})
        flags = resolve_inclusion(sample, ParserConfig(include_exon=False))
        self.assertTrue(flags.exon)

        # no gene synthesis wanted, nothing to force
        flags = resolve_inclusion(sample, ParserConfig(include_exon=False, include_gene=False))
        self.assertFalse(flags.exon)

    def test_complete_gtf_keeps_config(self):
        sample = DialectSample(dialect=Dialect.GTF, types={"gene", "transcript", "exon"})
        flags = resolve_inclusion(sample, ParserConfig(include_exon=False))
        self.assertFalse(flags.exon)

    def test_gff3_never_forces_exons(self):
        sample = DialectSample(dialect=Dialect.GFF3, types={"exon"})
        flags = resolve_inclusion(sample, ParserConfig(include_exon=False))
        self.assertFalse(flags.exon)


if __name__ == '__main__':
    unittest.main()
