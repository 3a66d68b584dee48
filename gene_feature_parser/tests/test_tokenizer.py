#!/usr/bin/env python3

"""
Unit tests for line classification.
"""

import unittest
import sys
import os

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from gene_feature_parser.core.tokenizer import LineKind, classify_line


class TestClassifyLine(unittest.TestCase):
    """Test classify_line on each kind of input line."""

    def test_blank_lines(self):
        self.assertIs(classify_line("\n").kind, LineKind.BLANK)
        self.assertIs(classify_line("   \t\n").kind, LineKind.BLANK)

    def test_comments_and_version(self):
        parsed = classify_line("##gff-version 3\n")
        self.assertIs(parsed.kind, LineKind.COMMENT)
        self.assertEqual(parsed.gff_version, "3")
        self.assertEqual(parsed.text, "##gff-version 3")

        parsed = classify_line("# produced by hand\n")
        self.assertIs(parsed.kind, LineKind.COMMENT)
        self.assertIsNone(parsed.gff_version)

    def test_close_pragma(self):
        self.assertIs(classify_line("###\n").kind, LineKind.CLOSE_PRAGMA)

    def test_sequence_region(self):
        parsed = classify_line("##sequence-region chr1 1 5000\n")
        self.assertIs(parsed.kind, LineKind.SEQUENCE_REGION)
        self.assertEqual(parsed.seq_id, "chr1")
        self.assertEqual(parsed.length, 5000)

    def test_malformed_sequence_region(self):
        parsed = classify_line("##sequence-region chr1 one\n")
        self.assertIs(parsed.kind, LineKind.INVALID)
        self.assertIn("sequence-region", parsed.reason)

    def test_sequence_header(self):
        self.assertIs(classify_line(">chr1 some description\n").kind, LineKind.SEQUENCE_HEADER)

    def test_data_line(self):
        parsed = classify_line("chr1\tsrc\tgene\t100\t500\t.\t+\t.\tID=g1\r\n")
        self.assertIs(parsed.kind, LineKind.DATA)
        self.assertEqual(len(parsed.fields), 9)
        self.assertEqual(parsed.fields[2], "gene")
        self.assertEqual(parsed.fields[8], "ID=g1")

    def test_wrong_column_count(self):
        parsed = classify_line("chr1\tsrc\tgene\t100\t500\n")
        self.assertIs(parsed.kind, LineKind.INVALID)
        self.assertIn("found 5", parsed.reason)

        # spaces are not column separators
        parsed = classify_line("chr1 src gene 100 500 . + . ID=g1\n")
        self.assertIs(parsed.kind, LineKind.INVALID)


if __name__ == '__main__':
    unittest.main()
