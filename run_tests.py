#!/usr/bin/env python3

"""
Test runner for the gene feature parser.

Discovers the unit tests under gene_feature_parser/tests, with optional
coverage measurement or a named subset of test classes.
"""

import unittest
import sys
import os
import argparse
from typing import List

ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ROOT)

TEST_DIR = os.path.join(ROOT, "gene_feature_parser", "tests")


def discover_tests(names: List[str] = None) -> unittest.TestSuite:
    """Load every test module, or only the given 'module.Class' names."""
    loader = unittest.TestLoader()
    if not names:
        return loader.discover(TEST_DIR, pattern="test_*.py", top_level_dir=ROOT)
    return loader.loadTestsFromNames(
        name if name.startswith("gene_feature_parser.") else f"gene_feature_parser.tests.{name}"
        for name in names
    )


def run_tests(suite: unittest.TestSuite, verbosity: int = 2, fail_fast: bool = False) -> bool:
    runner = unittest.TextTestRunner(verbosity=verbosity, failfast=fail_fast, buffer=True)
    return runner.run(suite).wasSuccessful()


def main():
    parser = argparse.ArgumentParser(description="Run gene feature parser tests")
    parser.add_argument("-v", "--verbosity", type=int, choices=[0, 1, 2], default=2,
                        help="Test output verbosity")
    parser.add_argument("-f", "--fail-fast", action="store_true",
                        help="Stop on first failure")
    parser.add_argument("-c", "--coverage", action="store_true",
                        help="Measure coverage of the gene_feature_parser package")
    parser.add_argument("-t", "--tests", nargs="+",
                        help="Test classes to run, e.g. test_parser.TestStreaming")
    args = parser.parse_args()

    if args.coverage:
        import coverage
        cov = coverage.Coverage(source=["gene_feature_parser"], omit=["*/tests/*"])
        cov.start()
        success = run_tests(discover_tests(args.tests), args.verbosity, args.fail_fast)
        cov.stop()
        cov.save()
        cov.report(show_missing=True)
    else:
        success = run_tests(discover_tests(args.tests), args.verbosity, args.fail_fast)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
