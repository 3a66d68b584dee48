#!/usr/bin/env python3

"""
Test suite for the gene feature parser.

Unit tests covering:
- Feature model and summary
- Configuration management and validation
- Line tokenizing and dialect detection
- Per-dialect record conversion and attribute escaping
- Identifier registry, orphan reconciliation and hierarchy assembly
- End-to-end parsing scenarios
"""
