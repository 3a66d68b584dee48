#!/usr/bin/env python3

"""Utility helpers for the gene feature parser."""
