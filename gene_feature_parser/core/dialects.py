#!/usr/bin/env python3

"""
Dialect detection for GFF-family files.

A small prefix of the file is sampled to decide how column 9 is encoded and
which feature types are present. The observed types also decide whether
subordinate records must be processed so that missing gene/transcript
ancestors can be synthesized from them.
"""

import re
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterable, Optional, Set

from .config import ParserConfig
from .exceptions import DialectError
from .tokenizer import LineKind, classify_line

_GTF_GROUPING = re.compile(r'(?:^|;)\s*(?:gene_id|transcript_id)\s+"?[^\s";]+')
_GFF3_PAIR = re.compile(r'(?:^|;)\s*[^\s=;]+=')
_TRANSCRIPT_TYPES = re.compile(r'transcript|rna', re.IGNORECASE)
_GENE_TYPES = re.compile(r'gene', re.IGNORECASE)


class Dialect(Enum):
    """Attribute encodings accepted in column 9."""
    GFF3 = "gff3"   # ID=...;Parent=a,b with percent-escaping
    GTF = "gtf"     # gene_id "..."; transcript_id "..."; implicit parents
    GFF = "gff"     # loose 'tag value' groups, no parentage


@dataclass
class DialectSample:
    """Result of sampling the head of a file."""
    dialect: Dialect
    types: Set[str] = field(default_factory=set)
    gff_version: Optional[str] = None
    gff3_votes: int = 0
    gtf_votes: int = 0

    @property
    def typelist(self) -> str:
        return ",".join(sorted(self.types))


@dataclass(frozen=True)
class InclusionFlags:
    """Which subordinate feature classes the parser materializes."""
    gene: bool = True
    exon: bool = True
    cds: bool = False
    utr: bool = False
    codon: bool = False


def detect_dialect(lines: Iterable[str], override: Optional[str] = None,
                   source_name: str = "") -> DialectSample:
    """
    Decide the dialect from sampled lines.

    Args:
        lines: Raw lines from the start of the file
        override: Dialect name forced by the caller ('gff3', 'gtf' or 'gff')
        source_name: Used in error messages only

    Returns:
        DialectSample with the dialect and the set of observed types

    Raises:
        DialectError: if the sample contains no feature types at all
    """
    types: Set[str] = set()
    gff_version = None
    gff3_votes = 0
    gtf_votes = 0

    for line in lines:
        parsed = classify_line(line)
        if parsed.kind is LineKind.SEQUENCE_HEADER:
            break
        if parsed.kind is LineKind.COMMENT and parsed.gff_version:
            gff_version = parsed.gff_version
            continue
        if parsed.kind is not LineKind.DATA:
            continue

        feature_type = parsed.fields[2].strip()
        if re.search(r'\w', feature_type):
            types.add(feature_type)

        attributes = parsed.fields[8]
        if _GFF3_PAIR.search(attributes):
            gff3_votes += 1
        elif _GTF_GROUPING.search(attributes):
            gtf_votes += 1

    if not types:
        raise DialectError("no feature types found in sampled lines, not a GFF file?", source_name)

    if override:
        dialect = Dialect(override)
    elif gff_version and gff_version.startswith('3'):
        dialect = Dialect.GFF3
    elif gtf_votes and gtf_votes >= gff3_votes:
        dialect = Dialect.GTF
    elif gff3_votes:
        dialect = Dialect.GFF3
    else:
        dialect = Dialect.GFF

    logging.debug(f"Dialect votes: gff3={gff3_votes} gtf={gtf_votes} version={gff_version}")
    return DialectSample(dialect=dialect, types=types, gff_version=gff_version,
                         gff3_votes=gff3_votes, gtf_votes=gtf_votes)


def resolve_inclusion(sample: DialectSample, config: ParserConfig) -> InclusionFlags:
    """
    Combine the caller's inclusion flags with what the sample contains.

    GTF files frequently omit transcript and gene records. Their exons then
    have to be processed, or no hierarchy could be synthesized at all.
    """
    include_exon = config.include_exon

    if sample.dialect is Dialect.GTF:
        has_transcripts = any(_TRANSCRIPT_TYPES.search(t) for t in sample.types)
        has_genes = any(_GENE_TYPES.search(t) for t in sample.types)

        if not has_transcripts and not (include_exon or config.include_cds):
            logging.info("No transcript records sampled, enabling exons to build transcripts")
            include_exon = True
        if config.include_gene and not has_genes and not include_exon:
            logging.info("No gene records sampled, enabling exons to build genes")
            include_exon = True

    return InclusionFlags(
        gene=config.include_gene,
        exon=include_exon,
        cds=config.include_cds,
        utr=config.include_utr,
        codon=config.include_codon,
    )
