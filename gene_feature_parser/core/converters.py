#!/usr/bin/env python3

"""
Record converters, one per dialect.

Each converter turns the nine fields of a data line into a Feature. The GTF
converter additionally synthesizes the gene and transcript ancestors that
GTF files only imply through their gene_id/transcript_id attributes.
"""

import re
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Type

from .attributes import (
    escape, unescape,
    parse_gff3_attributes, parse_gtf_attributes, parse_generic_attributes,
)
from .data_structures import Feature
from .dialects import Dialect, InclusionFlags
from .registry import FeatureRegistry

__all__ = [
    'ConversionContext', 'RecordConverter', 'GFF3Converter', 'GTFConverter',
    'GenericConverter', 'converter_for', 'escape', 'unescape',
]

TRANSCRIPT_PATTERN = re.compile(r'rna|transcript', re.IGNORECASE)
GENE_PATTERN = re.compile(r'gene', re.IGNORECASE)

GFF3_RESERVED = ('ID', 'Name', 'Parent', 'exon_id')
GTF_RESERVED = ('transcript_id', 'transcript_name', 'gene_id', 'gene_name', 'exon_id')
GTF_SUBORDINATE_TYPES = ('exon', 'cds', 'utr', 'five_prime_utr', 'three_prime_utr',
                         'start_codon', 'stop_codon')


@dataclass
class ConversionContext:
    """Per-parse state shared by a converter and the hierarchy assembler."""
    registry: FeatureRegistry
    flags: InclusionFlags = field(default_factory=InclusionFlags)
    simplify: bool = False
    feature_class: Type[Feature] = Feature
    type_counts: Counter = field(default_factory=Counter)
    # Registers a synthesized ancestor; second argument says whether it is top level
    add_ancestor: Optional[Callable[[Feature, bool], None]] = None
    # Attaches a child to a parent, correcting synthesized spans
    attach: Optional[Callable[[Feature, Feature], None]] = None

    def next_id(self, feature_type: str) -> str:
        self.type_counts[feature_type] += 1
        return f"{feature_type}.{self.type_counts[feature_type]}"


class RecordConverter:
    """Base construction shared by all dialects: columns 1-8."""

    dialect: Dialect = Dialect.GFF

    def __init__(self, context: ConversionContext):
        self.context = context

    def build_base_feature(self, fields: Sequence[str]) -> Feature:
        """Build a bare feature from the first eight columns.

        Raises:
            ValueError: on non-numeric coordinates, score or phase, or start > end
        """
        score = fields[5].strip()
        phase = fields[7].strip()
        return self.context.feature_class(
            seq_id=fields[0],
            source=fields[1],
            type=fields[2],
            start=int(fields[3]),
            end=int(fields[4]),
            score=None if score in ('.', '') else float(score),
            strand=fields[6].strip(),
            phase=None if phase in ('.', '') else int(phase),
        )

    def convert(self, fields: Sequence[str]) -> Optional[Feature]:
        """Convert one data line. Returns None when the line was absorbed into an existing feature."""
        raise NotImplementedError


class GFF3Converter(RecordConverter):
    """Explicit ID/Parent attributes in key=value form."""

    dialect = Dialect.GFF3

    def convert(self, fields: Sequence[str]) -> Optional[Feature]:
        feature = self.build_base_feature(fields)
        attributes = parse_gff3_attributes(fields[8])

        if 'ID' in attributes:
            feature.primary_id = unescape(attributes['ID'][0])
        else:
            feature.primary_id = self.context.next_id(feature.type)

        if 'Name' in attributes:
            feature.display_name = unescape(attributes['Name'][0])

        if 'Parent' in attributes:
            # transcripts become top level when genes are not wanted
            if self.context.flags.gene or not TRANSCRIPT_PATTERN.search(feature.type):
                feature.parent_ids = [
                    unescape(parent)
                    for value in attributes['Parent']
                    for parent in value.split(',')
                    if parent
                ]

        if feature.type.lower() == 'exon' and 'exon_id' in attributes:
            # Ensembl records the exon id outside of ID
            feature.primary_id = unescape(attributes['exon_id'][0])

        if not self.context.simplify:
            for key, values in attributes.items():
                if key in GFF3_RESERVED:
                    continue
                tag = unescape(key) if '%' in key else key
                for value in values:
                    feature.add_tag_value(tag, *(unescape(v) for v in value.split(',')))

        return feature


class GTFConverter(RecordConverter):
    """Implicit hierarchy through gene_id and transcript_id attributes."""

    dialect = Dialect.GTF

    def convert(self, fields: Sequence[str]) -> Optional[Feature]:
        feature = self.build_base_feature(fields)
        attributes = parse_gtf_attributes(fields[8])
        context = self.context

        transcript_id = _first(attributes, 'transcript_id')
        gene_id = _first(attributes, 'gene_id')
        feature_type = feature.type.lower()

        if not (gene_id or transcript_id):
            # nothing to group on, keep the record flat
            feature.primary_id = context.next_id(feature_type)
            if not context.simplify:
                self._add_remaining_attributes(feature, attributes)
            return feature

        if _is_subordinate(feature_type):
            if feature_type == 'exon' and 'exon_id' in attributes:
                feature.primary_id = attributes['exon_id'][0]
            else:
                feature.primary_id = context.next_id(feature_type)

            gene = None
            if context.flags.gene and gene_id:
                gene = self._find_or_make_gene(gene_id, fields, attributes, feature)

            if transcript_id:
                feature.parent_ids = [transcript_id]
                rna = context.registry.resolve(transcript_id, TRANSCRIPT_PATTERN, feature)
                if rna is None:
                    rna = self._make_rna_parent(fields, attributes)
                    if gene is not None:
                        rna.parent_ids = [gene_id]
                        context.add_ancestor(rna, False)
                        context.attach(gene, rna)
                    else:
                        if gene_id:
                            rna.add_tag_value('gene_id', gene_id)
                        context.add_ancestor(rna, True)
            elif gene is not None:
                feature.parent_ids = [gene_id]

        elif feature_type == 'transcript' or 'rna' in feature_type:
            existing = None
            if transcript_id:
                existing = context.registry.resolve(transcript_id, TRANSCRIPT_PATTERN, feature)
            if _is_synthesized(existing, TRANSCRIPT_PATTERN):
                self._update_autogenerated(existing, feature, attributes, 'transcript_name')
                return None

            feature.primary_id = transcript_id or context.next_id(feature_type)
            if 'transcript_name' in attributes:
                feature.display_name = attributes['transcript_name'][0]
            if 'transcript_biotype' in attributes:
                feature.add_tag_value('transcript_biotype', attributes['transcript_biotype'][0])
            elif 'transcript_type' in attributes:
                feature.add_tag_value('transcript_type', attributes['transcript_type'][0])

            if context.flags.gene and gene_id:
                self._find_or_make_gene(gene_id, fields, attributes, feature)
                feature.parent_ids = [gene_id]
            elif gene_id:
                feature.add_tag_value('gene_id', gene_id)

        elif feature_type == 'gene':
            existing = None
            if gene_id:
                existing = context.registry.resolve(gene_id, GENE_PATTERN, feature)
            if _is_synthesized(existing, GENE_PATTERN):
                self._update_autogenerated(existing, feature, attributes, 'gene_name')
                return None

            feature.primary_id = gene_id or context.next_id(feature_type)
            if 'gene_name' in attributes:
                feature.display_name = attributes['gene_name'][0]
            if 'gene_biotype' in attributes:
                feature.add_tag_value('gene_biotype', attributes['gene_biotype'][0])
            elif 'gene_type' in attributes:
                feature.add_tag_value('gene_type', attributes['gene_type'][0])

        else:
            # hope the transcript was already made from an exon or CDS
            feature.primary_id = context.next_id(feature_type)
            if transcript_id:
                feature.parent_ids = [transcript_id]

        if not context.simplify:
            self._add_remaining_attributes(feature, attributes)
        return feature

    def _find_or_make_gene(self, gene_id: str, fields: Sequence[str],
                           attributes: Dict[str, List[str]], feature: Feature) -> Feature:
        gene = self.context.registry.resolve(gene_id, GENE_PATTERN, feature)
        if gene is None:
            gene = self._make_gene_parent(fields, attributes)
            self.context.add_ancestor(gene, True)
        return gene

    def _make_gene_parent(self, fields: Sequence[str], attributes: Dict[str, List[str]]) -> Feature:
        gene = self._make_ancestor(fields, 'gene', attributes['gene_id'][0])
        if 'gene_name' in attributes:
            gene.display_name = attributes['gene_name'][0]
        if 'gene_biotype' in attributes:
            gene.add_tag_value('gene_biotype', attributes['gene_biotype'][0])
        elif 'gene_type' in attributes:
            gene.add_tag_value('gene_type', attributes['gene_type'][0])
        if 'gene_source' in attributes:
            gene.add_tag_value('gene_source', attributes['gene_source'][0])
        return gene

    def _make_rna_parent(self, fields: Sequence[str], attributes: Dict[str, List[str]]) -> Feature:
        rna = self._make_ancestor(fields, 'transcript', attributes['transcript_id'][0])
        if 'transcript_name' in attributes:
            rna.display_name = attributes['transcript_name'][0]
        if 'transcript_biotype' in attributes:
            rna.add_tag_value('transcript_biotype', attributes['transcript_biotype'][0])
        elif 'transcript_type' in attributes:
            rna.add_tag_value('transcript_biotype', attributes['transcript_type'][0])
        if 'transcript_source' in attributes:
            rna.add_tag_value('transcript_source', attributes['transcript_source'][0])
        return rna

    def _make_ancestor(self, fields: Sequence[str], feature_type: str, feature_id: str) -> Feature:
        ancestor = self.context.feature_class(
            seq_id=fields[0],
            source=fields[1],
            type=feature_type,
            start=int(fields[3]),
            end=int(fields[4]),
            strand=fields[6].strip(),
            primary_id=feature_id,
            autogenerated=True,
        )
        logging.debug(f"Synthesized {feature_type} {feature_id} at {fields[0]}:{fields[3]}-{fields[4]}")
        return ancestor

    def _update_autogenerated(self, existing: Feature, feature: Feature,
                              attributes: Dict[str, List[str]], name_key: str) -> None:
        """Adopt the authentic record's span and attributes into a synthesized ancestor."""
        existing.start = feature.start
        existing.end = feature.end
        existing.score = feature.score
        if name_key in attributes:
            existing.display_name = attributes[name_key][0]
        existing.autogenerated = False
        if not self.context.simplify:
            self._add_remaining_attributes(existing, attributes)

        # a synthesized gene must still cover the transcript it was built around
        if existing.parent_ids:
            gene = self.context.registry.resolve(existing.parent_ids[0], GENE_PATTERN, existing)
            if gene is not None and gene.autogenerated:
                gene.expand_to(existing)

        logging.debug(f"Replaced synthesized {existing.type} {existing.primary_id} with authentic record")

    @staticmethod
    def _add_remaining_attributes(feature: Feature, attributes: Dict[str, List[str]]) -> None:
        for key, values in attributes.items():
            if key in GTF_RESERVED or feature.has_tag(key):
                continue
            feature.add_tag_value(key, *values)


class GenericConverter(RecordConverter):
    """Loose GFF1/GFF2 groups. No reserved tags and no parentage."""

    dialect = Dialect.GFF

    def convert(self, fields: Sequence[str]) -> Optional[Feature]:
        feature = self.build_base_feature(fields)
        feature.primary_id = self.context.next_id(feature.type)
        if not self.context.simplify:
            for tag, values in parse_generic_attributes(fields[8]).items():
                feature.add_tag_value(tag, *values)
        return feature


_CONVERTERS = {
    Dialect.GFF3: GFF3Converter,
    Dialect.GTF: GTFConverter,
    Dialect.GFF: GenericConverter,
}


def converter_for(dialect: Dialect, context: ConversionContext) -> RecordConverter:
    """Instantiate the converter for a detected dialect."""
    return _CONVERTERS[dialect](context)


def _first(attributes: Dict[str, List[str]], key: str) -> Optional[str]:
    values = attributes.get(key)
    return values[0] if values else None


def _is_subordinate(feature_type: str) -> bool:
    return (feature_type in GTF_SUBORDINATE_TYPES
            or 'utr' in feature_type or 'codon' in feature_type)


def _is_synthesized(existing: Optional[Feature], type_pattern) -> bool:
    return (existing is not None and existing.autogenerated
            and bool(type_pattern.search(existing.type)))
