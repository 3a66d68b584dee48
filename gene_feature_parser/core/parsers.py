#!/usr/bin/env python3

"""
Parser driver for GFF3, GTF and generic GFF annotation files.

Offers two modes over one bound source: ``next_feature()`` pulls converted
features one at a time without assembling them, and ``parse_all()`` drains
the source through the hierarchy assembler and returns a ParseSummary.
"""

import os
import logging
import itertools
from enum import Enum
from typing import IO, Iterator, List, Optional, Sequence, Type, Union

from .assembler import HierarchyAssembler
from .config import ParserConfig
from .converters import ConversionContext, RecordConverter, converter_for
from .data_structures import Feature, ParseSummary
from .dialects import Dialect, DialectSample, InclusionFlags, detect_dialect, resolve_inclusion
from .exceptions import DialectError, ParseError, ParserError
from .registry import FeatureRegistry
from .tokenizer import LineKind, classify_line
from ..utils.performance_monitor import PerformanceMonitor

Source = Union[str, os.PathLike, IO[str]]


class ParserState(Enum):
    UNOPENED = "unopened"
    OPEN = "open"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"


class AnnotationParser:
    """Parse one GFF-family annotation source into a feature hierarchy."""

    def __init__(self, source: Optional[Source] = None,
                 config: Optional[ParserConfig] = None,
                 feature_class: Type[Feature] = Feature):
        """
        Args:
            source: File path or open text stream (may also be bound later with open())
            config: Parser options; defaults to ParserConfig()
            feature_class: Feature subclass to instantiate for every record
        """
        self.config = config or ParserConfig()
        self.feature_class = feature_class
        self.state = ParserState.UNOPENED

        self.source_name = ""
        self._source: Optional[Source] = None
        self._handle: Optional[IO[str]] = None
        self._owns_handle = False
        self._lines: Optional[Iterator] = None
        self._failure: Optional[ParserError] = None

        self.sample: Optional[DialectSample] = None
        self.flags: Optional[InclusionFlags] = None
        self.converter: Optional[RecordConverter] = None
        self.registry = FeatureRegistry()
        self.assembler = HierarchyAssembler(self.registry)
        self.monitor = PerformanceMonitor(
            memory_limit_mb=self.config.memory_limit_mb,
            enabled=self.config.enable_memory_monitoring,
        )

        self.comments: List[str] = []
        self.line_number = 0
        self.skipped_lines = 0
        self._summary: Optional[ParseSummary] = None
        self._top_index: Optional[int] = None

        if self.config.debug_mode:
            logging.getLogger().setLevel(logging.DEBUG)

        if source is not None:
            self.open(source)

    def __enter__(self) -> 'AnnotationParser':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[Feature]:
        while True:
            feature = self.next_feature()
            if feature is None:
                return
            yield feature

    def open(self, source: Source) -> bool:
        """
        Bind the input source. A parser instance reads exactly one source.

        Raises:
            ParserError: if a different source is already bound
            ParseError: if a path cannot be opened
        """
        if self.state is not ParserState.UNOPENED:
            if self._is_bound_to(source):
                return True
            raise ParserError(
                f"Parser already bound to {self.source_name}; use a new parser for another source"
            )

        if isinstance(source, (str, os.PathLike)):
            path = os.fspath(source)
            try:
                # undecodable bytes become U+FFFD so one bad line cannot end the parse
                self._handle = open(path, 'r', errors='replace')
            except OSError as e:
                raise ParseError(f"Cannot open annotation file: {e}", path)
            self._owns_handle = True
            self.source_name = path
        elif hasattr(source, 'readline'):
            self._handle = source
            self.source_name = getattr(source, 'name', '<stream>')
        else:
            raise ParserError(f"Unsupported annotation source: {source!r}")

        self._source = source
        self.state = ParserState.OPEN
        logging.info(f"Opened annotation source: {self.source_name}")
        return True

    def close(self) -> None:
        """Release the bound source. The parser cannot be resumed afterwards."""
        if self._owns_handle and self._handle is not None:
            self._handle.close()
        self._handle = None
        if self.state is not ParserState.UNOPENED:
            self.state = ParserState.EXHAUSTED

    @property
    def dialect(self) -> Optional[Dialect]:
        return self.sample.dialect if self.sample else None

    @property
    def typelist(self) -> str:
        return self.sample.typelist if self.sample else ""

    @property
    def top_features(self) -> List[Feature]:
        """Top-level features, parsing the whole source first if needed."""
        if self._summary is None:
            self.parse_all()
        return list(self.assembler.top_features)

    def next_top_feature(self) -> Optional[Feature]:
        """
        Return the top-level features one at a time, parsing the whole source
        on the first call. Returns None after the last one, and the next call
        starts over from the first.
        """
        if self._top_index is None:
            if self._summary is None:
                self.parse_all()
            self._top_index = 0

        if self._top_index >= len(self.assembler.top_features):
            self._top_index = None
            return None
        feature = self.assembler.top_features[self._top_index]
        self._top_index += 1
        return feature

    @property
    def orphans(self) -> List[Feature]:
        return self.assembler.orphans

    @property
    def seq_ids(self) -> List[str]:
        """Sequence identifiers in the order they were first seen."""
        return list(self.assembler.seq_id_lengths)

    @property
    def duplicate_ids(self):
        return dict(self.assembler.duplicate_ids)

    @property
    def seq_id_lengths(self):
        return dict(self.assembler.seq_id_lengths)

    def next_feature(self) -> Optional[Feature]:
        """
        Pull the next converted feature, or None once the source is exhausted.

        Features are not attached to parents in this mode.
        """
        self._check_bound()
        if self.state is ParserState.EXHAUSTED:
            return None
        if self.state is ParserState.OPEN:
            self._start_streaming()

        for line_number, line in self._read_lines():
            parsed = classify_line(line)
            kind = parsed.kind

            if kind is LineKind.DATA:
                feature = self._convert(parsed.fields, line_number)
                if feature is not None:
                    return feature
            elif kind is LineKind.BLANK:
                continue
            elif kind is LineKind.COMMENT:
                self.comments.append(parsed.text)
            elif kind is LineKind.CLOSE_PRAGMA:
                # a well-formed file has no orphans left here, but check anyway
                self.assembler.reconcile()
            elif kind is LineKind.SEQUENCE_REGION:
                self.assembler.record_sequence_length(parsed.seq_id, parsed.length)
            elif kind is LineKind.SEQUENCE_HEADER:
                # embedded FASTA, no annotation follows
                break
            else:
                logging.warning(f"Line {line_number}: skipping {parsed.reason}: {parsed.text[:80]!r}")
                self.skipped_lines += 1

        self._finish_streaming()
        return None

    def parse_all(self) -> ParseSummary:
        """
        Parse the whole source into top-level features with attached children.

        Returns:
            ParseSummary; repeated calls return the same summary

        Raises:
            ParserError: if no source is bound
            DialectError: if the source is not recognizable as GFF
        """
        self._check_bound()
        if self._summary is not None:
            return self._summary
        if self.state is ParserState.OPEN:
            self._start_streaming()

        logging.info(f"Parsing {'simply' if self.config.simplify else 'fully'} "
                     f"{self.sample.dialect.value.upper()} file {self.source_name}")

        with self.monitor.phase_context("hierarchy_assembly") as metrics:
            while True:
                feature = self.next_feature()
                if feature is None:
                    break
                self.assembler.add_feature(feature)
                metrics.operations_count += 1
                if (self.config.enable_memory_monitoring
                        and metrics.operations_count % self.config.batch_size == 0):
                    self.monitor.check_memory_limit()

        with self.monitor.phase_context("orphan_reconciliation") as metrics:
            metrics.operations_count = self.assembler.reconcile()

        self._summary = self._build_summary()
        self._report(self._summary)
        self.monitor.log_performance_report()
        return self._summary

    def _check_bound(self) -> None:
        if self.state is ParserState.UNOPENED:
            raise ParserError("No annotation source loaded to parse")
        if self._failure is not None:
            raise self._failure
        if self.state is ParserState.EXHAUSTED and self.sample is None:
            raise ParserError("Parser was closed before parsing; use a new parser")

    def _is_bound_to(self, source: Source) -> bool:
        if isinstance(source, (str, os.PathLike)) and isinstance(self._source, (str, os.PathLike)):
            return os.fspath(source) == os.fspath(self._source)
        return source is self._source

    def _start_streaming(self) -> None:
        """Sample the head of the source, detect its dialect and set up conversion."""
        with self.monitor.phase_context("dialect_detection") as metrics:
            try:
                sampled = list(itertools.islice(self._handle, self.config.sample_lines))
            except (OSError, UnicodeDecodeError) as e:
                self._failure = ParseError(f"Failed to read annotation source: {e}", self.source_name)
                self.close()
                raise self._failure
            metrics.operations_count = len(sampled)

            try:
                self.sample = detect_dialect(sampled, self.config.dialect_override, self.source_name)
            except DialectError as e:
                self._failure = e
                self.close()
                raise

        self.flags = resolve_inclusion(self.sample, self.config)
        self.assembler.correct_boundaries = self.sample.dialect is Dialect.GTF
        context = ConversionContext(
            registry=self.registry,
            flags=self.flags,
            simplify=self.config.simplify,
            feature_class=self.feature_class,
            add_ancestor=self.assembler.add_ancestor,
            attach=self.assembler.attach,
        )
        self.converter = converter_for(self.sample.dialect, context)
        self._lines = enumerate(itertools.chain(sampled, self._handle), 1)
        self.state = ParserState.STREAMING

        logging.info(f"Detected {self.sample.dialect.value.upper()} dialect, "
                     f"sampled types: {self.sample.typelist}")

    def _read_lines(self) -> Iterator:
        while True:
            try:
                line_number, line = next(self._lines)
            except StopIteration:
                return
            except (OSError, UnicodeDecodeError) as e:
                raise ParseError(f"Failed to read annotation source: {e}",
                                 self.source_name, self.line_number + 1)
            self.line_number = line_number
            yield line_number, line

    def _finish_streaming(self) -> None:
        self.state = ParserState.EXHAUSTED
        if self._owns_handle and self._handle is not None:
            self._handle.close()
            self._handle = None

    def _convert(self, fields: Sequence[str], line_number: int) -> Optional[Feature]:
        if not self._wanted(fields, line_number):
            return None
        try:
            return self.converter.convert(fields)
        except ValueError as e:
            logging.warning(f"Line {line_number}: skipping {fields[2]} record: {e}")
            self.skipped_lines += 1
            return None

    def _wanted(self, fields: Sequence[str], line_number: int) -> bool:
        """Decide from the type column whether a record is converted at all."""
        feature_type = fields[2].lower()
        flags = self.flags

        if feature_type == 'cds':
            return flags.cds
        if feature_type == 'exon':
            return flags.exon
        if 'utr' in feature_type or 'untranslated' in feature_type:
            return flags.utr
        if 'codon' in feature_type:
            return flags.codon
        if feature_type.endswith('gene'):
            return flags.gene
        if 'transcript' in feature_type or 'rna' in feature_type:
            return True
        if feature_type in ('chromosome', 'contig', 'scaffold'):
            # a whole-sequence record, only its length is useful
            try:
                self.assembler.record_sequence_length(fields[0], int(fields[4]))
            except ValueError:
                logging.warning(f"Line {line_number}: invalid {feature_type} end coordinate {fields[4]!r}")
                self.skipped_lines += 1
            return False
        return not self.config.simplify

    def _build_summary(self) -> ParseSummary:
        return ParseSummary(
            dialect=self.sample.dialect.value,
            feature_count=self.assembler.feature_count,
            top_level_count=len(self.assembler.top_features),
            skipped_lines=self.skipped_lines,
            duplicate_ids=dict(self.assembler.duplicate_ids),
            orphan_ids=[feature.primary_id for feature in self.assembler.orphans],
            seq_id_lengths=dict(self.assembler.seq_id_lengths),
        )

    def _report(self, summary: ParseSummary) -> None:
        logging.info(f"Parsed {summary.feature_count} features into "
                     f"{summary.top_level_count} top-level features")
        if summary.skipped_lines:
            logging.warning(f"Skipped {summary.skipped_lines} malformed lines")
        if summary.orphan_ids:
            logging.warning(f"GFF errors: {summary.orphan_count} features could not be "
                            f"associated with reported parents!")
            logging.warning(f"List: {', '.join(summary.orphan_ids)}")
        if summary.duplicate_ids:
            logging.warning(f"GFF errors: {summary.duplicate_count} IDs were duplicated")
            logging.warning(f"List: {', '.join(summary.duplicate_ids)}")
