"""Assemble complete event graphs from one document's text.

The orchestrator runs every pattern kit of a data source over the same text
and stitches the flat results back together, child to parent:

1. URLs are zipped onto video files;
2. video files are folded into packs, one pack per file source;
3. file sources are folded into the event.

The primary type must match at least once; everything else may be absent.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from .bindings import FILE_SOURCE_TYPE, PRIMARY_TYPES, URL_TYPE, VIDEO_FILE_TYPE
from .descriptors import DataSource, PatternKit
from .errors import DescriptorError, StructuralMismatchError
from .fabric import Bolt, ListFolder, PackFolder
from .logging_utils import render_fields_block, render_section_block
from .matcher import NO_STRATEGY, UNKNOWN_FIELD, EntityMatcher, FieldOutcome
from .models import Event, VideoFile, VideoFileSource

LOGGER = logging.getLogger(__name__)

ASSEMBLED_TYPES = (FILE_SOURCE_TYPE, VIDEO_FILE_TYPE, URL_TYPE)

Diagnostic = Tuple[str, FieldOutcome]


@dataclass(slots=True)
class ExtractionReport:
    """Materialized result of one extraction, with every skipped field binding."""

    data_source_id: str
    events: List[Event] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def noteworthy(self) -> List[Diagnostic]:
        return [
            (target_type, outcome)
            for target_type, outcome in self.diagnostics
            if outcome.reason in (UNKNOWN_FIELD, NO_STRATEGY)
        ]


def _attach_file_sources(event: Event, file_sources: List[VideoFileSource]) -> None:
    event.add_all_file_sources(file_sources)


class ExtractionOrchestrator:
    def __init__(self, matcher: Optional[EntityMatcher] = None) -> None:
        self.matcher = matcher if matcher is not None else EntityMatcher()

    def extract(self, data_source: DataSource, text: str) -> Iterator[Event]:
        """Return the events found in ``text``.

        The primary kits are checked eagerly, so a document without any
        primary match raises :class:`StructuralMismatchError` here rather
        than on first iteration. Everything else is evaluated lazily.
        """
        return self._assemble(data_source, text, sink=None)

    def extract_report(self, data_source: DataSource, text: str) -> ExtractionReport:
        report = ExtractionReport(data_source_id=data_source.id)
        report.events.extend(self._assemble(data_source, text, sink=report.diagnostics))
        self._log_report(data_source, report)
        return report

    def parse_all(self, data_sources: Iterable[DataSource], text: str) -> Iterator[Event]:
        """Yield events from every enabled data source whose primary kits match ``text``."""
        for data_source in data_sources:
            if not data_source.enabled:
                LOGGER.debug("Skipping disabled data source %s", data_source.display_name)
                continue
            try:
                events = self.extract(data_source, text)
            except StructuralMismatchError as exc:
                LOGGER.info(
                    render_fields_block(
                        "Data Source Did Not Match",
                        {
                            "Data Source": data_source.display_name,
                            "Primary Type": exc.target_type,
                            "Text": exc.text_preview,
                        },
                    )
                )
                continue
            yield from events

    def _assemble(
        self,
        data_source: DataSource,
        text: str,
        *,
        sink: Optional[List[Diagnostic]],
    ) -> Iterator[Event]:
        primary_type = data_source.primary_type
        if primary_type not in PRIMARY_TYPES:
            raise DescriptorError(
                f"Data source '{data_source.id}' has primary type '{primary_type}'; "
                f"events must be one of: {', '.join(PRIMARY_TYPES)}"
            )
        primary_kits = data_source.get_pattern_kits_for(primary_type)

        events = self._entities(primary_kits, text, sink)
        first = next(events, None)
        if first is None:
            raise StructuralMismatchError(primary_type, [kit.regex for kit in primary_kits], text)
        events = itertools.chain([first], events)

        file_sources = self._entities(data_source.get_pattern_kits_for(FILE_SOURCE_TYPE), text, sink)
        video_files = self._entities(data_source.get_pattern_kits_for(VIDEO_FILE_TYPE), text, sink)
        links = self._entities(data_source.get_pattern_kits_for(URL_TYPE), text, sink)

        ignored = [
            tag
            for tag in data_source.pattern_kit_pack.target_types()
            if tag != primary_type and tag not in ASSEMBLED_TYPES
        ]
        if ignored:
            LOGGER.debug(
                "Data source %s has kits for types outside the event graph: %s",
                data_source.display_name,
                ", ".join(ignored),
            )

        return (
            Bolt.of(links)
            .zip_into(video_files, VideoFile.set_external_url)
            .fold_into(file_sources, PackFolder(), VideoFileSource.add_video_file_pack)
            .fold_into(events, ListFolder(), _attach_file_sources)
            .stream()
        )

    def _entities(
        self,
        kits: List[PatternKit],
        text: str,
        sink: Optional[List[Diagnostic]],
    ) -> Iterator[Any]:
        for extracted in self.matcher.match_all(kits, text):
            if sink is not None:
                sink.extend((extracted.target_type, outcome) for outcome in extracted.diagnostics)
            yield extracted.entity

    @staticmethod
    def _log_report(data_source: DataSource, report: ExtractionReport) -> None:
        noteworthy = report.noteworthy
        level = logging.WARNING if noteworthy else logging.DEBUG
        if not LOGGER.isEnabledFor(level):
            return
        LOGGER.log(
            level,
            render_section_block(
                "Extraction Complete",
                [
                    ("Events", [event.title or "(untitled)" for event in report.events]),
                    (
                        "Lost Field Values",
                        [f"{target_type}.{outcome.describe()}" for target_type, outcome in noteworthy],
                    ),
                ],
                fields={
                    "Data Source": data_source.display_name,
                    "File Sources": sum(len(event.file_sources) for event in report.events),
                    "Skipped Bindings": len(report.diagnostics),
                },
            ),
        )
