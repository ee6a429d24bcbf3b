from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import Event, Match, VideoFileSource
from .orchestrator import ExtractionReport
from .validation import ValidationReport

SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"
DIM_COLOR = "dim"

SUCCESS_SYMBOL = "✓"
WARNING_SYMBOL = "⚠"
ERROR_SYMBOL = "✗"


def _text(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "value") and not isinstance(value, (int, str)):
        return str(value.value)
    return str(value)


def file_source_summary(file_source: VideoFileSource) -> str:
    parts = [
        _text(file_source.channel),
        _text(file_source.resolution),
        _text(file_source.source),
        _text(file_source.languages),
    ]
    return " / ".join(part for part in parts if part) or "(unnamed source)"


def event_to_dict(event: Event) -> Dict[str, Any]:
    """Plain-data view of an event graph, suitable for JSON output."""
    data: Dict[str, Any] = {
        "type": type(event).__name__.lower(),
        "title": event.title,
        "competition": _text(event.competition) or None,
        "date": event.date.isoformat() if event.date else None,
    }
    if isinstance(event, Match):
        data.update(
            {
                "season": _text(event.season) or None,
                "fixture": _text(event.fixture) or None,
                "home_team": _text(event.home_team) or None,
                "away_team": _text(event.away_team) or None,
            }
        )
    data["file_sources"] = [
        {
            "summary": file_source_summary(file_source),
            "channel": file_source.channel,
            "resolution": _text(file_source.resolution) or None,
            "languages": file_source.languages,
            "packs": [
                [{"part": _text(video_file.slot), "url": video_file.external_url} for video_file in pack.all_files()]
                for pack in file_source.video_file_packs
            ],
        }
        for file_source in event.file_sources
    ]
    return data


class EventTableRenderer:
    """Renders extraction results as Rich tables."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def build_event_table(self, events: Iterable[Event]) -> Table:
        table = Table(title="Extracted Events", show_lines=True)
        table.add_column("Event", style="bold")
        table.add_column("Date")
        table.add_column("File Source")
        table.add_column("Parts")
        for event in events:
            date = event.date.isoformat() if event.date else ""
            if not event.file_sources:
                table.add_row(escape(event.title), date, f"[{DIM_COLOR}](none)[/{DIM_COLOR}]", "")
                continue
            for index, file_source in enumerate(event.file_sources):
                parts: List[str] = []
                for pack in file_source.video_file_packs:
                    for video_file in pack.all_files():
                        symbol = SUCCESS_SYMBOL if video_file.external_url else WARNING_SYMBOL
                        parts.append(f"{symbol} {_text(video_file.slot) or 'Part'}")
                table.add_row(
                    escape(event.title) if index == 0 else "",
                    date if index == 0 else "",
                    escape(file_source_summary(file_source)),
                    "\n".join(parts),
                )
        return table

    def build_diagnostics_table(self, report: ExtractionReport) -> Optional[Table]:
        noteworthy = report.noteworthy
        if not noteworthy:
            return None
        table = Table(title="Lost Field Values", title_style=f"bold {WARNING_COLOR}")
        table.add_column("Type")
        table.add_column("Field")
        table.add_column("Reason")
        for target_type, outcome in noteworthy:
            detail = getattr(outcome.result, "detail", None) or ""
            table.add_row(target_type, outcome.field_name, escape(f"{outcome.reason} {detail}".strip()))
        return table

    def render_report(self, report: ExtractionReport) -> None:
        self.console.print(self.build_event_table(report.events))
        diagnostics = self.build_diagnostics_table(report)
        if diagnostics is not None:
            self.console.print(diagnostics)


def render_validation_report(report: ValidationReport, *, origin: str, console: Optional[Console] = None) -> None:
    console = console or Console()
    if not report.errors and not report.warnings:
        console.print(f"[bold {SUCCESS_COLOR}]{SUCCESS_SYMBOL} {escape(origin)} passed validation.[/bold {SUCCESS_COLOR}]")
        return

    table = Table(title=escape(origin))
    table.add_column("", width=2)
    table.add_column("Path")
    table.add_column("Problem")
    table.add_column("Code", style=DIM_COLOR)
    for issue in report.errors:
        table.add_row(f"[{ERROR_COLOR}]{ERROR_SYMBOL}[/{ERROR_COLOR}]", escape(issue.path), escape(issue.message), issue.code)
    for issue in report.warnings:
        table.add_row(f"[{WARNING_COLOR}]{WARNING_SYMBOL}[/{WARNING_COLOR}]", escape(issue.path), escape(issue.message), issue.code)
    console.print(table)
    if report.is_valid:
        console.print(f"[bold {SUCCESS_COLOR}]{SUCCESS_SYMBOL} {escape(origin)} passed validation (with warnings).[/bold {SUCCESS_COLOR}]")
