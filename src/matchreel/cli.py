from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from .config import EngineSettings, load_data_sources, load_settings, read_document
from .errors import ConfigError, DescriptorError, StructuralMismatchError
from .logging_utils import configure_logging
from .matcher import EntityMatcher
from .orchestrator import ExtractionOrchestrator, ExtractionReport
from .strategies import StrategyChain, initialize_registry
from .summary_table import EventTableRenderer, event_to_dict, render_validation_report
from .validation import ValidationReport, validate_data_source_data, validate_settings_data
from .version import __version__

CONSOLE = Console()
LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_STRUCTURAL_MISMATCH = 2

STDIN_MARKER = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchreel",
        description="Extract sports-video availability announcements into structured events.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=Path, help="Also write log records to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract events from an announcement text")
    extract.add_argument(
        "--data-source",
        dest="data_sources",
        type=Path,
        action="append",
        default=[],
        help="Data source YAML file (repeatable; defaults to the ones listed in --settings)",
    )
    extract.add_argument("--settings", type=Path, help="Engine settings YAML file")
    extract.add_argument("--json", action="store_true", help="Print events as JSON instead of tables")
    extract.add_argument("input", help="Text file to read, or '-' for standard input")
    extract.set_defaults(handler=run_extract)

    validate = subparsers.add_parser("validate", help="Validate data source or settings files")
    validate.add_argument(
        "--kind",
        choices=("auto", "data-source", "settings"),
        default="auto",
        help="File kind; 'auto' treats documents declaring pattern_kits as data sources",
    )
    validate.add_argument("files", nargs="+", type=Path)
    validate.set_defaults(handler=run_validate)

    return parser


def _read_input(source: str) -> str:
    if source == STDIN_MARKER:
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read input {source}: {exc}") from exc


def _setup(args: argparse.Namespace, settings: EngineSettings) -> None:
    level = "DEBUG" if args.verbose else settings.log_level
    log_file = getattr(args, "log_file", None) or settings.log_file
    configure_logging(level, log_file=log_file)


def _collect_reports(
    orchestrator: ExtractionOrchestrator,
    data_sources: Sequence,
    text: str,
) -> List[ExtractionReport]:
    reports: List[ExtractionReport] = []
    mismatches: List[StructuralMismatchError] = []
    for data_source in data_sources:
        if not data_source.enabled:
            LOGGER.debug("Skipping disabled data source %s", data_source.display_name)
            continue
        try:
            reports.append(orchestrator.extract_report(data_source, text))
        except StructuralMismatchError as exc:
            LOGGER.debug("Data source %s did not match", data_source.display_name)
            mismatches.append(exc)
    if not reports and mismatches:
        raise mismatches[0]
    return reports


def run_extract(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.settings) if args.settings else EngineSettings()
    except ConfigError as exc:
        CONSOLE.print(f"[bold red]Settings error:[/bold red] {escape(str(exc))}")
        return EXIT_CONFIG_ERROR
    _setup(args, settings)

    try:
        registry = initialize_registry(settings.resolve_handlers())
        data_sources = load_data_sources(args.data_sources or settings.data_sources)
        text = _read_input(args.input)
    except ConfigError as exc:
        CONSOLE.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        return EXIT_CONFIG_ERROR

    if not data_sources:
        CONSOLE.print("[bold red]No data source given.[/bold red] Pass --data-source or list them in --settings.")
        return EXIT_CONFIG_ERROR

    orchestrator = ExtractionOrchestrator(EntityMatcher(StrategyChain(registry)))
    try:
        reports = _collect_reports(orchestrator, data_sources, text)
    except StructuralMismatchError as exc:
        CONSOLE.print(f"[bold red]No '{exc.target_type}' found in input.[/bold red]")
        CONSOLE.print(escape(exc.text_preview), style="dim")
        return EXIT_STRUCTURAL_MISMATCH
    except DescriptorError as exc:
        CONSOLE.print(f"[bold red]Data source error:[/bold red] {escape(str(exc))}")
        return EXIT_CONFIG_ERROR

    if not reports:
        CONSOLE.print("[bold red]Every data source is disabled.[/bold red] Set enabled: true on at least one.")
        return EXIT_CONFIG_ERROR

    if args.json:
        payload = [
            {"data_source": report.data_source_id, "events": [event_to_dict(event) for event in report.events]}
            for report in reports
        ]
        sys.stdout.write(json.dumps(payload, indent=2) + "\n")
        return EXIT_OK

    renderer = EventTableRenderer(CONSOLE)
    for report in reports:
        renderer.render_report(report)
    return EXIT_OK


def _validate_file(path: Path, kind: str) -> ValidationReport:
    data = read_document(path, expand_vars=False)
    if kind == "settings" or (kind == "auto" and "pattern_kits" not in data):
        return validate_settings_data(data)
    return validate_data_source_data(data)


def run_validate(args: argparse.Namespace) -> int:
    _setup(args, EngineSettings(log_level="WARNING"))
    exit_code = EXIT_OK
    for path in args.files:
        try:
            report = _validate_file(path, args.kind)
        except ConfigError as exc:
            CONSOLE.print(f"[bold red]✗ {escape(str(exc))}[/bold red]")
            exit_code = EXIT_CONFIG_ERROR
            continue
        render_validation_report(report, origin=str(path), console=CONSOLE)
        if not report.is_valid:
            exit_code = EXIT_CONFIG_ERROR
    return exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
