from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from jsonschema import Draft7Validator

from .bindings import (
    DEFAULT_SCHEMAS,
    FILE_SOURCE_TYPE,
    PRIMARY_TYPES,
    URL_TYPE,
    VIDEO_FILE_TYPE,
    SchemaRegistry,
)
from .errors import DescriptorError
from .utils import collapse_whitespace


@dataclass(slots=True)
class ValidationIssue:
    """Represents a single validation problem."""

    severity: str
    path: str
    message: str
    code: str


@dataclass(slots=True)
class ValidationReport:
    """Aggregates validation warnings and errors."""

    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, path: str, message: str, code: str) -> None:
        self.errors.append(ValidationIssue("error", path, message, code))

    def warning(self, path: str, message: str, code: str) -> None:
        self.warnings.append(ValidationIssue("warning", path, message, code))

    def summary(self) -> str:
        return "\n".join(describe_issue(issue) for issue in self.errors)


_GROUP_KEY_PATTERN = r"^(\d+|[A-Za-z_][A-Za-z0-9_]*)$"

_PATTERN_KIT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["pattern", "fields"],
    "properties": {
        "pattern": {"type": "string", "minLength": 1},
        "description": {"type": "string"},
        "flags": {"type": "array", "items": {"type": "string"}},
        "fields": {
            "type": "object",
            "minProperties": 1,
            "propertyNames": {"pattern": _GROUP_KEY_PATTERN},
            "additionalProperties": {"type": "string", "minLength": 1},
        },
    },
    "additionalProperties": False,
}

DATA_SOURCE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "pattern_kits"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "enabled": {"type": "boolean"},
        "primary_type": {"type": "string", "minLength": 1},
        "regex_tokens": {"type": "object", "additionalProperties": {"type": "string"}},
        "pattern_kits": {
            "type": "object",
            "minProperties": 1,
            "additionalProperties": {"type": "array", "items": _PATTERN_KIT_SCHEMA},
        },
    },
    "additionalProperties": False,
}

SETTINGS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "data_sources": {"type": "array", "items": {"type": "string", "minLength": 1}},
        "handlers": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["type", "handler"],
                "properties": {
                    "type": {"type": "string", "pattern": r"^[\w.]+:[\w.]+$"},
                    "handler": {"type": "string", "pattern": r"^[\w.]+:[\w.]+$"},
                },
                "additionalProperties": False,
            },
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
                "file": {"type": "string"},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}


def _format_jsonschema_path(path: Sequence[Any]) -> str:
    if not path:
        return "<root>"
    tokens: List[str] = []
    for part in path:
        if isinstance(part, int):
            if tokens:
                tokens[-1] = f"{tokens[-1]}[{part}]"
            else:
                tokens.append(f"[{part}]")
        else:
            tokens.append(str(part))
    return ".".join(tokens) if tokens else "<root>"


def normalize_field_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy whose pattern kit ``fields`` keys are strings.

    YAML reads ``{1: channel}`` with an integer key, which JSON schema cannot
    describe.
    """
    normalized = dict(data)
    kits_by_type = data.get("pattern_kits")
    if not isinstance(kits_by_type, Mapping):
        return normalized
    normalized_kits: Dict[str, Any] = {}
    for type_tag, kits in kits_by_type.items():
        if not isinstance(kits, list):
            normalized_kits[str(type_tag)] = kits
            continue
        converted = []
        for kit in kits:
            if isinstance(kit, Mapping) and isinstance(kit.get("fields"), Mapping):
                kit = {**kit, "fields": {str(key): value for key, value in kit["fields"].items()}}
            converted.append(kit)
        normalized_kits[str(type_tag)] = converted
    normalized["pattern_kits"] = normalized_kits
    return normalized


def _validate_schema(data: Any, schema: Dict[str, Any], report: ValidationReport) -> None:
    validator = Draft7Validator(schema)
    for error in sorted(validator.iter_errors(data), key=lambda exc: list(exc.path)):
        report.error(_format_jsonschema_path(error.absolute_path), error.message, "schema")


def validate_data_source_data(
    data: Mapping[str, Any],
    schemas: Optional[SchemaRegistry] = None,
) -> ValidationReport:
    """Validate a data-source document against the schema and semantic rules."""
    report = ValidationReport()
    normalized = normalize_field_keys(data)
    _validate_schema(normalized, DATA_SOURCE_SCHEMA, report)
    if report.errors:
        return report
    _validate_data_source_semantics(normalized, schemas or DEFAULT_SCHEMAS, report)
    return report


def _validate_data_source_semantics(
    data: Dict[str, Any],
    schemas: SchemaRegistry,
    report: ValidationReport,
) -> None:
    from .config import build_pattern_kit, resolve_regex_tokens

    try:
        tokens = resolve_regex_tokens(data.get("regex_tokens") or {})
    except ValueError as exc:
        report.error("regex_tokens", str(exc), "regex-token")
        tokens = {}

    kits_by_type: Dict[str, List[Dict[str, Any]]] = data["pattern_kits"]
    primary_type = data.get("primary_type") or "match"
    if primary_type not in PRIMARY_TYPES:
        report.error(
            "primary_type",
            f"'{primary_type}' cannot be a primary type; expected one of: {', '.join(PRIMARY_TYPES)}",
            "primary-type",
        )
    elif not kits_by_type.get(primary_type):
        report.error(
            "pattern_kits",
            f"No pattern kits declared for the primary type '{primary_type}'",
            "primary-missing",
        )

    for type_tag, kits in kits_by_type.items():
        schema = schemas.get(type_tag)
        if schema is None:
            report.error(
                f"pattern_kits.{type_tag}",
                f"Unknown target type '{type_tag}'; known types: {', '.join(sorted(schemas))}",
                "unknown-type",
            )
            continue
        for index, kit in enumerate(kits):
            path = f"pattern_kits.{type_tag}[{index}]"
            for field_name in kit["fields"].values():
                if schema.binding_for(field_name) is None:
                    report.error(
                        f"{path}.fields",
                        f"'{type_tag}' has no bindable field '{field_name}'",
                        "unknown-field",
                    )
            try:
                build_pattern_kit(type_tag, kit, tokens)
            except (DescriptorError, ValueError) as exc:
                report.error(f"{path}.pattern", str(exc), "pattern")

    if kits_by_type.get(VIDEO_FILE_TYPE) and not kits_by_type.get(URL_TYPE):
        report.warning(
            "pattern_kits",
            "Video file kits are declared without URL kits; files will have no external URL",
            "missing-urls",
        )
    if kits_by_type.get(VIDEO_FILE_TYPE) and not kits_by_type.get(FILE_SOURCE_TYPE):
        report.warning(
            "pattern_kits",
            "Video file kits are declared without file source kits; files cannot be attached",
            "missing-file-sources",
        )
    if data.get("enabled") is False:
        report.warning("enabled", "Data source is disabled", "disabled")


def validate_settings_data(data: Mapping[str, Any]) -> ValidationReport:
    report = ValidationReport()
    _validate_schema(dict(data), SETTINGS_SCHEMA, report)
    return report


def describe_issue(issue: ValidationIssue) -> str:
    return collapse_whitespace(f"[{issue.code}] {issue.path}: {issue.message}")
