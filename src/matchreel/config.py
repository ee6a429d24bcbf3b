from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from .bindings import MATCH_TYPE
from .descriptors import DataSource, PatternKit, PatternKitPack
from .errors import ConfigError, DescriptorError
from .utils import import_string, load_yaml_file
from .validation import normalize_field_keys, validate_data_source_data, validate_settings_data

PLACEHOLDER_RE = re.compile(r"(?<!\?P)<([A-Za-z0-9_]+)>")


@dataclass
class HandlerSpec:
    """A type handler named by import strings, e.g. ``mypkg.models:Venue``."""

    type: str
    handler: str

    def resolve(self) -> Tuple[type, Callable[[str], Any]]:
        try:
            target_type = import_string(self.type)
            handler = import_string(self.handler)
        except (ImportError, AttributeError, ValueError) as exc:
            raise ConfigError(f"Cannot load type handler {self.handler} for {self.type}: {exc}") from exc
        if not isinstance(target_type, type):
            raise ConfigError(f"Handler target {self.type} is not a type")
        if not callable(handler):
            raise ConfigError(f"Handler {self.handler} is not callable")
        return target_type, handler


@dataclass
class EngineSettings:
    data_sources: List[Path] = field(default_factory=list)
    handlers: List[HandlerSpec] = field(default_factory=list)
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def resolve_handlers(self) -> List[Tuple[type, Callable[[str], Any]]]:
        return [spec.resolve() for spec in self.handlers]


def resolve_regex_tokens(raw_tokens: Mapping[str, str]) -> Dict[str, str]:
    """Expand ``<name>`` references between tokens, rejecting unknown names and cycles."""
    tokens = {str(key): str(value) for key, value in raw_tokens.items()}
    resolved: Dict[str, str] = {}

    def resolve(name: str, stack: List[str]) -> str:
        if name in resolved:
            return resolved[name]
        if name not in tokens:
            raise ValueError(f"Unknown regex token <{name}> referenced")
        if name in stack:
            cycle = " -> ".join(stack + [name])
            raise ValueError(f"Circular regex token reference detected: {cycle}")

        def replace(match: re.Match[str]) -> str:
            return resolve(match.group(1), stack + [name])

        expanded = PLACEHOLDER_RE.sub(replace, tokens[name])
        resolved[name] = expanded
        return expanded

    for token_name in tokens:
        resolve(token_name, [])
    return resolved


def expand_regex_tokens(text: str, tokens: Mapping[str, str]) -> str:
    if not tokens:
        return text

    def replace(match: re.Match[str]) -> str:
        token_name = match.group(1)
        if token_name not in tokens:
            raise ValueError(f"Unknown regex token <{token_name}> referenced in pattern: {text}")
        return tokens[token_name]

    return PLACEHOLDER_RE.sub(replace, text)


def build_pattern_kit(target_type: str, entry: Mapping[str, Any], tokens: Mapping[str, str]) -> PatternKit:
    regex = expand_regex_tokens(str(entry["pattern"]), tokens)
    return PatternKit.compile(
        target_type,
        regex,
        dict(entry.get("fields") or {}),
        flags=list(entry.get("flags") or []),
    )


def data_source_from_dict(data: Mapping[str, Any], *, origin: str = "<data source>") -> DataSource:
    """Validate and build a :class:`DataSource` from a parsed document."""
    report = validate_data_source_data(data)
    if not report.is_valid:
        raise ConfigError(f"Invalid data source {origin}:\n{report.summary()}")

    normalized = normalize_field_keys(data)
    tokens = resolve_regex_tokens(normalized.get("regex_tokens") or {})
    pack = PatternKitPack()
    try:
        for type_tag, entries in normalized["pattern_kits"].items():
            for entry in entries:
                pack.add_pattern_kit(build_pattern_kit(type_tag, entry, tokens))
    except (DescriptorError, ValueError) as exc:
        raise ConfigError(f"Invalid data source {origin}: {exc}") from exc

    return DataSource(
        id=str(normalized["id"]),
        name=normalized.get("name"),
        primary_type=normalized.get("primary_type") or MATCH_TYPE,
        enabled=bool(normalized.get("enabled", True)),
        pattern_kit_pack=pack,
    )


def read_document(path: Path, *, expand_vars: bool = True) -> Dict[str, Any]:
    """Read a YAML mapping; environment variables are expanded unless ``expand_vars`` is false."""
    try:
        data = load_yaml_file(path, expand_vars=expand_vars)
    except FileNotFoundError as exc:
        raise ConfigError(f"File not found: {path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def load_data_source(path: Path) -> DataSource:
    # patterns may contain "$name" sequences that are not variables
    return data_source_from_dict(read_document(path, expand_vars=False), origin=str(path))


def load_data_sources(paths: Iterable[Path]) -> List[DataSource]:
    return [load_data_source(path) for path in paths]


def settings_from_dict(data: Mapping[str, Any], *, base_dir: Optional[Path] = None) -> EngineSettings:
    report = validate_settings_data(data)
    if not report.is_valid:
        raise ConfigError(f"Invalid settings:\n{report.summary()}")

    def _resolve(raw: str) -> Path:
        candidate = Path(raw).expanduser()
        if base_dir is not None and not candidate.is_absolute():
            candidate = base_dir / candidate
        return candidate

    logging_cfg = data.get("logging") or {}
    log_file = logging_cfg.get("file")
    return EngineSettings(
        data_sources=[_resolve(raw) for raw in data.get("data_sources") or []],
        handlers=[HandlerSpec(type=item["type"], handler=item["handler"]) for item in data.get("handlers") or []],
        log_level=str(logging_cfg.get("level", "INFO")),
        log_file=_resolve(log_file) if log_file else None,
    )


def load_settings(path: Path) -> EngineSettings:
    return settings_from_dict(read_document(path), base_dir=path.parent)
