from __future__ import annotations

import importlib
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


WHITESPACE_PATTERN = re.compile(r"\s+")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "y"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "n"})


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env(val) for key, val in value.items()}
    return value


def load_yaml_file(path: Path, *, expand_vars: bool = True) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return expand_env(data) if expand_vars else data


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """Parse a yes/no style string.

    Returns None if value is None or not a recognized boolean string.
    """
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return None


def import_string(dotted: str) -> Any:
    """Import an attribute given as ``package.module:attribute``."""
    module_name, sep, attribute = dotted.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got {dotted!r}")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attribute.split("."):
        target = getattr(target, part)
    return target
