"""Extraction descriptors: pattern kits and the packs that group them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from .bindings import MATCH_TYPE
from .errors import DescriptorError

GroupKey = Union[int, str]

_FLAG_NAMES = {
    "IGNORECASE": re.IGNORECASE,
    "I": re.IGNORECASE,
    "MULTILINE": re.MULTILINE,
    "M": re.MULTILINE,
    "DOTALL": re.DOTALL,
    "S": re.DOTALL,
    "VERBOSE": re.VERBOSE,
    "X": re.VERBOSE,
    "ASCII": re.ASCII,
    "A": re.ASCII,
    "UNICODE": re.UNICODE,
    "U": re.UNICODE,
}


def parse_flags(names: Optional[Iterable[str]]) -> int:
    flags = 0
    for name in names or ():
        try:
            flags |= _FLAG_NAMES[str(name).strip().upper()]
        except KeyError as exc:
            raise DescriptorError(f"Unknown regex flag: {name}") from exc
    return flags


def _normalize_group_key(key: object) -> GroupKey:
    if isinstance(key, bool):
        raise DescriptorError(f"Invalid capture group reference: {key!r}")
    if isinstance(key, int):
        return key
    text = str(key).strip()
    if text.isdigit():
        return int(text)
    return text


@dataclass(frozen=True)
class PatternKit:
    """A compiled pattern plus the mapping from its capture groups to field names."""

    target_type: str
    pattern: re.Pattern[str]
    fields: Mapping[GroupKey, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        normalized: Dict[GroupKey, str] = {}
        for raw_key, field_name in dict(self.fields).items():
            key = _normalize_group_key(raw_key)
            if isinstance(key, int):
                if key < 1 or key > self.pattern.groups:
                    raise DescriptorError(
                        f"Pattern for '{self.target_type}' has {self.pattern.groups} group(s); "
                        f"cannot bind group {key} to '{field_name}'"
                    )
            elif key not in self.pattern.groupindex:
                raise DescriptorError(
                    f"Pattern for '{self.target_type}' has no group named '{key}' (field '{field_name}')"
                )
            normalized[key] = str(field_name)
        object.__setattr__(self, "fields", MappingProxyType(normalized))

    @classmethod
    def compile(
        cls,
        target_type: str,
        regex: str,
        fields: Mapping[object, str],
        *,
        flags: Union[int, Sequence[str], None] = 0,
    ) -> "PatternKit":
        if flags is None or isinstance(flags, int):
            flag_value = flags or 0
        else:
            flag_value = parse_flags(flags)
        try:
            pattern = re.compile(regex, flag_value)
        except re.error as exc:
            raise DescriptorError(f"Invalid pattern for '{target_type}': {exc}") from exc
        return cls(target_type=target_type, pattern=pattern, fields=fields)

    @property
    def regex(self) -> str:
        return self.pattern.pattern


class PatternKitPack:
    """Pattern kits for one source format, grouped by target type."""

    def __init__(self, kits: Iterable[PatternKit] = ()) -> None:
        self._kits: Dict[str, List[PatternKit]] = {}
        self.add_all_pattern_kits(kits)

    def __len__(self) -> int:
        return sum(len(kits) for kits in self._kits.values())

    def __iter__(self) -> Iterator[PatternKit]:
        for kits in self._kits.values():
            yield from kits

    def __repr__(self) -> str:
        counts = ", ".join(f"{tag}={len(kits)}" for tag, kits in self._kits.items())
        return f"PatternKitPack({counts})"

    def add_pattern_kit(self, kit: PatternKit) -> None:
        self._kits.setdefault(kit.target_type, []).append(kit)

    def add_all_pattern_kits(self, kits: Iterable[PatternKit]) -> None:
        for kit in kits:
            self.add_pattern_kit(kit)

    def get_pattern_kits_for(self, target_type: str) -> List[PatternKit]:
        return list(self._kits.get(target_type, ()))

    def target_types(self) -> List[str]:
        return list(self._kits)


@dataclass
class DataSource:
    """A source format: an identifier plus the pattern kits that parse it."""

    id: str
    pattern_kit_pack: PatternKitPack
    name: Optional[str] = None
    primary_type: str = MATCH_TYPE
    enabled: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def get_pattern_kits_for(self, target_type: str) -> List[PatternKit]:
        return self.pattern_kit_pack.get_pattern_kits_for(target_type)
