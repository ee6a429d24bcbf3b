"""Statically declared field binding tables.

Pattern kits refer to fields by name. Each target type publishes a table of
the fields a kit may bind, together with the expected value type and the
accessors used to read and write the field. Tables are built once at import
time and never change afterwards.
"""

from __future__ import annotations

import datetime as dt
import operator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional

from .errors import DescriptorError
from .models import (
    Bitrate,
    Competition,
    FileSize,
    Fixture,
    Highlight,
    Link,
    Match,
    PartIdentifier,
    Resolution,
    Season,
    Team,
    VideoFile,
    VideoFileSource,
)


def _attribute_setter(name: str) -> Callable[[Any, Any], None]:
    def setter(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return setter


@dataclass(frozen=True, slots=True)
class FieldBinding:
    name: str
    expected_type: type
    setter: Callable[[Any, Any], None]
    getter: Callable[[Any], Any]
    default: Any = None

    def is_unset(self, entity: Any) -> bool:
        current = self.getter(entity)
        return current is self.default or current == self.default

    def assign(self, entity: Any, value: Any) -> None:
        self.setter(entity, value)


def bind(
    name: str,
    expected_type: type,
    *,
    setter: Optional[Callable[[Any, Any], None]] = None,
    getter: Optional[Callable[[Any], Any]] = None,
    default: Any = None,
) -> FieldBinding:
    """Declare a bindable field; accessors default to plain attribute access."""
    return FieldBinding(
        name=name,
        expected_type=expected_type,
        setter=setter or _attribute_setter(name),
        getter=getter or operator.attrgetter(name),
        default=default,
    )


@dataclass(frozen=True, slots=True)
class EntitySchema:
    """How to allocate a target type and which of its fields may be bound."""

    type_tag: str
    factory: Callable[[], Any]
    bindings: Mapping[str, FieldBinding] = field(default_factory=dict)

    @classmethod
    def declare(cls, type_tag: str, factory: Callable[[], Any], *bindings: FieldBinding) -> "EntitySchema":
        table: Dict[str, FieldBinding] = {}
        for binding in bindings:
            if binding.name in table:
                raise DescriptorError(f"Field '{binding.name}' declared twice for '{type_tag}'")
            table[binding.name] = binding
        return cls(type_tag=type_tag, factory=factory, bindings=MappingProxyType(table))

    def create(self) -> Any:
        return self.factory()

    def binding_for(self, field_name: str) -> Optional[FieldBinding]:
        return self.bindings.get(field_name)


class SchemaRegistry:
    """Lookup of entity schemas by type tag."""

    def __init__(self, schemas: Iterable[EntitySchema] = ()) -> None:
        self._schemas: Dict[str, EntitySchema] = {}
        for schema in schemas:
            self._schemas[schema.type_tag] = schema

    def __contains__(self, type_tag: object) -> bool:
        return type_tag in self._schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def get(self, type_tag: str) -> Optional[EntitySchema]:
        return self._schemas.get(type_tag)

    def require(self, type_tag: str) -> EntitySchema:
        schema = self._schemas.get(type_tag)
        if schema is None:
            known = ", ".join(sorted(self._schemas)) or "(none)"
            raise DescriptorError(f"Unknown target type '{type_tag}'; known types: {known}")
        return schema

    def with_schema(self, schema: EntitySchema) -> "SchemaRegistry":
        """Return a copy with ``schema`` added or replaced."""
        return SchemaRegistry([*self._schemas.values(), schema])


MATCH_TYPE = "match"
HIGHLIGHT_TYPE = "highlight"
FILE_SOURCE_TYPE = "video_file_source"
VIDEO_FILE_TYPE = "video_file"
URL_TYPE = "url"

PRIMARY_TYPES = (MATCH_TYPE, HIGHLIGHT_TYPE)


MATCH_SCHEMA = EntitySchema.declare(
    MATCH_TYPE,
    Match,
    bind("competition", Competition),
    bind("season", Season),
    bind("fixture", Fixture),
    bind("home_team", Team),
    bind("away_team", Team),
    bind("date", dt.date),
)

HIGHLIGHT_SCHEMA = EntitySchema.declare(
    HIGHLIGHT_TYPE,
    Highlight,
    bind("competition", Competition),
    bind("show_title", str),
    bind("date", dt.date),
)

FILE_SOURCE_SCHEMA = EntitySchema.declare(
    FILE_SOURCE_TYPE,
    VideoFileSource,
    bind("channel", str),
    bind("source", str),
    bind("approximate_duration", str),
    bind("languages", str),
    bind("resolution", Resolution),
    bind("media_container", str),
    bind("video_codec", str),
    bind("audio_codec", str),
    bind("video_bitrate", Bitrate),
    bind("audio_bitrate", Bitrate),
    bind("filesize", FileSize),
    bind("framerate", int),
    bind("audio_channels", str),
)

VIDEO_FILE_SCHEMA = EntitySchema.declare(
    VIDEO_FILE_TYPE,
    VideoFile,
    bind("title", PartIdentifier),
    bind("external_url", str),
)

URL_SCHEMA = EntitySchema.declare(
    URL_TYPE,
    Link,
    bind("href", str),
)

DEFAULT_SCHEMAS = SchemaRegistry(
    [MATCH_SCHEMA, HIGHLIGHT_SCHEMA, FILE_SOURCE_SCHEMA, VIDEO_FILE_SCHEMA, URL_SCHEMA]
)
