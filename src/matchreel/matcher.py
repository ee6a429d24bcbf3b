"""Apply a single pattern kit to text and build one entity per match.

Each match allocates a fresh instance of the kit's target type and binds the
captured groups onto it through the type's binding table. Binding is lenient:
a group that did not participate, an unknown field, a field that already
holds a value or text no strategy can convert only skips that field. Every
decision is recorded as a :class:`FieldOutcome` so callers can see what was
dropped.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional

from .bindings import DEFAULT_SCHEMAS, EntitySchema, SchemaRegistry
from .descriptors import GroupKey, PatternKit
from .logging_utils import render_fields_block
from .strategies import Ok, Outcome, Skipped, StrategyChain

LOGGER = logging.getLogger(__name__)

GROUP_NOT_MATCHED = "group-not-matched"
UNKNOWN_FIELD = "unknown-field"
ALREADY_SET = "already-set"
EMPTY_CAPTURE = "empty-capture"
NO_STRATEGY = "no-strategy"

# skips that point at a broken kit or lost data, as opposed to optional groups
_NOTEWORTHY_REASONS = frozenset({UNKNOWN_FIELD, NO_STRATEGY})


@dataclass(frozen=True, slots=True)
class FieldOutcome:
    field_name: str
    group: GroupKey
    result: Outcome

    @property
    def bound(self) -> bool:
        return isinstance(self.result, Ok)

    @property
    def reason(self) -> Optional[str]:
        return self.result.reason if isinstance(self.result, Skipped) else None

    def describe(self) -> str:
        if isinstance(self.result, Ok):
            return f"{self.field_name} <- group {self.group} via {self.result.strategy}"
        detail = f" ({self.result.detail})" if self.result.detail else ""
        return f"{self.field_name} <- group {self.group}: {self.result.reason}{detail}"


@dataclass(slots=True)
class ExtractedEntity:
    """An entity together with the outcome of every field binding attempted on it."""

    entity: Any
    target_type: str
    outcomes: List[FieldOutcome] = field(default_factory=list)

    @property
    def diagnostics(self) -> List[FieldOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.bound]

    @property
    def noteworthy(self) -> List[FieldOutcome]:
        return [outcome for outcome in self.outcomes if outcome.reason in _NOTEWORTHY_REASONS]


class EntityMatcher:
    def __init__(
        self,
        chain: Optional[StrategyChain] = None,
        schemas: Optional[SchemaRegistry] = None,
    ) -> None:
        self.chain = chain if chain is not None else StrategyChain()
        self.schemas = schemas if schemas is not None else DEFAULT_SCHEMAS

    def match(self, kit: PatternKit, text: str) -> Iterator[Any]:
        """Yield one populated entity per match of ``kit`` in ``text``."""
        return (extracted.entity for extracted in self.match_with_outcomes(kit, text))

    def match_with_outcomes(self, kit: PatternKit, text: str) -> Iterator[ExtractedEntity]:
        schema = self.schemas.require(kit.target_type)
        return self._scan(schema, kit, text)

    def match_all(self, kits: Iterable[PatternKit], text: str) -> Iterator[ExtractedEntity]:
        """Concatenate the matches of several kits, in kit order."""
        resolved = [(self.schemas.require(kit.target_type), kit) for kit in kits]
        for schema, kit in resolved:
            yield from self._scan(schema, kit, text)

    def _scan(self, schema: EntitySchema, kit: PatternKit, text: str) -> Iterator[ExtractedEntity]:
        for match in kit.pattern.finditer(text):
            extracted = self._populate(schema, kit, match)
            self._log_skips(kit, match, extracted)
            yield extracted

    def _populate(self, schema: EntitySchema, kit: PatternKit, match: re.Match[str]) -> ExtractedEntity:
        entity = schema.create()
        extracted = ExtractedEntity(entity=entity, target_type=schema.type_tag)
        for group, field_name in kit.fields.items():
            extracted.outcomes.append(self._bind_field(schema, entity, group, field_name, match))
        return extracted

    def _bind_field(
        self,
        schema: EntitySchema,
        entity: Any,
        group: GroupKey,
        field_name: str,
        match: re.Match[str],
    ) -> FieldOutcome:
        raw = match.group(group)
        if raw is None:
            return FieldOutcome(field_name, group, Skipped(GROUP_NOT_MATCHED))

        binding = schema.binding_for(field_name)
        if binding is None:
            return FieldOutcome(
                field_name,
                group,
                Skipped(UNKNOWN_FIELD, f"'{schema.type_tag}' has no bindable field '{field_name}'"),
            )
        if not binding.is_unset(entity):
            return FieldOutcome(field_name, group, Skipped(ALREADY_SET, repr(binding.getter(entity))))

        captured = raw.strip()
        if not captured:
            return FieldOutcome(field_name, group, Skipped(EMPTY_CAPTURE))

        result = self.chain.construct(captured, binding.expected_type)
        if isinstance(result, Ok):
            binding.assign(entity, result.value)
        return FieldOutcome(field_name, group, result)

    @staticmethod
    def _log_skips(kit: PatternKit, match: re.Match[str], extracted: ExtractedEntity) -> None:
        skipped = extracted.diagnostics
        if not skipped:
            return
        noteworthy = extracted.noteworthy
        level = logging.WARNING if noteworthy else logging.DEBUG
        if not LOGGER.isEnabledFor(level):
            return
        LOGGER.log(
            level,
            render_fields_block(
                "Field Binding Skipped",
                [
                    ("Target Type", kit.target_type),
                    ("Matched Text", match.group(0)),
                    *((outcome.field_name, outcome.describe()) for outcome in skipped),
                ],
            ),
        )
