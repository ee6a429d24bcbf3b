"""Turning captured text into typed field values.

A :class:`StrategyChain` tries its strategies in a fixed order and returns the
first value produced:

1. a handler registered for the target type (or one of its base classes) in a
   :class:`TypeHandlerRegistry`;
2. the target type's ``from_string`` classmethod, when it has one;
3. the target type's constructor called with the text.

An exception raised by a strategy, or a ``None`` result, means the strategy
does not apply and the next one is tried. When every strategy fails the chain
reports :class:`Skipped` instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple, Union

from .errors import RegistryFrozenError

LOGGER = logging.getLogger(__name__)

Handler = Callable[[str], Any]

FROM_STRING_METHOD = "from_string"

# bool("no") is True; these constructors do not parse their argument
_NON_PARSING_CONSTRUCTORS = frozenset({bool, object})


@dataclass(frozen=True, slots=True)
class Ok:
    value: Any
    strategy: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Skipped:
    reason: str
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok, Skipped]


class TypeHandlerRegistry:
    """Handlers keyed by target type, read-only once frozen."""

    def __init__(self, handlers: Iterable[Tuple[type, Handler]] = ()) -> None:
        self._handlers: Dict[type, Handler] = {}
        self._frozen = False
        self.register_all(handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, target_type: object) -> bool:
        return target_type in self._handlers

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, target_type: type, handler: Handler) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register a handler for {target_type.__name__}; registry is frozen"
            )
        self._handlers[target_type] = handler

    def register_all(self, handlers: Iterable[Tuple[type, Handler]]) -> None:
        for target_type, handler in handlers:
            self.register(target_type, handler)

    def freeze(self) -> "TypeHandlerRegistry":
        self._frozen = True
        return self

    def lookup(self, target_type: type) -> Optional[Handler]:
        """Return the handler for ``target_type``, falling back to a registered base class."""
        handler = self._handlers.get(target_type)
        if handler is not None:
            return handler
        if not isinstance(target_type, type):
            return None
        for registered, candidate in self._handlers.items():
            if issubclass(target_type, registered):
                return candidate
        return None


_PROCESS_REGISTRY: Optional[TypeHandlerRegistry] = None


def build_registry(extra: Iterable[Tuple[type, Handler]] = ()) -> TypeHandlerRegistry:
    """Build a frozen registry holding the built-in handlers plus ``extra``."""
    from .handlers import BUILTIN_HANDLERS

    registry = TypeHandlerRegistry(BUILTIN_HANDLERS)
    registry.register_all(extra)
    return registry.freeze()


def initialize_registry(extra: Iterable[Tuple[type, Handler]] = ()) -> TypeHandlerRegistry:
    """Create the process-wide registry. Only the first call has an effect."""
    global _PROCESS_REGISTRY
    if _PROCESS_REGISTRY is None:
        _PROCESS_REGISTRY = build_registry(extra)
    else:
        extra = list(extra)
        if extra:
            LOGGER.warning(
                "Type handler registry already initialized; ignoring %d extra handler(s)", len(extra)
            )
    return _PROCESS_REGISTRY


def default_registry() -> TypeHandlerRegistry:
    return initialize_registry()


class CreationStrategy:
    name = "strategy"

    def apply(self, text: str, target_type: type) -> Any:
        raise NotImplementedError


class UseRegisteredHandlers(CreationStrategy):
    name = "registered-handler"

    def __init__(self, registry: TypeHandlerRegistry) -> None:
        self.registry = registry

    def apply(self, text: str, target_type: type) -> Any:
        handler = self.registry.lookup(target_type)
        if handler is None:
            return None
        return handler(text)


class UseFromStringFactory(CreationStrategy):
    name = "from-string"

    def __init__(self, method_name: str = FROM_STRING_METHOD) -> None:
        self.method_name = method_name

    def apply(self, text: str, target_type: type) -> Any:
        factory = getattr(target_type, self.method_name, None)
        if not callable(factory):
            return None
        return factory(text)


class UseStringConstructor(CreationStrategy):
    name = "string-constructor"

    def apply(self, text: str, target_type: type) -> Any:
        if target_type in _NON_PARSING_CONSTRUCTORS:
            return None
        return target_type(text)


class StrategyChain:
    """Ordered fallback converters from raw text to typed values."""

    def __init__(
        self,
        registry: Optional[TypeHandlerRegistry] = None,
        strategies: Optional[Sequence[CreationStrategy]] = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        if strategies is None:
            strategies = (
                UseRegisteredHandlers(self.registry),
                UseFromStringFactory(),
                UseStringConstructor(),
            )
        self.strategies: Tuple[CreationStrategy, ...] = tuple(strategies)

    def construct(self, raw_text: str, target_type: type) -> Outcome:
        failures = []
        for strategy in self.strategies:
            try:
                value = strategy.apply(raw_text, target_type)
            except Exception as exc:  # noqa: BLE001 - a raising strategy does not apply
                failures.append(f"{strategy.name}: {exc}")
                continue
            if value is None:
                failures.append(f"{strategy.name}: not applicable")
                continue
            return Ok(value=value, strategy=strategy.name)
        return Skipped(reason="no-strategy", detail="; ".join(failures))

    def construct_value(self, raw_text: str, target_type: type) -> Any:
        outcome = self.construct(raw_text, target_type)
        return outcome.value if isinstance(outcome, Ok) else None
