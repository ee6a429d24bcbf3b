from __future__ import annotations

from typing import Sequence

_MAX_TEXT_PREVIEW = 128


class MatchreelError(Exception):
    """Base class for errors raised by the extraction engine."""


class DescriptorError(MatchreelError):
    """Raised when a pattern kit or data source cannot be built."""


class ConfigError(MatchreelError):
    """Raised when a settings or data-source file cannot be loaded."""


class RegistryFrozenError(MatchreelError):
    """Raised when a handler is registered after the registry was frozen."""


def _preview(text: str) -> str:
    if len(text) < _MAX_TEXT_PREVIEW:
        return text
    return text.replace("_", "")[:_MAX_TEXT_PREVIEW] + "..."


class StructuralMismatchError(MatchreelError):
    """The primary pattern kits found nothing in the supplied text."""

    def __init__(self, target_type: str, patterns: Sequence[str], text: str) -> None:
        self.target_type = target_type
        self.patterns = list(patterns)
        self.text_preview = _preview(text)
        joined = "\n".join(self.patterns) if self.patterns else "(no pattern kits)"
        super().__init__(
            f"Could not extract '{target_type}' with pattern(s):\n{joined}\nfrom supplied text:\n{self.text_preview}"
        )
