"""Matchreel core package.

Matchreel turns loosely formatted sports-video announcements into structured
event graphs. The package is organized into focused modules:

- **models**: Domain entities (matches, file sources, video files) and value types
- **bindings**: Per-type tables of the fields a pattern kit may populate
- **strategies**: Strategy chain and handler registry turning captured text into values
- **handlers**: Built-in parsers for fixtures, seasons, dates and flags
- **descriptors**: Pattern kits, pattern kit packs and data sources
- **matcher**: Applies one pattern kit to text and builds entities
- **fabric**: Zip/fold algebra re-assembling independently matched sequences
- **orchestrator**: Builds complete event graphs for a data source
- **config** / **validation**: YAML loading and schema validation
- **cli**: ``matchreel extract`` and ``matchreel validate``

The main entry point is the ``ExtractionOrchestrator`` class.
"""

from .config import load_data_source, load_settings
from .descriptors import DataSource, PatternKit, PatternKitPack
from .errors import (
    ConfigError,
    DescriptorError,
    MatchreelError,
    RegistryFrozenError,
    StructuralMismatchError,
)
from .orchestrator import ExtractionOrchestrator, ExtractionReport
from .strategies import StrategyChain, TypeHandlerRegistry, initialize_registry
from .version import __version__

__all__ = [
    "__version__",
    "ConfigError",
    "DataSource",
    "DescriptorError",
    "ExtractionOrchestrator",
    "ExtractionReport",
    "MatchreelError",
    "PatternKit",
    "PatternKitPack",
    "RegistryFrozenError",
    "StrategyChain",
    "StructuralMismatchError",
    "TypeHandlerRegistry",
    "initialize_registry",
    "load_data_source",
    "load_settings",
]
