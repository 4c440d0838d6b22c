"""Dedoublon - Moteur de rapprochement probabiliste et de dédoublonnage d'enregistrements."""

from dedoublon.config import (
    Algorithm,
    ConfigError,
    ConfigFileError,
    DedoublonError,
    FieldConfig,
    MatchRule,
    MergeStrategy,
)
from dedoublon.io_excel import ExcelFileError
from dedoublon.matching import MatchingEngine
from dedoublon.registry import MatcherRegistry, RuleRegistry

__all__ = [
    "__version__",
    "Algorithm",
    "ConfigError",
    "ConfigFileError",
    "DedoublonError",
    "ExcelFileError",
    "FieldConfig",
    "MatchRule",
    "MatchingEngine",
    "MatcherRegistry",
    "MergeStrategy",
    "RuleRegistry",
]

__version__ = "0.1.0"
