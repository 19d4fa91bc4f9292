"""
Store Module - Persistence for participants, history, settings and markers.

The store is passed explicitly to whatever needs it; there is no
module-level instance. Tests inject a MemorySubstrate.
"""

from .entity_store import EntityStore, NAMESPACE
from .substrate import Substrate, MemorySubstrate, JsonFileSubstrate
from .validation import ValidationResult, check_name

__all__ = [
    "EntityStore",
    "NAMESPACE",
    "Substrate",
    "MemorySubstrate",
    "JsonFileSubstrate",
    "ValidationResult",
    "check_name",
]
