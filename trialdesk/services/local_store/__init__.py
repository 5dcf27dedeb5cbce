"""
Local Store - namespaced, versioned client-side persistence
"""

from .store import LocalStore
from .migrations import MigrationRegistry, default_registry
from .records import FallbackRecordStore, DrugMappingStore, fallback_entity_type
from .legacy_import import import_legacy_entries

__all__ = [
    "LocalStore",
    "MigrationRegistry",
    "default_registry",
    "FallbackRecordStore",
    "DrugMappingStore",
    "fallback_entity_type",
    "import_legacy_entries",
]
