"""
Local Store - Schema Migrations

Each stored envelope carries the schema version its data was written with.
Reads upgrade older envelopes step by step through registered functions;
envelopes written by a newer client are refused rather than misread.
"""

from typing import Any, Callable, Dict, Tuple

MigrationFn = Callable[[Any], Any]


class MigrationRegistry:
    """Registry of (entity_type, from_version) -> upgrade step."""

    def __init__(self):
        self._steps: Dict[Tuple[str, int], MigrationFn] = {}
        self._current: Dict[str, int] = {}

    def register(self, entity_type: str, from_version: int):
        """Decorator registering an upgrade from `from_version` to `from_version + 1`."""
        def decorator(fn: MigrationFn) -> MigrationFn:
            self._steps[(entity_type, from_version)] = fn
            self._current[entity_type] = max(self._current.get(entity_type, 1), from_version + 1)
            return fn
        return decorator

    def current_version(self, entity_type: str) -> int:
        return self._current.get(entity_type, 1)

    def upgrade(self, entity_type: str, version: int, data: Any) -> Tuple[int, Any]:
        """
        Bring `data` up to the current version for its entity type.

        Raises:
            KeyError: a step between `version` and the current version is missing
        """
        target = self.current_version(entity_type)
        while version < target:
            step = self._steps[(entity_type, version)]
            data = step(data)
            version += 1
        return version, data


# Registry used by default; feature modules register their steps on import.
default_registry = MigrationRegistry()
