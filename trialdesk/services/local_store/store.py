"""
Local Store - Namespaced, versioned key-value persistence.

Replaces per-feature ad hoc keys with one abstraction:
- keys are `namespace:entity_type:id`
- values are envelopes `{schema_version, entity_type, key, saved_at, data}`
- one JSON document per namespace, written via temp file + atomic replace
- a byte quota mirrors browser storage limits; exceeding it fails the write

Same-key writes are last-write-wins; there is no conflict detection.
"""

from typing import Any, Dict, List, Optional, Tuple
import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from ...config import LOCAL_STORE_DIR, LOCAL_STORE_MAX_BYTES, LOCAL_STORE_NAMESPACE
from ...errors import LocalStoreError, LocalStoreWriteError
from .migrations import MigrationRegistry, default_registry

logger = logging.getLogger(__name__)

DOCUMENT_FORMAT_VERSION = 1


class LocalStore:
    """
    File-backed key-value store for one namespace.

    The document is re-read on every operation so separate instances over the
    same file see each other's writes. Read-modify-write sequences are
    serialized with an asyncio Lock per instance.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        migrations: Optional[MigrationRegistry] = None,
    ):
        self.namespace = namespace or LOCAL_STORE_NAMESPACE
        if ":" in self.namespace:
            raise ValueError(f"Namespace may not contain ':' ({self.namespace!r})")
        self.base_dir = Path(base_dir or LOCAL_STORE_DIR)
        self.path = self.base_dir / f"{self.namespace}.json"
        self.max_bytes = max_bytes if max_bytes is not None else LOCAL_STORE_MAX_BYTES
        self.migrations = migrations or default_registry
        self._lock = asyncio.Lock()

    def make_key(self, entity_type: str, key: str) -> str:
        if not entity_type or ":" in entity_type:
            raise ValueError(f"Invalid entity type {entity_type!r}")
        return f"{self.namespace}:{entity_type}:{key}"

    # ---- public API -------------------------------------------------------

    async def put(self, entity_type: str, key: str, data: Any, schema_version: Optional[int] = None) -> Dict[str, Any]:
        """Write one value; returns the stored envelope."""
        version = schema_version if schema_version is not None else self.migrations.current_version(entity_type)
        envelope = {
            "schema_version": version,
            "entity_type": entity_type,
            "key": str(key),
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        async with self._lock:
            document = self._load()
            document["entries"][self.make_key(entity_type, str(key))] = envelope
            self._write(document)
        logger.debug(f"Local store put {self.make_key(entity_type, str(key))} (v{version})")
        return envelope

    async def get(self, entity_type: str, key: str) -> Optional[Any]:
        async with self._lock:
            envelope = self._load()["entries"].get(self.make_key(entity_type, str(key)))
        if envelope is None:
            return None
        return self._unwrap(envelope)

    async def delete(self, entity_type: str, key: str) -> bool:
        async with self._lock:
            document = self._load()
            removed = document["entries"].pop(self.make_key(entity_type, str(key)), None)
            if removed is None:
                return False
            self._write(document)
        return True

    async def items(self, entity_type: str) -> List[Tuple[str, Any]]:
        """(key, data) pairs for one entity type, in insertion order."""
        async with self._lock:
            entries = self._load()["entries"]
        prefix = f"{self.namespace}:{entity_type}:"
        return [
            (envelope.get("key", full_key[len(prefix):]), self._unwrap(envelope))
            for full_key, envelope in entries.items()
            if full_key.startswith(prefix)
        ]

    async def clear(self, entity_type: Optional[str] = None) -> int:
        """Remove every entry of one entity type (or the whole namespace)."""
        async with self._lock:
            document = self._load()
            prefix = f"{self.namespace}:{entity_type}:" if entity_type else f"{self.namespace}:"
            doomed = [k for k in document["entries"] if k.startswith(prefix)]
            for full_key in doomed:
                del document["entries"][full_key]
            if doomed:
                self._write(document)
        return len(doomed)

    # ---- internals --------------------------------------------------------

    def _unwrap(self, envelope: Dict[str, Any]) -> Any:
        entity_type = envelope.get("entity_type")
        version = int(envelope.get("schema_version", 1))
        current = self.migrations.current_version(entity_type)
        if version > current:
            raise LocalStoreError(
                f"Stored {entity_type} entry {envelope.get('key')} has schema v{version}, "
                f"newer than supported v{current}"
            )
        if version == current:
            return envelope.get("data")
        try:
            _, data = self.migrations.upgrade(entity_type, version, envelope.get("data"))
        except KeyError as e:
            raise LocalStoreError(f"No migration path for {entity_type} from v{version}") from e
        return data

    def _empty_document(self) -> Dict[str, Any]:
        return {"format_version": DOCUMENT_FORMAT_VERSION, "namespace": self.namespace, "entries": {}}

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return self._empty_document()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted local store file {self.path}: {e}")
            raise LocalStoreError(f"Local store {self.path} is corrupted: {e}") from e
        except OSError as e:
            raise LocalStoreError(f"Local store {self.path} is unreadable: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("entries"), dict):
            raise LocalStoreError(f"Local store {self.path} has an unexpected layout")
        return document

    def _write(self, document: Dict[str, Any]) -> None:
        serialized = json.dumps(document, indent=2, default=str)
        size = len(serialized.encode("utf-8"))
        if size > self.max_bytes:
            raise LocalStoreWriteError(
                f"Local store quota exceeded ({size} bytes > {self.max_bytes} bytes)"
            )
        tmp_name = None
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{self.namespace}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(serialized)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(f"Failed to write local store {self.path}: {e}")
            raise LocalStoreWriteError(f"Local store write failed: {e}") from e
