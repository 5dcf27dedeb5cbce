"""
Local Store - Typed record stores

Fallback records and drug version mappings on top of LocalStore.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from ...schemas.fallback import SERVER_OWNED_FIELDS, FallbackStatus, LocalFallbackRecord, MutationOperation
from .migrations import default_registry
from .store import LocalStore

logger = logging.getLogger(__name__)

DRUG_UPDATE = "drug_update"
THERAPEUTIC_TRIAL_UPDATE = "therapeutic_trial_update"
DRUG_UPDATE_MAPPING = "drug_update_mapping"
FAVORITE_TRIAL = "favorite_trial"
COLUMN_SETTINGS = "column_settings"
SAVED_QUERY = "saved_query"
QUERY_LOG = "query_log"

# entity_type on the record -> entity type in the store
FALLBACK_ENTITY_TYPES = {
    "drug": DRUG_UPDATE,
    "therapeutic_trial": THERAPEUTIC_TRIAL_UPDATE,
}


def fallback_entity_type(entity_type: str) -> str:
    return FALLBACK_ENTITY_TYPES.get(entity_type, f"{entity_type}_update")


def _legacy_status(value: Any) -> str:
    try:
        return FallbackStatus(value).value
    except ValueError:
        return FallbackStatus.BACKEND_UNAVAILABLE.value


# v1 is the shape the browser client kept under `pending*Updates`.
# user_id is not part of v1; it is stamped from the replaying session.
@default_registry.register(THERAPEUTIC_TRIAL_UPDATE, 1)
def _upgrade_therapeutic_v1(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "record_id": str(data["overviewId"]),
        "entity_type": "therapeutic_trial",
        "target_table": "therapeutic_trial",
        "operation": MutationOperation.PATCH.value,
        "payload": dict(data.get("updateData") or {}),
        "snapshot": data.get("originalTrialData"),
        "status": _legacy_status(data.get("status")),
        "timestamp": data.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        "last_error": None,
        "attempts": 0,
    }


@default_registry.register(DRUG_UPDATE, 1)
def _upgrade_drug_v1(data: Dict[str, Any]) -> Dict[str, Any]:
    record_id = str(data.get("drugId") or data.get("drug_id") or data.get("id"))
    snapshot = data.get("originalDrugData")
    base = {k: v for k, v in (snapshot or {}).items() if k not in SERVER_OWNED_FIELDS}
    return {
        "record_id": record_id,
        "entity_type": "drug",
        "target_table": "drug_overview",
        "operation": MutationOperation.NEW_VERSION.value,
        "payload": {
            **base,
            **(data.get("updateData") or {}),
            "original_drug_id": record_id,
            "is_updated_version": True,
        },
        "snapshot": snapshot,
        "status": _legacy_status(data.get("status")),
        "timestamp": data.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        "last_error": None,
        "attempts": 0,
    }


class FallbackRecordStore:
    """One LocalFallbackRecord per (entity type, record id); saves overwrite."""

    def __init__(self, store: LocalStore):
        self.store = store

    async def save(self, record: LocalFallbackRecord) -> LocalFallbackRecord:
        await self.store.put(
            fallback_entity_type(record.entity_type),
            record.record_id,
            record.model_dump(mode="json"),
        )
        logger.info(f"Stored fallback record {record.entity_type}/{record.record_id} ({record.status.value})")
        return record

    async def get(self, entity_type: str, record_id: str) -> Optional[LocalFallbackRecord]:
        data = await self.store.get(fallback_entity_type(entity_type), record_id)
        return LocalFallbackRecord.model_validate(data) if data is not None else None

    async def list(self, entity_type: Optional[str] = None) -> List[LocalFallbackRecord]:
        entity_types = [entity_type] if entity_type else list(FALLBACK_ENTITY_TYPES)
        records = []
        for name in entity_types:
            for _, data in await self.store.items(fallback_entity_type(name)):
                records.append(LocalFallbackRecord.model_validate(data))
        records.sort(key=lambda r: r.timestamp.timestamp())
        return records

    async def remove(self, entity_type: str, record_id: str) -> bool:
        return await self.store.delete(fallback_entity_type(entity_type), record_id)


class DrugMappingStore:
    """Old drug id -> id of the version created by the POST-as-new-version save."""

    def __init__(self, store: LocalStore):
        self.store = store

    async def record(self, old_id: str, new_id: str) -> None:
        await self.store.put(
            DRUG_UPDATE_MAPPING,
            old_id,
            {"original_drug_id": str(old_id), "new_drug_id": str(new_id),
             "mapped_at": datetime.now(timezone.utc).isoformat()},
        )

    async def resolve(self, drug_id: str) -> str:
        """Follow mappings to the newest known version id."""
        current = str(drug_id)
        seen = {current}
        while True:
            mapping = await self.store.get(DRUG_UPDATE_MAPPING, current)
            if not mapping:
                return current
            nxt = str(mapping["new_drug_id"])
            if nxt in seen:
                logger.warning(f"Cycle in drug update mappings at {nxt}")
                return nxt
            seen.add(nxt)
            current = nxt

    async def all(self) -> Dict[str, str]:
        return {key: data["new_drug_id"] for key, data in await self.store.items(DRUG_UPDATE_MAPPING)}
