"""
Local Store - Legacy key import

Moves a dump of the browser client's ad hoc localStorage keys into the
namespaced store. Values in the dump are the raw JSON strings the browser
held. Pending update records are stored as schema v1 and upgraded on read;
derived "as if saved" entity views are not imported since they are rebuilt
from the fallback records.
"""

from typing import Any, Dict, List
from datetime import datetime, timezone
import json
import logging
import uuid

from .records import (
    COLUMN_SETTINGS,
    DRUG_UPDATE,
    DRUG_UPDATE_MAPPING,
    FAVORITE_TRIAL,
    QUERY_LOG,
    SAVED_QUERY,
    THERAPEUTIC_TRIAL_UPDATE,
)
from .store import LocalStore

logger = logging.getLogger(__name__)

DERIVED_KEY_PREFIXES = ("drugUpdate_", "therapeuticTrial_")
DERIVED_KEYS = {"therapeuticTrials", "drugs"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _decode(raw: Any) -> Any:
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


async def _import_pending(store: LocalStore, entity_type: str, items: List[Dict[str, Any]], id_fields) -> int:
    count = 0
    for item in items or []:
        record_id = next((item.get(f) for f in id_fields if item.get(f)), None)
        if record_id is None:
            logger.warning(f"Skipping legacy {entity_type} entry without an id: {item}")
            continue
        await store.put(entity_type, str(record_id), item, schema_version=1)
        count += 1
    return count


async def _import_mappings(store: LocalStore, raw: Any) -> int:
    pairs = []
    if isinstance(raw, dict):
        pairs = list(raw.items())
    elif isinstance(raw, list):
        for entry in raw:
            old_id = entry.get("originalId") or entry.get("original_drug_id") or entry.get("oldId")
            new_id = entry.get("newId") or entry.get("new_drug_id")
            if old_id and new_id:
                pairs.append((old_id, new_id))
    for old_id, new_id in pairs:
        await store.put(
            DRUG_UPDATE_MAPPING,
            str(old_id),
            {"original_drug_id": str(old_id), "new_drug_id": str(new_id), "mapped_at": None},
        )
    return len(pairs)


async def _import_saved_queries(store: LocalStore, items: List[Dict[str, Any]]) -> int:
    for item in items or []:
        query_id = str(item.get("id") or uuid.uuid4().hex)
        query_data = item.get("query_data") or {}
        await store.put(SAVED_QUERY, query_id, {
            "id": query_id,
            "title": item.get("title") or "Untitled query",
            "description": item.get("description"),
            "query_type": item.get("query_type", "dashboard"),
            "query_data": query_data,
            "filters": item.get("filters") or query_data.get("filters") or {},
            "created_at": item.get("created_at") or _now(),
            "updated_at": item.get("updated_at") or item.get("created_at") or _now(),
            "synced": False,
        })
    return len(items or [])


async def _import_query_logs(store: LocalStore, items: List[Dict[str, Any]]) -> int:
    for item in items or []:
        log_id = str(item.get("id") or uuid.uuid4().hex)
        await store.put(QUERY_LOG, log_id, {
            "id": log_id,
            "query_id": item.get("queryId"),
            "query_title": item.get("queryTitle") or "",
            "query_description": item.get("queryDescription"),
            "query_type": item.get("queryType", "filter"),
            "result_count": item.get("resultCount"),
            "executed_at": item.get("executedAt") or item.get("timestamp") or _now(),
        })
    return len(items or [])


async def import_legacy_entries(store: LocalStore, entries: Dict[str, Any]) -> Dict[str, int]:
    """
    Import legacy localStorage entries.

    Args:
        store: Target namespaced store
        entries: localStorage key -> raw JSON string (or already decoded value)

    Returns:
        Count of imported values per legacy key, plus 'skipped'
    """
    report: Dict[str, int] = {"skipped": 0}
    for key, raw in entries.items():
        if key.startswith(DERIVED_KEY_PREFIXES) or key in DERIVED_KEYS:
            report["skipped"] += 1
            continue
        try:
            value = _decode(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping legacy key {key}: not valid JSON ({e})")
            report["skipped"] += 1
            continue

        if key == "pendingTherapeuticUpdates":
            report[key] = await _import_pending(store, THERAPEUTIC_TRIAL_UPDATE, value, ("overviewId",))
        elif key == "pendingDrugUpdates":
            report[key] = await _import_pending(store, DRUG_UPDATE, value, ("drugId", "drug_id", "id"))
        elif key == "drugUpdateMappings":
            report[key] = await _import_mappings(store, value)
        elif key == "favoriteTrials":
            for trial_id in value or []:
                await store.put(FAVORITE_TRIAL, str(trial_id), {"trial_id": str(trial_id)})
            report[key] = len(value or [])
        elif key == "trialColumnSettings":
            await store.put(COLUMN_SETTINGS, "trials", value)
            report[key] = 1
        elif key == "unifiedSavedQueries":
            report[key] = await _import_saved_queries(store, value)
        elif key == "queryExecutionLogs":
            report[key] = await _import_query_logs(store, value)
        else:
            logger.info(f"Ignoring unrecognized legacy key {key}")
            report["skipped"] += 1

    logger.info(f"Legacy import finished: {report}")
    return report
