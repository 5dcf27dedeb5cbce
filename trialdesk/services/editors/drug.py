"""
Drug Editor

Drug edits are saved as a new version: the full snapshot merged with the
changes is POSTed, and the old id is mapped to the id the backend assigns.
"""
import logging
from typing import Any, Dict, Optional

from ...errors import LocalStoreError
from ...schemas.fallback import MutationOperation, SaveOutcome, SaveStatus
from ..backend_client import BackendClient
from ..local_store.records import DrugMappingStore, FallbackRecordStore
from .base import DirectMutationEditor
from .config import DRUG_NEW_VERSION_PATH, DRUG_PROBE_PATH, SERVER_OWNED_FIELDS

logger = logging.getLogger(__name__)


def extract_new_id(response: Any) -> Optional[str]:
    """Id of the created version; accepts a bare or wrapped entity."""
    if not isinstance(response, dict):
        return None
    for candidate in (response, response.get("data"), response.get("drug"), response.get("overview")):
        if isinstance(candidate, dict) and candidate.get("id") is not None:
            return str(candidate["id"])
    return None


class DrugEditor(DirectMutationEditor):
    entity_type = "drug"
    target_table = "drug_overview"
    operation = MutationOperation.NEW_VERSION
    probe_path = DRUG_PROBE_PATH

    def __init__(
        self,
        backend: BackendClient,
        fallback_store: FallbackRecordStore,
        mappings: DrugMappingStore,
        mutation_timeout_ms: Optional[int] = None,
    ):
        super().__init__(backend, fallback_store, mutation_timeout_ms=mutation_timeout_ms)
        self.mappings = mappings

    def build_payload(
        self,
        user_id: str,
        record_id: str,
        changes: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        base = {k: v for k, v in (snapshot or {}).items() if k not in SERVER_OWNED_FIELDS}
        return {
            **base,
            **changes,
            "original_drug_id": record_id,
            "is_updated_version": True,
            "user_id": user_id,
        }

    async def send(self, record_id: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        return await self.backend.request(
            "POST",
            DRUG_NEW_VERSION_PATH,
            json=payload,
            headers=headers,
            deadline_s=self.deadline_s,
        )

    async def on_remote_success(self, record_id: str, payload: Dict[str, Any], response: Any) -> SaveOutcome:
        new_id = extract_new_id(response)
        if new_id:
            try:
                await self.mappings.record(record_id, new_id)
            except LocalStoreError as e:
                # The remote save stands; only the lookup shortcut is lost
                logger.error(f"Could not store drug mapping {record_id} -> {new_id}: {e.message}")
        else:
            logger.warning(f"New drug version for {record_id} returned no id; mapping not stored")

        return SaveOutcome(
            status=SaveStatus.SAVED_REMOTE,
            record_id=record_id,
            new_record_id=new_id,
            message="Drug saved as a new version",
            response=response if isinstance(response, dict) else None,
        )
