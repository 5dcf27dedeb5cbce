"""
Fallback Reconciliation

Explicit, caller-driven handling of held fallback records: list them, discard
them, or replay them once. Nothing here runs on its own.
"""
import logging
from typing import Dict, List, Optional

from ..errors import BackendError
from ..schemas.fallback import LocalFallbackRecord, ReplayReport
from ..session import UserSession
from .editors.base import DirectMutationEditor
from .local_store.records import FallbackRecordStore

logger = logging.getLogger(__name__)


class FallbackReconciler:
    """
    Replays held mutations through their editor's remote path.

    Args:
        fallback_store: Where fallback records live
        editors: entity_type -> editor (e.g. {'drug': DrugEditor(...)})
    """

    def __init__(self, fallback_store: FallbackRecordStore, editors: Dict[str, DirectMutationEditor]):
        self.fallback_store = fallback_store
        self.editors = editors

    async def pending_fallbacks(self, entity_type: Optional[str] = None) -> List[LocalFallbackRecord]:
        return await self.fallback_store.list(entity_type)

    async def discard(self, entity_type: str, record_id: str) -> bool:
        removed = await self.fallback_store.remove(entity_type, str(record_id))
        if removed:
            logger.info(f"Discarded fallback record {entity_type}/{record_id}")
        return removed

    async def replay_once(self, session: UserSession) -> ReplayReport:
        """
        One pass over every held record, oldest first.

        Succeeded records are removed; failed ones keep their place with
        attempts incremented. Does nothing when the backend is unreachable.
        """
        session.require_user_id()
        records = await self.fallback_store.list()
        report = ReplayReport()
        if not records:
            return report

        reachable: Dict[str, bool] = {}
        for record in records:
            editor = self.editors.get(record.entity_type)
            if editor is None:
                logger.warning(f"No editor registered for {record.entity_type}; leaving {record.record_id} held")
                report.skipped.append(record.record_id)
                continue

            if editor.probe_path not in reachable:
                reachable[editor.probe_path] = await editor.backend.probe(editor.probe_path)
            if not reachable[editor.probe_path]:
                report.skipped.append(record.record_id)
                continue

            report.attempted += 1
            try:
                await editor.push(record, session)
            except BackendError as e:
                report.failed[record.record_id] = e.message
                await self.fallback_store.save(
                    record.model_copy(update={"attempts": record.attempts + 1, "last_error": e.message})
                )
                logger.warning(f"Replay failed for {record.entity_type}/{record.record_id}: {e.message}")
                continue

            await self.fallback_store.remove(record.entity_type, record.record_id)
            report.synced.append(record.record_id)
            logger.info(f"Replayed {record.entity_type}/{record.record_id}")

        logger.info(
            f"Replay pass: {len(report.synced)} synced, {len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report
