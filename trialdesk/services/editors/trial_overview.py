"""
Trial Overview Editor - PATCHes a therapeutic trial overview in place.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ...schemas.fallback import MutationOperation
from .base import DirectMutationEditor
from .config import TRIAL_OVERVIEW_PATH, TRIAL_PROBE_PATH


class TrialOverviewEditor(DirectMutationEditor):
    entity_type = "therapeutic_trial"
    target_table = "therapeutic_trial"
    operation = MutationOperation.PATCH
    probe_path = TRIAL_PROBE_PATH

    def build_payload(
        self,
        user_id: str,
        record_id: str,
        changes: Dict[str, Any],
        snapshot: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            **changes,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    async def send(self, record_id: str, payload: Dict[str, Any], headers: Dict[str, str]) -> Any:
        return await self.backend.request(
            "PATCH",
            f"{TRIAL_OVERVIEW_PATH}/{record_id}",
            json=payload,
            headers=headers,
            deadline_s=self.deadline_s,
        )
