"""
Direct-mutation editors with local fallback
"""

from .base import DirectMutationEditor
from .trial_overview import TrialOverviewEditor
from .drug import DrugEditor, extract_new_id

__all__ = [
    "DirectMutationEditor",
    "TrialOverviewEditor",
    "DrugEditor",
    "extract_new_id",
]
