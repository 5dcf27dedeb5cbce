"""
Trialdesk services
"""

from .backend_client import BackendClient
from .change_submission import ChangeSubmissionClient
from .review_queue import ReviewQueueClient
from .activity_logs import ActivityLogClient
from .catalog import CatalogClient
from .auth_service import AuthService
from .preferences import PreferencesService
from .reconciliation import FallbackReconciler
from .editors import DirectMutationEditor, TrialOverviewEditor, DrugEditor

__all__ = [
    "BackendClient",
    "ChangeSubmissionClient",
    "ReviewQueueClient",
    "ActivityLogClient",
    "CatalogClient",
    "AuthService",
    "PreferencesService",
    "FallbackReconciler",
    "DirectMutationEditor",
    "TrialOverviewEditor",
    "DrugEditor",
]
