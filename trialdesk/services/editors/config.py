"""
Direct-mutation editor configuration.
"""
from ...schemas.fallback import SERVER_OWNED_FIELDS  # noqa: F401

# Mutation endpoints
TRIAL_OVERVIEW_PATH = "/api/v1/therapeutic/overview"
DRUG_NEW_VERSION_PATH = "/api/v1/drugs/overview"

# Known-good listing endpoints used as reachability probes
TRIAL_PROBE_PATH = "/api/v1/therapeutic/overview"
DRUG_PROBE_PATH = "/api/v1/drugs/all-drugs-with-data"

# Fields the editors add to a payload; stripped again for optimistic display
CONTROL_FIELDS = ("user_id", "original_drug_id", "is_updated_version")
