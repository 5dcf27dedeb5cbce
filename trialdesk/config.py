"""
Configuration module for the trialdesk client.
"""
import os
from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file
load_dotenv()

# Backend connection
API_BASE_URL = os.getenv("TRIALDESK_API_BASE_URL", "http://localhost:5002").strip().rstrip("/")
HTTP_TIMEOUT = float(os.getenv("TRIALDESK_HTTP_TIMEOUT", "10.0"))

# Direct-mutation editors cancel their own request after this deadline
MUTATION_TIMEOUT_MS = int(os.getenv("TRIALDESK_MUTATION_TIMEOUT_MS", "5000"))

# Local store (namespaced, versioned replacement for ad hoc browser keys)
LOCAL_STORE_DIR = os.getenv("TRIALDESK_LOCAL_STORE_DIR", "./.trialdesk")
LOCAL_STORE_NAMESPACE = os.getenv("TRIALDESK_LOCAL_STORE_NAMESPACE", "trialdesk")
# Browsers cap localStorage at roughly 5 MiB per origin; keep the same ceiling
LOCAL_STORE_MAX_BYTES = int(os.getenv("TRIALDESK_LOCAL_STORE_MAX_BYTES", str(5 * 1024 * 1024)))

# Feature Flags
# Replaying fallback records is an explicit product decision; off unless enabled
FALLBACK_SYNC_ENABLED = os.getenv("FALLBACK_SYNC_ENABLED", "false").lower() in ("true", "1", "yes")
# Saved queries are written locally first and mirrored to the backend when enabled
SAVED_QUERY_REMOTE_SYNC = os.getenv("SAVED_QUERY_REMOTE_SYNC", "true").lower() in ("true", "1", "yes")

# Logging
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CLI identity (the library itself always takes an explicit UserSession)
CLI_USER_ID = os.getenv("TRIALDESK_USER_ID")
CLI_TOKEN = os.getenv("TRIALDESK_TOKEN")

logger.debug(f"trialdesk config resolved: base_url={API_BASE_URL} mutation_timeout_ms={MUTATION_TIMEOUT_MS}")


def get_client_settings():
    """Get current backend client configuration."""
    return {
        "api_base_url": API_BASE_URL,
        "http_timeout": HTTP_TIMEOUT,
        "mutation_timeout_ms": MUTATION_TIMEOUT_MS,
    }


def get_local_store_settings():
    """Get current local store configuration."""
    return {
        "dir": LOCAL_STORE_DIR,
        "namespace": LOCAL_STORE_NAMESPACE,
        "max_bytes": LOCAL_STORE_MAX_BYTES,
    }


def get_feature_flags():
    """Get current feature flag configuration."""
    return {
        "fallback_sync_enabled": FALLBACK_SYNC_ENABLED,
        "saved_query_remote_sync": SAVED_QUERY_REMOTE_SYNC,
        "log_json": LOG_JSON,
    }
