"""Core constants used across AmpMix modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

SOURCE_TAG = "amplitude-to-mixpanel"
DEFAULT_CUSTOM_ID_FIELD = "user_id"
DEFAULT_LOGS_DIR = Path("logs")
RESULTS_LOG_PREFIX = "amplitude-import"
SUPPORTED_RECORD_EXTENSIONS = (".json", ".jsonl", ".ndjson")

RECORD_TYPE_EVENT = "event"
RECORD_TYPE_USER = "user"
RECORD_TYPE_GROUP = "group"
RECORD_TYPES = (RECORD_TYPE_EVENT, RECORD_TYPE_USER, RECORD_TYPE_GROUP)

ORDER_ASCENDING = "ascending"
ORDER_DESCENDING = "descending"
SUPPORTED_FILE_ORDERS = (ORDER_ASCENDING, ORDER_DESCENDING)

MODE_MERGED = "merged"
MODE_PER_FILE = "per_file"
SUPPORTED_MODES = (MODE_MERGED, MODE_PER_FILE)

REGION_US = "US"
REGION_EU = "EU"
SUPPORTED_REGIONS = (REGION_US, REGION_EU)
API_HOSTS = {
    REGION_US: "https://api.mixpanel.com",
    REGION_EU: "https://api-eu.mixpanel.com",
}
IMPORT_ENDPOINTS = {
    RECORD_TYPE_EVENT: "/import",
    RECORD_TYPE_USER: "/engage",
    RECORD_TYPE_GROUP: "/groups",
}
EVENT_BATCH_SIZE = 2000
PROFILE_BATCH_SIZE = 2000
RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)
DEFAULT_MAX_RETRIES = 5
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60
INITIAL_BACKOFF_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2.0
MAX_BACKOFF_SECONDS = 30.0
HASH_ALGORITHM = "sha256"
COMPLETION_NOTICE = "have a great day!"
