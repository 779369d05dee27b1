from __future__ import annotations

from enum import Enum


SDK_VERSION = "0.1.0"

DEFAULT_BASE_URL = "https://api.safenest.dev"
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1_000


class Limits:
    """Shared hard limits."""

    MAX_CONTENT_LENGTH = 50_000
    MAX_MESSAGES_COUNT = 100
    MAX_BACKOFF_MS = 30_000
    MIN_TIMEOUT_MS = 1_000
    MAX_TIMEOUT_MS = 120_000
    MAX_RETRIES = 10
    MIN_API_KEY_LENGTH = 10


class ApiPath(str, Enum):
    """API endpoints, relative to the base URL."""

    BULLYING = "/api/v1/safety/bullying"
    GROOMING = "/api/v1/safety/grooming"
    UNSAFE = "/api/v1/safety/unsafe"
    EMOTIONS = "/api/v1/analysis/emotions"
    ACTION_PLAN = "/api/v1/guidance/action-plan"
    INCIDENT_REPORT = "/api/v1/reports/incident"
    ACCOUNT_DATA = "/api/v1/account/data"
    ACCOUNT_EXPORT = "/api/v1/account/export"


class Header:
    """Response headers read after every exchange."""

    REQUEST_ID = "x-request-id"
    MONTHLY_LIMIT = "x-monthly-limit"
    MONTHLY_USED = "x-monthly-used"
    MONTHLY_REMAINING = "x-monthly-remaining"
    RATELIMIT_LIMIT = "x-ratelimit-limit"
    RATELIMIT_REMAINING = "x-ratelimit-remaining"
    RATELIMIT_RESET = "x-ratelimit-reset"
    USAGE_WARNING = "x-usage-warning"
    RETRY_AFTER = "retry-after"
