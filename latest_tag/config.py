import os

APP_NAME = os.getenv("APP_NAME", "latest-tag-resolver")
DEFAULT_PORT = int(os.getenv("PORT", 8000))

# GitHub / API controls
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
GITHUB_WEB_URL = os.getenv("GITHUB_WEB_URL", "https://github.com").rstrip("/")
DEFAULT_USER_AGENT = os.getenv("DEFAULT_USER_AGENT", "latest-tag-resolver/1.0")
TAG_QUERY_LIMIT = int(os.getenv("TAG_QUERY_LIMIT", 20))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 20))

# cache keys are namespaced by feature so other features can share a store
FEATURE_NAME = os.getenv("FEATURE_NAME", "latest-tag-button")

# cache policies (days)
PUBLISH_STATE_MAX_AGE_DAYS = float(os.getenv("PUBLISH_STATE_MAX_AGE_DAYS", 1))
AHEAD_BY_MAX_AGE_DAYS = float(os.getenv("AHEAD_BY_MAX_AGE_DAYS", 1))
AHEAD_BY_STALE_WHILE_REVALIDATE_DAYS = float(os.getenv("AHEAD_BY_STALE_WHILE_REVALIDATE_DAYS", 2))

# cache storage
CACHE_BACKEND = os.getenv("CACHE_BACKEND", "memory").lower()
CACHE_DIR = os.getenv("CACHE_DIR", ".latest_tag_cache")

# workflow defaults
WORKFLOW_ACTIVITY_TIMEOUT_SECONDS = int(os.getenv("WORKFLOW_ACTIVITY_TIMEOUT_SECONDS", 120))

# Resilience settings
CIRCUIT_BREAKER_FAILURE_THRESHOLD = int(os.getenv("CIRCUIT_BREAKER_FAILURE_THRESHOLD", "3"))
CIRCUIT_BREAKER_RECOVERY_TIMEOUT = int(os.getenv("CIRCUIT_BREAKER_RECOVERY_TIMEOUT", "30"))
