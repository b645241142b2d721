"""
Configuration - Single Source of Truth

All API endpoints, auth parameters and retry budgets defined here.
Do not duplicate elsewhere.
"""

import os
from pathlib import Path

# Environment variable holding the path to the service-account JSON key
KEY_PATH_ENV = "GOOGLE_SERVICE_ACCOUNT_KEY"

# Optional log level override (DEBUG, INFO, WARNING, ERROR)
LOG_LEVEL_ENV = "GDOCS_MCP_LOG_LEVEL"

# --- Google endpoints ---
DOCS_API_URL = "https://docs.googleapis.com/v1"

# Used when the key file carries no token_uri
TOKEN_URL = "https://oauth2.googleapis.com/token"

DOCS_SCOPE = "https://www.googleapis.com/auth/documents"

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# --- Token lifetime ---
# Requested assertion lifetime (seconds)
JWT_LIFETIME_SECS = 3600

# Refresh this many seconds before the token actually expires
TOKEN_EXPIRY_SKEW_SECS = 60

# --- Transport ---
# Per-call timeout for every Google API request (seconds)
HTTP_TIMEOUT_SECS = 30.0

# --- Retry budget for transient failures (network, 429, 5xx) ---
RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_MS = 1000
RETRY_BACKOFF_MULTIPLIER = 2.0


def document_url(document_id: str) -> str:
    """Browser URL for a document."""
    return f"https://docs.google.com/document/d/{document_id}/edit"


def get_key_path() -> Path:
    """
    Resolve the service-account key path from the environment.

    Raises:
        KeyError: If the environment variable is unset or empty
    """
    value = os.environ.get(KEY_PATH_ENV, "").strip()
    if not value:
        raise KeyError(KEY_PATH_ENV)
    return Path(value).expanduser()


def get_log_level() -> str:
    """Log level from the environment, defaulting to INFO."""
    return os.environ.get(LOG_LEVEL_ENV, "INFO").strip() or "INFO"
