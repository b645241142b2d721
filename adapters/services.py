"""
Shared HTTP client and credential manager.

Used by all adapters. Loads the service-account key named by
GOOGLE_SERVICE_ACCOUNT_KEY and builds one CredentialManager around it.
Uses lru_cache so every tool call shares the same token cache and
connection pool.

The client applies a per-call timeout to prevent indefinite hangs
when Google APIs are slow or network connections stall.
"""

from functools import lru_cache

import httpx

__all__ = [
    "get_http_client",
    "get_credential_manager",
    "clear_service_cache",
]

import config
from auth import CredentialManager, load_service_account_key
from models import AuthError


@lru_cache(maxsize=1)
def get_http_client() -> httpx.AsyncClient:
    """Get the shared async HTTP client (cached)."""
    return httpx.AsyncClient(timeout=httpx.Timeout(config.HTTP_TIMEOUT_SECS))


@lru_cache(maxsize=1)
def get_credential_manager() -> CredentialManager:
    """
    Get the process-wide credential manager (cached).

    Raises:
        AuthError: GOOGLE_SERVICE_ACCOUNT_KEY is not set, or the key file
            cannot be loaded or its private key parsed
    """
    try:
        key_path = config.get_key_path()
    except KeyError as e:
        raise AuthError(
            f"{config.KEY_PATH_ENV} is not set. Set it to the path of a Google service "
            "account JSON key file and share the documents with the service account's email.",
            details={"env_var": config.KEY_PATH_ENV},
        ) from e
    key = load_service_account_key(key_path)
    return CredentialManager(key, get_http_client())


def clear_service_cache() -> None:
    """Clear cached client and manager. Useful for testing or after key rotation."""
    get_http_client.cache_clear()
    get_credential_manager.cache_clear()
