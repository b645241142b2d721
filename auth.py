"""
Service-account authentication for the Google Docs MCP server.

Turns a service-account JSON key into short-lived bearer tokens:
1. Sign a JWT assertion with the key (google-auth's RSASigner)
2. Exchange it at the token endpoint (jwt-bearer grant)
3. Cache the token until shortly before it expires

The cached token is the only shared mutable state in the server.
Refreshes are single-flight: concurrent callers that find the token
stale all await the same refresh task and share its result or failure.
"""

import asyncio
import json
import time
from pathlib import Path
from typing import Any, Callable

import httpx
from google.auth import crypt, jwt

import config
from logging_config import logger, log_api_call, log_api_result
from models import AuthError, CachedToken, ServiceAccountKey, TransientError
from retry import RETRYABLE_STATUS_CODES, with_retry


def load_service_account_key(path: str | Path) -> ServiceAccountKey:
    """
    Load and validate a service-account key file.

    Raises:
        AuthError: If the file is unreadable, not JSON, or misses required fields
    """
    path = Path(path)
    try:
        raw = path.read_text()
    except OSError as e:
        raise AuthError(f"Failed to read service account key file {path}: {e}") from e

    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise AuthError(f"Failed to parse service account key file {path}: {e}") from e

    if not isinstance(info, dict):
        raise AuthError(f"Service account key file {path} must contain a JSON object")

    key_type = info.get("type", "service_account")
    if key_type != "service_account":
        raise AuthError(
            f"Expected a service_account key in {path}, got type {key_type!r}"
        )

    missing = [f for f in ("client_email", "private_key") if not info.get(f)]
    if missing:
        raise AuthError(
            f"Service account key file {path} is missing: {', '.join(missing)}"
        )

    return ServiceAccountKey(
        client_email=info["client_email"],
        private_key=info["private_key"],
        token_uri=info.get("token_uri") or config.TOKEN_URL,
        private_key_id=info.get("private_key_id"),
        project_id=info.get("project_id"),
    )


def _build_signer(key: ServiceAccountKey) -> crypt.RSASigner:
    """Parse the PEM private key into an RS256 signer."""
    try:
        return crypt.RSASigner.from_service_account_info({
            "private_key": key.private_key,
            "private_key_id": key.private_key_id,
        })
    except (ValueError, TypeError) as e:
        raise AuthError(f"Failed to parse private key: {e}") from e


class CredentialManager:
    """
    Owns the cached bearer token for one service account.

    Args:
        key: Loaded service-account key
        http_client: Shared async HTTP client for the token exchange
        skew_seconds: Refresh when fewer than this many seconds remain
        clock: Returns the current epoch time (injectable for tests)
    """

    def __init__(
        self,
        key: ServiceAccountKey,
        http_client: httpx.AsyncClient,
        skew_seconds: float = config.TOKEN_EXPIRY_SKEW_SECS,
        clock: Callable[[], float] = time.time,
    ):
        self._key = key
        self._signer = _build_signer(key)
        self._http_client = http_client
        self._skew = skew_seconds
        self._clock = clock

        self._token: CachedToken | None = None
        self._lock = asyncio.Lock()
        self._refresh_task: asyncio.Task[CachedToken] | None = None

    @property
    def client_email(self) -> str:
        return self._key.client_email

    async def get_token(self) -> str:
        """
        Return a bearer token valid for at least `skew_seconds`.

        Raises:
            AuthError: Signing failed or the token endpoint rejected the assertion
            TransientError: Token endpoint unreachable after retries
        """
        token = self._token
        if token is not None and token.is_fresh(self._clock(), self._skew):
            return token.value

        async with self._lock:
            token = self._token
            if token is not None and token.is_fresh(self._clock(), self._skew):
                return token.value
            if self._refresh_task is None:
                self._refresh_task = asyncio.create_task(self._refresh())
                self._refresh_task.add_done_callback(self._refresh_done)
            task = self._refresh_task

        # Shielded: a cancelled waiter must not cancel the refresh others await
        token = await asyncio.shield(task)
        return token.value

    def invalidate(self) -> None:
        """Drop the cached token; the next get_token() refreshes."""
        if self._token is not None:
            logger.info("Discarding cached access token")
        self._token = None

    def _refresh_done(self, task: "asyncio.Task[CachedToken]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Mark the exception retrieved; every waiter re-raises it from its own await
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> CachedToken:
        token = await self._exchange_assertion()
        self._token = token
        return token

    def _build_assertion(self, now: int) -> str:
        """Sign the jwt-bearer assertion."""
        payload: dict[str, Any] = {
            "iss": self._key.client_email,
            "scope": config.DOCS_SCOPE,
            "aud": self._key.token_uri,
            "iat": now,
            "exp": now + config.JWT_LIFETIME_SECS,
        }
        try:
            return jwt.encode(self._signer, payload).decode("utf-8")
        except (ValueError, TypeError) as e:
            raise AuthError(f"Failed to create JWT: {e}") from e

    @with_retry()
    async def _exchange_assertion(self) -> CachedToken:
        """Exchange a freshly signed assertion for an access token."""
        now = int(self._clock())
        assertion = self._build_assertion(now)

        log_api_call("oauth2", "token", client_email=self._key.client_email)
        response = await self._http_client.post(
            self._key.token_uri,
            data={"grant_type": config.JWT_BEARER_GRANT, "assertion": assertion},
        )

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientError(
                f"Token endpoint unavailable: {response.status_code} - {response.text}",
                details={"status": response.status_code},
            )
        if not response.is_success:
            raise AuthError(
                f"Failed to obtain access token: {response.status_code} - {response.text}",
                details={"status": response.status_code},
            )

        try:
            body = response.json()
            access_token = body["access_token"]
            expires_in = int(body.get("expires_in", config.JWT_LIFETIME_SECS))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Failed to parse token response: {e}") from e

        log_api_result("oauth2", "token", response.status_code)
        logger.info(f"Obtained access token for {self._key.client_email} (expires in {expires_in}s)")
        return CachedToken(value=access_token, expires_at=now + expires_in)
