"""
Shared pytest fixtures for the Google Docs MCP server tests.

Fixtures are loaded from the fixtures/ directory at project root.
Raw API JSON is parsed with the real adapter parser so tests exercise
the same DocumentModel the server renders.

HTTP mocking is provided here too: a FakeGoogleApi behind
httpx.MockTransport, wired into the module-level service getters.
"""

import json
from pathlib import Path
from typing import AsyncIterator, Generator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from adapters.docs import parse_document
from auth import CredentialManager
from models import DocumentModel, ServiceAccountKey
from tests.mock_utils import TOKEN_URI, FakeGoogleApi

# Project root for fixture loading
PROJECT_ROOT = Path(__file__).parent.parent
FIXTURES_DIR = PROJECT_ROOT / "fixtures"

SERVICE_ACCOUNT_EMAIL = "docs-bot@test-project.iam.gserviceaccount.com"


def load_fixture(category: str, name: str) -> dict:
    """
    Load a JSON fixture by category and name.

    Example:
        load_fixture("docs", "basic")  # loads fixtures/docs/basic.json
    """
    fixture_path = FIXTURES_DIR / category / f"{name}.json"
    with open(fixture_path) as f:
        return json.load(f)


# ============================================================================
# Docs Fixtures
# ============================================================================

@pytest.fixture
def basic_doc() -> DocumentModel:
    """Two top-level tabs plus a child tab: headings, lists, table, links."""
    return parse_document(load_fixture("docs", "basic"))


@pytest.fixture
def legacy_doc() -> DocumentModel:
    """Pre-tabs document format (body at the top level)."""
    return parse_document(load_fixture("docs", "legacy"))


@pytest.fixture
def empty_doc() -> DocumentModel:
    return parse_document(load_fixture("docs", "empty"))


# ============================================================================
# Credentials
# ============================================================================

@pytest.fixture(scope="session")
def private_key_pem() -> str:
    """Throwaway RSA key, generated once per test session."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture
def key_info(private_key_pem: str) -> dict:
    """Contents of a service-account JSON key file."""
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": SERVICE_ACCOUNT_EMAIL,
        "client_id": "1234567890",
        "token_uri": TOKEN_URI,
    }


@pytest.fixture
def key_file(tmp_path: Path, key_info: dict) -> Path:
    path = tmp_path / "service-account.json"
    path.write_text(json.dumps(key_info))
    return path


@pytest.fixture
def service_account_key(key_info: dict) -> ServiceAccountKey:
    return ServiceAccountKey(
        client_email=key_info["client_email"],
        private_key=key_info["private_key"],
        token_uri=key_info["token_uri"],
        private_key_id=key_info["private_key_id"],
        project_id=key_info["project_id"],
    )


# ============================================================================
# HTTP Mocking Infrastructure
# ============================================================================

@pytest.fixture
def fake_api() -> FakeGoogleApi:
    """
    In-memory Google endpoints. Seed documents before the call under test:

        def test_something(fake_api, patch_services):
            fake_api.documents["doc1"] = "Hello\\n"
    """
    return FakeGoogleApi()


@pytest_asyncio.fixture
async def patch_services(
    fake_api: FakeGoogleApi,
    service_account_key: ServiceAccountKey,
) -> AsyncIterator[CredentialManager]:
    """
    Point every module-level service getter at the fake API.

    Yields the shared CredentialManager.
    """
    client = fake_api.client()
    manager = CredentialManager(service_account_key, client)
    with patch("adapters.docs.get_http_client", return_value=client), \
         patch("adapters.docs.get_credential_manager", return_value=manager), \
         patch("tools.execute.get_credential_manager", return_value=manager):
        yield manager
    await client.aclose()


@pytest.fixture
def no_retry_sleep() -> Generator[AsyncMock, None, None]:
    """
    Make retry backoff instant. The mock records requested delays:

        assert [c.args[0] for c in no_retry_sleep.call_args_list] == [1.0, 2.0]
    """
    with patch("retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep
