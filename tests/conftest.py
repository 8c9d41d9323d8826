"""Shared pytest fixtures for googlesheets tests.

This module provides reusable fixtures for testing OAuth authorization,
token caching, and Sheets API mocks.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from googlesheets.auth.models import OAuthToken, StoredToken, TokenMetadata
from googlesheets.auth.oauth_manager import SHEETS_SCOPE

# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_credentials_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the default token cache directory at a temporary location."""
    creds_dir = tmp_path / "home" / ".google_oauth_credentials"
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS_DIR", str(creds_dir))
    return creds_dir


# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=[SHEETS_SCOPE],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=[SHEETS_SCOPE],
        token_type="Bearer",
    )


@pytest.fixture
def token_metadata() -> TokenMetadata:
    """Create token metadata for testing."""
    return TokenMetadata(
        cache_name="googlesheets-test",
        provider="google",
        created_at=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest.fixture
def stored_token(valid_token: OAuthToken, token_metadata: TokenMetadata) -> StoredToken:
    """Create a complete stored token for testing."""
    return StoredToken(
        version=1,
        metadata=token_metadata,
        token=valid_token,
    )


# =============================================================================
# Token Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for token storage tests."""
    token_dir = tmp_path / ".google_oauth_credentials"
    token_dir.mkdir(parents=True, mode=0o700)
    return token_dir


@pytest.fixture
def token_storage(temp_token_dir: Path):
    """Create a TokenStorage instance with temporary storage."""
    from googlesheets.auth.token_storage import TokenStorage

    return TokenStorage("googlesheets-test", credentials_dir=temp_token_dir)


# =============================================================================
# OAuth Manager Fixtures
# =============================================================================


@pytest.fixture
def client_config() -> dict:
    """Installed-app client config as found in client_secret.json."""
    return {
        "installed": {
            "client_id": "test-client-id.apps.googleusercontent.com",
            "client_secret": "test-client-secret",  # pragma: allowlist secret
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }


@pytest.fixture
def client_secrets_file(tmp_path: Path, client_config: dict) -> Path:
    """Write client_config to a client_secret.json file."""
    path = tmp_path / "client_secret.json"
    path.write_text(json.dumps(client_config))
    return path


@pytest.fixture
def oauth_manager(token_storage, client_config: dict):
    """Create an OAuthManager with temporary storage."""
    from googlesheets.auth.oauth_manager import OAuthManager

    return OAuthManager(storage=token_storage, client_config=client_config)


# =============================================================================
# Mock Google Credentials
# =============================================================================


@pytest.fixture
def mock_google_credentials() -> MagicMock:
    """Create a mock Google OAuth2 Credentials object."""
    mock_creds = MagicMock()
    mock_creds.token = "mock_access_token"
    mock_creds.refresh_token = "mock_refresh_token"
    mock_creds.expiry = datetime.now(timezone.utc) + timedelta(hours=1)
    mock_creds.expired = False
    mock_creds.valid = True
    mock_creds.scopes = [SHEETS_SCOPE]
    return mock_creds


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
