"""OAuth authentication for the Google Sheets API.

This package runs the installed-app authorization-code flow through a
loopback listener and caches the resulting token under
~/.google_oauth_credentials.

Quick Start:
    ```python
    from googlesheets.auth import OAuthManager, TokenStorage, load_client_config

    manager = OAuthManager(
        storage=TokenStorage("my-tool"),
        client_config=load_client_config("client_secret.json"),
    )

    # Cached token, refreshed token, or interactive consent
    token = await manager.ensure_token()
    ```
"""

from googlesheets.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from googlesheets.auth.oauth_manager import (
    DEFAULT_SCOPES,
    SHEETS_SCOPE,
    OAuthManager,
    load_client_config,
)
from googlesheets.auth.token_storage import TokenStorage

__all__ = [
    "OAuthManager",
    "TokenStorage",
    "OAuthToken",
    "StoredToken",
    "TokenMetadata",
    "TokenStatus",
    "SHEETS_SCOPE",
    "DEFAULT_SCOPES",
    "load_client_config",
]
