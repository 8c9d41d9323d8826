"""OAuth manager for the Google Sheets API.

This module implements the installed-app authorization-code flow with
google-auth-oauthlib:

1. A loopback HTTP listener is bound on an ephemeral port.
2. The user's browser is sent to Google's consent page with that
   listener as the redirect URI.
3. The first request carrying the matching state and a code ends the
   wait; the code is exchanged for a token.
4. The token is cached through TokenStorage and reused on later runs.

Environment Variables:
    GOOGLE_OAUTH_REDIRECT_HOST: Loopback host for the callback listener
        (default: 127.0.0.1).
"""

import asyncio
import json
import logging
import os
import secrets
import webbrowser
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from googlesheets.auth.models import OAuthToken, StoredToken, TokenMetadata, TokenStatus
from googlesheets.auth.token_storage import TokenStorage
from googlesheets.exceptions import AuthorizationError, ClientConfigError

logger = logging.getLogger(__name__)

# If modifying these scopes, delete the previously cached token file.
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
DEFAULT_SCOPES = [SHEETS_SCOPE]

DEFAULT_OAUTH_HOST = "127.0.0.1"
CALLBACK_PATH = "/"
TOKEN_URI = "https://oauth2.googleapis.com/token"

SUCCESS_PAGE = (
    b"<html><body><h1>Success</h1>"
    b"<p>Authorized. You can close this window and return to the terminal.</p>"
    b"</body></html>"
)
FAILURE_PAGE = (
    b"<html><body><h1>Authorization Failed</h1>"
    b"<p>Please close this window and try again.</p></body></html>"
)


def load_client_config(path: str | Path) -> dict:
    """Load an OAuth client secrets file downloaded from Google Cloud Console.

    Args:
        path: Path to client_secret.json.

    Returns:
        Client config dict with an "installed" or "web" section.

    Raises:
        ClientConfigError: If the file is missing, not JSON, or has no client section.
    """
    path = Path(path)
    try:
        with open(path) as f:
            config = json.load(f)
    except OSError as e:
        raise ClientConfigError(str(path), e.strerror or str(e)) from e
    except json.JSONDecodeError as e:
        raise ClientConfigError(str(path), f"invalid JSON: {e}") from e

    if not isinstance(config, dict) or not ("installed" in config or "web" in config):
        raise ClientConfigError(str(path), "expected an 'installed' or 'web' section")

    section = config.get("installed") or config.get("web")
    if not isinstance(section, dict):
        raise ClientConfigError(str(path), "client section must be a JSON object")
    for key in ("client_id", "client_secret"):
        if not section.get(key):
            raise ClientConfigError(str(path), f"missing '{key}'")

    return config


class _CallbackServer(HTTPServer):
    """Loopback server that records the outcome of the OAuth redirect."""

    def __init__(self, server_address: tuple[str, int], expected_state: str) -> None:
        super().__init__(server_address, _OAuthCallbackHandler)
        self.expected_state = expected_state
        self.auth_code: str | None = None
        self.error: str | None = None

    @property
    def done(self) -> bool:
        return self.auth_code is not None or self.error is not None


class _OAuthCallbackHandler(BaseHTTPRequestHandler):
    """HTTP handler for the OAuth redirect."""

    server: _CallbackServer

    def log_message(self, format: str, *args) -> None:
        """Suppress HTTP server logs."""
        pass

    def _respond(self, status: int, body: bytes = b"") -> None:
        self.send_response(status)
        self.send_header("Content-type", "text/html")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)
        self.wfile.flush()

    def do_GET(self) -> None:
        """Handle GET request from OAuth redirect."""
        request_parsed = urlparse(self.path)

        # Browsers ask for /favicon.ico alongside the redirect
        if request_parsed.path != CALLBACK_PATH:
            self._respond(404)
            return

        query_params = parse_qs(request_parsed.query)

        state = query_params.get("state", [""])[0]
        if state != self.server.expected_state:
            logger.warning("State doesn't match: %s", self.path)
            self._respond(400, FAILURE_PAGE)
            return

        if "error" in query_params:
            self.server.error = query_params["error"][0]
            self._respond(400, FAILURE_PAGE)
            return

        code = query_params.get("code", [""])[0]
        if not code:
            logger.warning("No code from web")
            self._respond(400, FAILURE_PAGE)
            return

        self.server.auth_code = code
        self._respond(200, SUCCESS_PAGE)


class OAuthManager:
    """OAuth authentication manager for the Google Sheets API.

    Handles the authorization-code flow, token exchange, caching and
    refresh for a single cache file.

    Attributes:
        storage: Token storage for the cache file.
        client_config: Google client secrets ("installed" or "web" section).
        scopes: Scopes requested and required from cached tokens.

    Example:
        ```python
        manager = OAuthManager(
            storage=TokenStorage("googlesheets-example"),
            client_config=load_client_config("client_secret.json"),
        )

        # Cached token if usable, interactive consent otherwise
        token = await manager.ensure_token()
        ```
    """

    def __init__(
        self,
        storage: TokenStorage,
        client_config: dict | None = None,
        scopes: list[str] | None = None,
    ) -> None:
        """Initialize OAuth manager.

        Args:
            storage: Token storage instance.
            client_config: Parsed client secrets. Only needed to authorize or refresh.
            scopes: OAuth scopes. Uses DEFAULT_SCOPES if not specified.
        """
        self.storage = storage
        self.client_config = client_config
        self.scopes = list(scopes) if scopes else list(DEFAULT_SCOPES)

    @property
    def token_path(self) -> Path:
        """Get the token cache file path."""
        return self.storage.token_path

    def has_valid_tokens(self) -> bool:
        """Check if a valid, unexpired token is cached."""
        return self.storage.get_status() == TokenStatus.VALID

    def get_status(self) -> tuple[TokenStatus, StoredToken | None]:
        """Get the status of the cached token.

        Returns:
            Tuple of (TokenStatus, StoredToken or None).
        """
        status = self.storage.get_status()
        stored = self.storage.retrieve() if status != TokenStatus.MISSING else None
        return (status, stored)

    def _client_section(self) -> dict:
        """Return the "installed" or "web" section of the client config."""
        if not self.client_config:
            raise ValueError(
                "OAuth client config required. Download client_secret.json from "
                "Google Cloud Console and load it with load_client_config()."
            )
        return self.client_config.get("installed") or self.client_config["web"]

    def _credentials_to_token(self, credentials: Credentials) -> OAuthToken:
        """Convert google-auth Credentials to OAuthToken.

        Args:
            credentials: Google OAuth2 credentials.

        Returns:
            OAuthToken with all credential data.
        """
        if credentials.expiry:
            expires_at = credentials.expiry
            # google-auth uses naive UTC datetimes
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=expires_at,
            scopes=list(credentials.scopes or self.scopes),
            token_type="Bearer",
        )

    def _token_to_credentials(self, token: OAuthToken) -> Credentials:
        """Convert OAuthToken to google-auth Credentials.

        Client ID and secret are added from the client config when available
        so the credentials can refresh themselves.
        """
        section = self._client_section() if self.client_config else {}
        expiry = token.expires_at.astimezone(timezone.utc).replace(tzinfo=None)
        return Credentials(  # nosec B106 - token_uri is public Google OAuth endpoint
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=section.get("token_uri", TOKEN_URI),
            client_id=section.get("client_id"),
            client_secret=section.get("client_secret"),
            scopes=token.scopes,
            expiry=expiry,
        )

    async def authenticate(self) -> OAuthToken:
        """Perform the interactive authorization-code flow and cache the token.

        Returns:
            OAuthToken containing access and refresh tokens.

        Raises:
            ValueError: If no client config was provided.
            AuthorizationError: If the user denies consent or the exchange fails.
            TokenCacheError: If the token cannot be written.
        """
        self._client_section()

        loop = asyncio.get_running_loop()
        credentials = await loop.run_in_executor(None, self._run_oauth_flow)

        token = self._credentials_to_token(credentials)
        metadata = TokenMetadata(cache_name=self.storage.cache_name)
        self.storage.store(token, metadata)

        return token

    def _run_oauth_flow(self) -> Credentials:
        """Run the OAuth flow (blocking operation).

        Binds a loopback listener on an ephemeral port, opens the consent
        page and blocks until the redirect carrying the code arrives.

        Returns:
            Google OAuth2 credentials.
        """
        host = os.environ.get("GOOGLE_OAUTH_REDIRECT_HOST", DEFAULT_OAUTH_HOST)
        state = secrets.token_urlsafe(32)

        server = _CallbackServer((host, 0), state)
        try:
            port = server.server_address[1]
            redirect_uri = f"http://{host}:{port}{CALLBACK_PATH}"

            flow = Flow.from_client_config(
                self.client_config,
                scopes=self.scopes,
                redirect_uri=redirect_uri,
            )
            auth_url, _ = flow.authorization_url(
                access_type="offline",
                prompt="consent",
                state=state,
            )

            logger.info("Authorize this app at: %s", auth_url)
            print("Opening browser for Google authorization...")
            print(f"If browser doesn't open, visit: {auth_url}")
            self._open_browser(auth_url)

            # Stray requests (favicon, stale tabs) don't end the wait
            while not server.done:
                server.handle_request()
        finally:
            server.server_close()

        if server.error:
            raise AuthorizationError(f"OAuth authorization failed: {server.error}")

        logger.info("Got authorization code")
        try:
            flow.fetch_token(code=server.auth_code)
        except Exception as e:
            raise AuthorizationError(f"Token exchange error: {e}") from e

        return flow.credentials

    @staticmethod
    def _open_browser(url: str) -> None:
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error:
            opened = False
        if not opened:
            logger.warning("Failed to open URL in browser.")

    async def _refresh(self, stored: StoredToken) -> OAuthToken:
        """Refresh a stored token and cache the result."""
        self._client_section()
        credentials = self._token_to_credentials(stored.token)

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, credentials.refresh, Request())
        except TransportError as e:
            raise AuthorizationError(f"Token refresh failed: {e}") from e

        new_token = self._credentials_to_token(credentials)
        if not new_token.refresh_token:
            new_token.refresh_token = stored.token.refresh_token

        stored.metadata.last_refreshed = datetime.now(timezone.utc)
        self.storage.store(new_token, stored.metadata)
        logger.info("Refreshed access token for %s", self.storage.cache_name)

        return new_token

    async def refresh_if_needed(self) -> OAuthToken | None:
        """Refresh the cached token if expired or about to expire.

        Returns:
            New OAuthToken if refreshed, existing token if still valid,
            None if no token is cached or it has no refresh token.

        Raises:
            google.auth.exceptions.RefreshError: If Google rejects the refresh.
            AuthorizationError: If the token endpoint cannot be reached.
        """
        stored = self.storage.retrieve()
        if stored is None:
            return None

        if not stored.token.is_expired():
            return stored.token

        if stored.token.refresh_token is None:
            return None

        return await self._refresh(stored)

    async def ensure_token(self) -> OAuthToken:
        """Return a usable token, authorizing interactively only when needed.

        A cached token is used if present, valid and granted the required
        scopes; an expired one is refreshed. A missing or corrupt cache,
        missing scopes, or a rejected refresh all lead to the
        authorization flow.

        Returns:
            Valid OAuthToken.

        Raises:
            AuthorizationError: If the token endpoint cannot be reached or the
                authorization flow fails.
        """
        stored = self.storage.retrieve()

        if stored is not None and not stored.token.has_scopes(self.scopes):
            logger.warning("Cached token missing required scopes, re-authorizing")
            stored = None

        if stored is not None:
            if not stored.token.is_expired():
                return stored.token
            if stored.token.refresh_token:
                try:
                    return await self._refresh(stored)
                except RefreshError as e:
                    logger.warning("Token refresh failed, re-authorizing: %s", e)

        return await self.authenticate()

    def get_credentials(self) -> Credentials | None:
        """Get Google credentials for API use.

        Returns:
            Google OAuth2 credentials, or None if no token is cached.
        """
        stored = self.storage.retrieve()
        if stored is None:
            return None

        return self._token_to_credentials(stored.token)
