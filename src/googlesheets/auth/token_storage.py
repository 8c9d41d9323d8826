"""OAuth token cache backed by a single JSON file.

Storage Location: ~/.google_oauth_credentials/<cache name>.json

Each cache name maps to its own file, so different tools on the same
machine can keep separate Google accounts. The directory is private to
the owner (0700) and every token file is written with mode 0600.

If you change the requested scopes, delete the cached file (or run
`googlesheets logout`) so the next run asks for consent again.
"""

import json
import logging
import os
from pathlib import Path
from urllib.parse import quote_plus

from pydantic import ValidationError

from googlesheets.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from googlesheets.exceptions import TokenCacheError

logger = logging.getLogger(__name__)

CREDENTIALS_DIR_NAME = ".google_oauth_credentials"
TOKEN_FILE_SUFFIX = ".json"


def get_credentials_dir() -> Path:
    """Get the per-user token cache directory.

    Returns:
        Path from GOOGLE_OAUTH_CREDENTIALS_DIR, or ~/.google_oauth_credentials.
    """
    override = os.environ.get("GOOGLE_OAUTH_CREDENTIALS_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / CREDENTIALS_DIR_NAME


def token_file_name(cache_name: str) -> str:
    """Build the on-disk file name for a cache name.

    A ".json" suffix is appended when missing and the result is
    query-escaped so the name cannot leave the cache directory.
    """
    if not cache_name.endswith(TOKEN_FILE_SUFFIX):
        cache_name = cache_name + TOKEN_FILE_SUFFIX
    return quote_plus(cache_name)


class TokenStorage:
    """JSON file storage for a single OAuth token.

    Attributes:
        cache_name: Name the token is cached under.
        token_path: Path to the token file.

    Example:
        ```python
        storage = TokenStorage("googlesheets-example")

        storage.store(token, TokenMetadata(cache_name=storage.cache_name))

        stored = storage.retrieve()
        if stored:
            print(f"Token expires at: {stored.token.expires_at}")
        ```
    """

    def __init__(self, cache_name: str, credentials_dir: Path | None = None) -> None:
        """Initialize token storage.

        Args:
            cache_name: Cache file name, with or without the ".json" suffix.
            credentials_dir: Directory holding token files. Defaults to
                ~/.google_oauth_credentials.
        """
        if not cache_name:
            raise ValueError("cache_name must not be empty")

        self.cache_name = cache_name
        self.credentials_dir = Path(credentials_dir) if credentials_dir else get_credentials_dir()
        self.token_path = self.credentials_dir / token_file_name(cache_name)
        self._ensure_credentials_dir()

    def _ensure_credentials_dir(self) -> None:
        """Create credentials directory with secure permissions if needed."""
        try:
            if not self.credentials_dir.exists():
                self.credentials_dir.mkdir(parents=True, mode=0o700)
            else:
                self.credentials_dir.chmod(0o700)
        except OSError as e:
            raise TokenCacheError(
                f"Unable to get path to cached credential file: {self.credentials_dir}: {e}"
            ) from e

    def _load(self) -> dict | None:
        """Load the raw JSON document, or None if the file is missing or unreadable."""
        if not self.token_path.exists():
            return None

        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable token cache %s: %s", self.token_path, e)
            return None

        return data if isinstance(data, dict) else None

    def store(self, token: OAuthToken, metadata: TokenMetadata) -> None:
        """Store an OAuth token, replacing any previous one.

        Args:
            token: OAuth token data to store.
            metadata: Token metadata.

        Raises:
            TokenCacheError: If the file cannot be written.
        """
        stored_token = StoredToken(version=1, metadata=metadata, token=token)

        logger.info("Saving credential file to: %s", self.token_path)
        self._ensure_credentials_dir()
        try:
            fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(stored_token.model_dump_json(indent=2))
            # O_CREAT mode is ignored for files that already exist
            self.token_path.chmod(0o600)
        except OSError as e:
            raise TokenCacheError(f"Unable to cache oauth token: {e}") from e

    def retrieve(self) -> StoredToken | None:
        """Retrieve the cached OAuth token.

        Returns:
            StoredToken if the file exists and is valid, None otherwise.
        """
        data = self._load()
        if data is None:
            return None

        try:
            return StoredToken.model_validate(data)
        except ValidationError:
            logger.warning("Token cache %s is corrupted, ignoring it", self.token_path)
            return None

    def delete(self) -> bool:
        """Delete the cached token.

        Returns:
            True if a token file was deleted, False if none existed.

        Raises:
            TokenCacheError: If the file cannot be removed.
        """
        if not self.token_path.exists():
            return False

        try:
            self.token_path.unlink()
        except OSError as e:
            raise TokenCacheError(f"Unable to delete cached oauth token: {e}") from e
        logger.info("Deleted credential file: %s", self.token_path)
        return True

    def get_status(self) -> TokenStatus:
        """Get the status of the cached token.

        Returns:
            TokenStatus indicating the token's current state.
        """
        if not self.token_path.exists():
            return TokenStatus.MISSING

        stored = self.retrieve()
        if stored is None:
            return TokenStatus.INVALID

        if stored.token.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID
