"""Data models for cached OAuth tokens."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenStatus(str, Enum):
    """State of the token cache file."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class OAuthToken(BaseModel):
    """OAuth2 token as persisted in the cache file.

    Attributes:
        access_token: Bearer token sent to the Sheets API.
        refresh_token: Long-lived token used to mint new access tokens.
        expires_at: Timezone-aware expiry of the access token.
        scopes: Scopes granted by the user.
        token_type: Token type, always "Bearer" for Google.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the access token is expired or about to expire.

        Args:
            buffer_seconds: Treat tokens expiring within this window as expired.

        Returns:
            True if the token should be refreshed before use.
        """
        return _utcnow() + timedelta(seconds=buffer_seconds) >= self.expires_at

    def has_scopes(self, required: list[str]) -> bool:
        """Check that every required scope was granted."""
        return set(required).issubset(self.scopes)


class TokenMetadata(BaseModel):
    """Bookkeeping stored next to the token."""

    cache_name: str
    provider: str = "google"
    created_at: datetime = Field(default_factory=_utcnow)
    last_refreshed: datetime | None = None


class StoredToken(BaseModel):
    """Document written to the token cache file."""

    version: int = 1
    metadata: TokenMetadata
    token: OAuthToken
