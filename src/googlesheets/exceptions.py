"""Exceptions raised by googlesheets."""


class GoogleSheetsError(Exception):
    """Base exception for googlesheets errors."""

    pass


class ClientConfigError(GoogleSheetsError):
    """Raised when the OAuth client secrets file cannot be used."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to parse client secret file to config: {path}: {reason}")


class TokenCacheError(GoogleSheetsError):
    """Raised when the token cache directory or file cannot be written."""

    pass


class AuthorizationError(GoogleSheetsError):
    """Raised when the authorization-code flow fails."""

    pass


class SheetsAPIError(GoogleSheetsError):
    """Raised when a Sheets API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
