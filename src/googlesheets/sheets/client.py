"""Google Sheets API client authorized with the cached OAuth token.

Calls go straight to the Sheets REST API over a shared httpx client.
Every request asks the OAuthManager for a valid access token first, so
an expired token is refreshed transparently.
"""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from google.auth.exceptions import RefreshError, TransportError
from pydantic import BaseModel, ConfigDict, Field

from googlesheets.auth import OAuthManager, TokenStorage, load_client_config
from googlesheets.exceptions import AuthorizationError, SheetsAPIError

logger = logging.getLogger(__name__)

SHEETS_API_BASE = "https://sheets.googleapis.com/v4"


class ValueRange(BaseModel):
    """Values of a range, as ordered rows of ordered cells."""

    model_config = ConfigDict(populate_by_name=True)

    range: str = ""
    major_dimension: str = Field(default="ROWS", alias="majorDimension")
    values: list[list[Any]] = Field(default_factory=list)


class SheetsClient:
    """Thin async wrapper over the Sheets values endpoints.

    Attributes:
        manager: OAuthManager providing access tokens.

    Example:
        ```python
        async with await new_sheets_client("client_secret.json", "my-tool") as client:
            result = await client.get_values(spreadsheet_id, "A1:B")
            for row in result.values:
                print(row)
        ```
    """

    def __init__(self, manager: OAuthManager, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize the client.

        Args:
            manager: OAuthManager whose cache holds an authorized token.
            http_client: Optional preconfigured httpx client (mainly for tests).
        """
        self.manager = manager
        self._http_client = http_client

    async def __aenter__(self) -> "SheetsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary.

        Raises:
            AuthorizationError: If no usable token is cached or refresh fails.
        """
        try:
            token = await self.manager.refresh_if_needed()
        except (RefreshError, TransportError) as e:
            raise AuthorizationError(f"Token refresh failed: {e}") from e

        if token is None:
            raise AuthorizationError(
                f"No usable OAuth token in {self.manager.token_path}. "
                "Authorize first using: googlesheets setup"
            )
        return token.access_token

    def _values_url(self, spreadsheet_id: str, range_notation: str, suffix: str = "") -> str:
        return (
            f"{SHEETS_API_BASE}/spreadsheets/{quote(spreadsheet_id, safe='')}"
            f"/values/{quote(range_notation, safe='')}{suffix}"
        )

    async def _make_request(
        self,
        method: str,
        url: str,
        context: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated HTTP request to the Sheets API.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Full URL to request.
            context: Message prefix used when the request fails.
            params: Optional query parameters.
            json_data: Optional JSON body data.

        Returns:
            JSON response as a dictionary.

        Raises:
            SheetsAPIError: If the request fails or returns an error status.
        """
        access_token = await self._get_access_token()
        client = await self._get_http_client()

        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
            response.raise_for_status()
            result: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as e:
            raise SheetsAPIError(
                f"{context}. error: {e.response.status_code} {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise SheetsAPIError(f"{context}. error: {e}") from e
        except ValueError as e:
            raise SheetsAPIError(f"{context}. error: invalid JSON response: {e}") from e

        return result

    async def get_values(self, spreadsheet_id: str, range_notation: str) -> ValueRange:
        """Read values from a range.

        Args:
            spreadsheet_id: Spreadsheet ID from the sheet URL.
            range_notation: A1 notation, e.g. "A1:B" or "'Sheet 1'!A1:C10".

        Returns:
            ValueRange with the rows found (empty when the range has no data).
        """
        url = self._values_url(spreadsheet_id, range_notation)
        response = await self._make_request(
            "GET", url, "Unable to retrieve data from sheet"
        )
        return ValueRange.model_validate(response)

    async def update_values(
        self,
        spreadsheet_id: str,
        range_notation: str,
        rows: list[list[Any]],
        value_input_option: str = "RAW",
    ) -> dict[str, Any]:
        """Overwrite a range with rows.

        Args:
            spreadsheet_id: Spreadsheet ID.
            range_notation: A1 notation of the target range.
            rows: Ordered rows of ordered cell values.
            value_input_option: "RAW" stores values as-is, "USER_ENTERED" parses them.

        Returns:
            UpdateValuesResponse as a dictionary.
        """
        body = ValueRange(range=range_notation, values=rows)
        url = self._values_url(spreadsheet_id, range_notation)
        response = await self._make_request(
            "PUT",
            url,
            "failed to update sheet",
            params={"valueInputOption": value_input_option},
            json_data=body.model_dump(by_alias=True),
        )
        logger.debug("update response: %s", response)
        return response

    async def clear_values(self, spreadsheet_id: str, range_notation: str) -> dict[str, Any]:
        """Clear values (not formatting) from a range.

        Returns:
            ClearValuesResponse as a dictionary.
        """
        url = self._values_url(spreadsheet_id, range_notation, ":clear")
        response = await self._make_request("POST", url, "failed to clear sheet", json_data={})
        logger.debug("clear response: %s", response)
        return response


async def new_sheets_client(
    client_secrets_path: str | Path,
    cache_file_name: str,
    scopes: list[str] | None = None,
    credentials_dir: Path | None = None,
) -> SheetsClient:
    """Build an authorized SheetsClient.

    Uses the token cached under cache_file_name when possible and runs
    the interactive authorization flow otherwise.

    Args:
        client_secrets_path: Path to the OAuth client secrets JSON.
        cache_file_name: Token cache file name under the credentials directory.
        scopes: OAuth scopes. Defaults to the spreadsheets scope.
        credentials_dir: Override for the token cache directory.

    Returns:
        SheetsClient ready to use.
    """
    client_config = load_client_config(client_secrets_path)
    storage = TokenStorage(cache_file_name, credentials_dir=credentials_dir)
    manager = OAuthManager(storage=storage, client_config=client_config, scopes=scopes)

    await manager.ensure_token()

    return SheetsClient(manager)
