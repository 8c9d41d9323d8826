"""Google Sheets access with a locally cached OAuth2 token.

Obtain an authorized Sheets client with `new_sheets_client`; the first
run opens the browser for consent and caches the token under
~/.google_oauth_credentials.
"""

from googlesheets.__version__ import __version__
from googlesheets.sheets import SheetsClient, ValueRange, new_sheets_client

__all__ = ["__version__", "SheetsClient", "ValueRange", "new_sheets_client"]
