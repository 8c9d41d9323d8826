"""Google Sheets API client.

Usage:
    from googlesheets.sheets import new_sheets_client

    client = await new_sheets_client("client_secret.json", "my-tool")
    result = await client.get_values(spreadsheet_id, "A1:B")
    await client.update_values(spreadsheet_id, "A1:B", [["a1", "b1"]])
    await client.close()
"""

from googlesheets.sheets.client import (
    SHEETS_API_BASE,
    SheetsClient,
    ValueRange,
    new_sheets_client,
)

__all__ = ["SheetsClient", "ValueRange", "new_sheets_client", "SHEETS_API_BASE"]
