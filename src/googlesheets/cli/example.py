"""Example program importing rows from or exporting rows to a spreadsheet.

    googlesheets-example -mode import -id <spreadsheet id>
    googlesheets-example -mode export -id <spreadsheet id>
"""

import asyncio
import logging
import sys
from typing import Any

import click

from googlesheets.cli.options import cache_file_option, client_secrets_option, verbose_option
from googlesheets.exceptions import GoogleSheetsError
from googlesheets.sheets import SheetsClient, new_sheets_client

logger = logging.getLogger(__name__)

EXAMPLE_RANGE = "A1:B"
EXAMPLE_ROWS: list[list[Any]] = [["a1", "b1"], ["a2", "b2"]]


def _require_spreadsheet_id(ctx: click.Context, param: click.Parameter, value: str | None) -> str:
    if not value or not value.strip():
        raise click.BadParameter("please set spread sheet id")
    return value.strip()


async def import_spreadsheet(client: SheetsClient, spreadsheet_id: str, range_notation: str) -> None:
    """Print every row of the range."""
    result = await client.get_values(spreadsheet_id, range_notation)
    for i, row in enumerate(result.values):
        click.echo(f"row[{i}]; {row}")


async def export_to_spreadsheet(
    client: SheetsClient,
    spreadsheet_id: str,
    range_notation: str,
    rows: list[list[Any]],
) -> None:
    """Replace the contents of the range with rows."""
    clear_resp = await client.clear_values(spreadsheet_id, range_notation)
    logger.info("clear response: %s", clear_resp)

    resp = await client.update_values(spreadsheet_id, range_notation, rows, value_input_option="RAW")
    logger.info("update response: %s", resp)


async def _run(mode: str, spreadsheet_id: str, client_secrets: str, cache_file: str) -> None:
    client = await new_sheets_client(client_secrets, cache_file)
    async with client:
        if mode == "import":
            await import_spreadsheet(client, spreadsheet_id, EXAMPLE_RANGE)
        else:
            await export_to_spreadsheet(client, spreadsheet_id, EXAMPLE_RANGE, EXAMPLE_ROWS)


@click.command()
@click.option(
    "-mode",
    "--mode",
    "mode",
    type=click.Choice(["import", "export"]),
    default="import",
    show_default=True,
    help="import or export",
)
@click.option(
    "-id",
    "--id",
    "spreadsheet_id",
    callback=_require_spreadsheet_id,
    help="google spread sheet id",
)
@client_secrets_option
@cache_file_option
@verbose_option
def main(
    mode: str,
    spreadsheet_id: str,
    client_secrets: str,
    cache_file: str,
    verbose: bool,
) -> None:
    """Import rows from, or export rows to, a Google spreadsheet."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        asyncio.run(_run(mode, spreadsheet_id, client_secrets, cache_file))
    except GoogleSheetsError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
