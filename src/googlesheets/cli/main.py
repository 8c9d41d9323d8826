"""Command-line interface for managing the cached Google Sheets token."""

import asyncio
import logging
import sys

import click

from googlesheets.__version__ import __version__
from googlesheets.cli.options import cache_file_option, client_secrets_option, verbose_option
from googlesheets.exceptions import GoogleSheetsError


@click.group()
@click.version_option(version=__version__)
@verbose_option
def main(verbose: bool) -> None:
    """Google Sheets OAuth helper.

    Authorizes access to the Google Sheets API and keeps the token in
    ~/.google_oauth_credentials for later runs.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


@main.command()
@client_secrets_option
@cache_file_option
def setup(client_secrets: str, cache_file: str) -> None:
    """Authorize Google Sheets access and cache the token.

    This will:
    1. Open browser for OAuth2 consent flow
    2. Store the token at ~/.google_oauth_credentials/<cache file>
    """
    from googlesheets.auth import OAuthManager, TokenStorage, load_client_config

    try:
        storage = TokenStorage(cache_file)
    except GoogleSheetsError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    manager = OAuthManager(storage=storage)

    if manager.has_valid_tokens():
        click.echo("✓ Already authorized!")
        click.echo(f"Token stored at: {manager.token_path}")
        click.echo("")

        if not click.confirm("Re-authorize?"):
            return

    click.echo("Starting OAuth authorization flow...")
    click.echo("Browser will open for Google consent...")
    click.echo("")

    try:
        manager.client_config = load_client_config(client_secrets)
        asyncio.run(manager.authenticate())
    except GoogleSheetsError as e:
        click.echo(f"❌ Authorization failed: {e}", err=True)
        sys.exit(1)

    click.echo("✓ Authorization successful!")
    click.echo(f"Token stored at: {manager.token_path}")


@main.command()
@cache_file_option
def status(cache_file: str) -> None:
    """Show the cached token status."""
    from googlesheets.auth import OAuthManager, TokenStatus, TokenStorage

    try:
        storage = TokenStorage(cache_file)
    except GoogleSheetsError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    manager = OAuthManager(storage=storage)
    token_status, stored = manager.get_status()

    click.echo(f"Token file: {manager.token_path}")

    if token_status == TokenStatus.MISSING:
        click.echo("❌ Not authorized")
        click.echo("Run 'googlesheets setup' to authorize.")
        sys.exit(1)
    elif token_status == TokenStatus.INVALID:
        click.echo("❌ Token file corrupted")
        click.echo("Run 'googlesheets setup' to re-authorize.")
        sys.exit(1)
    elif token_status == TokenStatus.EXPIRED:
        click.echo("⚠️  Token expired (will refresh on next use)")
    else:
        click.echo("✓ Authorized")

    if stored:
        click.echo(
            f"Token expires: {stored.token.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
        )
        click.echo(f"Refresh token: {'yes' if stored.token.refresh_token else 'no'}")
        click.echo(f"Scopes: {', '.join(stored.token.scopes)}")


@main.command()
@cache_file_option
def logout(cache_file: str) -> None:
    """Delete the cached token."""
    from googlesheets.auth import TokenStorage

    try:
        storage = TokenStorage(cache_file)
        deleted = storage.delete()
    except GoogleSheetsError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if deleted:
        click.echo(f"✓ Deleted {storage.token_path}")
    else:
        click.echo(f"No cached token at {storage.token_path}")


if __name__ == "__main__":
    main()
