"""Click options shared by the googlesheets commands."""

import click

DEFAULT_CLIENT_SECRETS = "client_secret.json"
DEFAULT_CACHE_FILE = "googlesheets-example.json"

client_secrets_option = click.option(
    "--client-secrets",
    envvar="GOOGLESHEETS_CLIENT_SECRETS",
    default=DEFAULT_CLIENT_SECRETS,
    show_default=True,
    help="OAuth client secrets file downloaded from Google Cloud Console",
)

cache_file_option = click.option(
    "--cache-file",
    envvar="GOOGLESHEETS_CACHE_FILE",
    default=DEFAULT_CACHE_FILE,
    show_default=True,
    help="Token cache file name under ~/.google_oauth_credentials",
)

verbose_option = click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
