"""Version information for googlesheets."""

from importlib.metadata import PackageNotFoundError, version


def _get_version() -> str:
    """Get version from installed package metadata or fallback to hardcoded."""
    try:
        return version("googlesheets-oauth")
    except PackageNotFoundError:
        # Running from a source checkout
        return "0.1.0"


__version__ = _get_version()
