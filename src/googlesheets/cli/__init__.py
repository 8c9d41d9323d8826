"""Command-line interface for googlesheets."""
