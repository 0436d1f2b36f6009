"""Command-line interface for the i18n translator."""
