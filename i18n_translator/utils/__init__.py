"""Helpers for the i18n translator."""
