"""Spreadsheet reading, upload checks and templates."""
