"""Logging setup and the rejection log."""
