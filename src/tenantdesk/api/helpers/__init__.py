"""API helper utilities."""
