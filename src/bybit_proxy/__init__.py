"""Signing reverse proxy for the Bybit REST API."""

__version__ = "1.0.0"
