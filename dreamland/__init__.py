"""Dreamland travel agency API."""

__version__ = "0.1.0"
