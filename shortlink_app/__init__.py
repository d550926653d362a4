"""Shortlink Analytics: URL shortener with click analytics."""

__version__ = "1.0.0"
