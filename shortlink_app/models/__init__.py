"""
Database models for the URL shortener.

Both tables live in the same relational store: `short_urls` holds the
alias mappings and `click_logs` the append-only visit records that the
analytics queries aggregate.
"""

from .url import ShortURL, ClickLog, MAX_ALIAS_LENGTH

__all__ = ["ShortURL", "ClickLog", "MAX_ALIAS_LENGTH"]
