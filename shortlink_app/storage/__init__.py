"""
Storage module for short URLs and click events.
Implements Strategy Pattern so the service never depends on a concrete database.
"""

from .strategies import URLStorageStrategy, SQLURLStorage

__all__ = [
    "URLStorageStrategy",
    "SQLURLStorage",
]
