from . import analytics, redirect, shorten

__all__ = ["analytics", "redirect", "shorten"]
