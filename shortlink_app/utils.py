from typing import Optional

from fastapi import Request


def extract_client_ip(request: Request) -> str:
    """Client IP: first X-Forwarded-For entry if present, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return ""


def build_short_url(alias: str, request: Request, base_url: Optional[str] = None) -> str:
    """Public short link for an alias, e.g. http://host/s/abc123."""
    prefix = base_url or str(request.base_url)
    return f"{prefix.rstrip('/')}/s/{alias}"
