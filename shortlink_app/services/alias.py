"""
Alias generation.

Generated aliases come from the OS random source: 8 random bytes,
base64url-encoded, cut to the requested length. The alphabet of
base64url is exactly the accepted alias character set.
"""

import base64
import logging
import secrets
from datetime import datetime

logger = logging.getLogger(__name__)

RANDOM_BYTES = 8
DEFAULT_ALIAS_LENGTH = 8


def _random_token(n_bytes: int) -> bytes:
    return secrets.token_bytes(n_bytes)


def generate_alias(length: int = DEFAULT_ALIAS_LENGTH) -> str:
    """
    Generate a random alias of `length` characters.

    If the random source is unavailable, a 6-digit HHMMSS clock string is
    returned instead. That fallback collides for any two requests in the
    same second.
    """
    try:
        raw = _random_token(max(RANDOM_BYTES, length))
    except (OSError, NotImplementedError) as e:
        logger.warning("Random source unavailable, using clock alias", extra={"error": str(e)})
        return datetime.now().strftime("%H%M%S")

    encoded = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return encoded[:length]
