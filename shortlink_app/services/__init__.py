from .alias import generate_alias
from .url_service import ShortenerService, CACHE_KEY_PREFIX

__all__ = ["generate_alias", "ShortenerService", "CACHE_KEY_PREFIX"]
