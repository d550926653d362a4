import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.clicks.models import ClickMessage
from shortlink_app.exceptions import EmptyURLError, InvalidAliasError
from shortlink_app.models.url import ClickLog, ShortURL
from shortlink_app.schemas.url import (
    ALIAS_PATTERN,
    AnalyticsResponse,
    ClickRecord,
    ShortenRequest,
    StatAgent,
    StatDay,
    StatMonth,
)
from shortlink_app.services.alias import DEFAULT_ALIAS_LENGTH, generate_alias
from shortlink_app.storage.strategies import URLStorageStrategy

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "short:"


class ShortenerService:
    """
    Shortening service with dependency injection for storage and cache.

    - Storage is required and authoritative.
    - Cache is optional; without one every lookup goes to storage.

    Storage calls are blocking, so they run in the Starlette thread pool
    and the event loop stays free for other requests.
    """

    def __init__(
        self,
        storage: URLStorageStrategy,
        cache: Optional[CacheStrategy] = None,
        populate_cache_on_miss: bool = True,
        cache_ttl: int = 3600,
        alias_length: int = DEFAULT_ALIAS_LENGTH,
    ):
        self.storage = storage
        self.cache = cache
        self.populate_cache_on_miss = populate_cache_on_miss
        self.cache_ttl = cache_ttl
        self.alias_length = alias_length

    @staticmethod
    def cache_key(alias: str) -> str:
        return CACHE_KEY_PREFIX + alias

    async def create_short_url(self, request: ShortenRequest) -> str:
        """Create a mapping and return its alias.

        A custom alias is used as given; otherwise a random one is generated.
        A taken alias surfaces as AliasExistsError, there is no retry with a
        fresh alias.
        """
        original_url = (request.url or "").strip()
        if not original_url:
            raise EmptyURLError("url is empty")

        if request.custom_alias:
            if not ALIAS_PATTERN.match(request.custom_alias):
                raise InvalidAliasError("invalid custom alias")
            alias = request.custom_alias
        else:
            alias = generate_alias(self.alias_length)

        url = ShortURL(original_url=original_url, alias=alias)
        url_id = await run_in_threadpool(self.storage.save_url, url)

        logger.info("Short URL created", extra={"alias": alias, "url_id": url_id})
        return alias

    async def get_url(self, alias: str) -> ShortURL:
        """
        Resolve an alias using the Cache-Aside pattern.

        Flow:
        1. Check cache (key "short:<alias>")
        2. On a miss, query storage (raises URLNotFoundError)
        3. Populate cache for next time

        An entity rebuilt from the cache has no id or created_at.
        """
        key = self.cache_key(alias)

        if self.cache:
            cached_url = await self.cache.get(key)
            if cached_url:
                return ShortURL(alias=alias, original_url=cached_url)

        url = await run_in_threadpool(self.storage.get_url, alias)

        if self.cache and self.populate_cache_on_miss:
            await self.cache.set(key, url.original_url, ttl=self.cache_ttl)

        return url

    async def save_user_click(self, click: ClickLog) -> None:
        await run_in_threadpool(self.storage.save_user_click, click)

    async def record_click(self, message: ClickMessage) -> None:
        """Persist a click handed over by the redirect handler."""
        url_id = message.url_id
        if url_id is None:
            # Redirect was served from cache
            url = await run_in_threadpool(self.storage.get_url, message.alias)
            url_id = url.id

        click = ClickLog(
            url_id=url_id,
            user_agent=message.user_agent,
            ip_address=message.ip_address,
        )
        await self.save_user_click(click)

    async def count_clicks(self, alias: str) -> int:
        return await run_in_threadpool(self.storage.count_clicks, alias)

    async def get_analytics(self, alias: str) -> List[ClickLog]:
        return await run_in_threadpool(self.storage.get_analytics, alias)

    async def statistic_day(self, alias: str) -> List[StatDay]:
        return await run_in_threadpool(self.storage.statistic_day, alias)

    async def statistic_month(self, alias: str) -> List[StatMonth]:
        return await run_in_threadpool(self.storage.statistic_month, alias)

    async def statistic_agent(self, alias: str) -> List[StatAgent]:
        return await run_in_threadpool(self.storage.statistic_agent, alias)

    async def build_analytics(self, alias: str) -> AnalyticsResponse:
        """All analytics for an alias. Unknown aliases yield zeros, not errors."""
        records = await self.get_analytics(alias)
        return AnalyticsResponse(
            alias=alias,
            clicks_total=await self.count_clicks(alias),
            records=[ClickRecord.model_validate(r) for r in records],
            by_day=await self.statistic_day(alias),
            by_month=await self.statistic_month(alias),
            by_agent=await self.statistic_agent(alias),
        )
