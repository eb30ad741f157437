"""Feed 缓存：按 TTL 返回缓存、重新抓取或回退到过期缓存."""

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from feedflow.core.store import CacheStore
from feedflow.errors import FetchError, ParseError
from feedflow.models.article import ParsedFeed

logger = logging.getLogger(__name__)

# 抓取并解析一个 URL；失败时抛出 FetchError / ParseError
FetchFunc = Callable[[str], Awaitable[ParsedFeed]]


def round_half_up(minutes: float) -> int:
    """四舍五入到整分钟（2.5 -> 3）."""
    return math.floor(minutes + 0.5)


class CacheStatus(StrEnum):
    """缓存查询结果."""

    FRESH = "fresh"  # 缓存未过期
    FETCHED = "fetched"  # 重新抓取成功
    STALE = "stale"  # 抓取失败，返回过期缓存
    UNAVAILABLE = "unavailable"  # 抓取失败且无缓存


@dataclass
class CacheOutcome:
    """一次缓存查询的结果."""

    status: CacheStatus
    feed: ParsedFeed | None = None

    @property
    def available(self) -> bool:
        """是否有可用数据."""
        return self.feed is not None


class FeedCache:
    """按 Feed ID 缓存解析结果.

    - 缓存存在且未过期：直接返回（fromCache=True, cacheAge=分钟数）
    - 否则重新抓取：成功则覆盖缓存；
      失败则返回已有缓存（stale=True），没有缓存时返回 UNAVAILABLE

    存储的读写在线程中执行，不阻塞事件循环。
    """

    def __init__(
        self,
        store: CacheStore,
        fetch: FetchFunc,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self._fetch = fetch
        self._clock = clock

    async def get(self, feed_id: str, url: str, ttl_minutes: int) -> CacheOutcome:
        """
        获取 Feed 数据.

        Args:
            feed_id: Feed ID
            url: Feed URL
            ttl_minutes: 缓存有效期（分钟），0 表示强制重新抓取

        Returns:
            CacheOutcome；不会抛出抓取或解析错误
        """
        now = self._clock()
        record = await asyncio.to_thread(self.store.get, feed_id)

        if record is not None:
            age_minutes = (now - record.written_at) / 60
            if age_minutes < ttl_minutes:
                feed = record.feed
                feed.from_cache = True
                feed.cache_age = round_half_up(age_minutes)
                return CacheOutcome(CacheStatus.FRESH, feed)

        try:
            feed = await self._fetch(url)
        except (FetchError, ParseError) as e:
            # 抓取失败不修改已有缓存
            return await self._fallback(feed_id, url, e)

        logger.info(f"已抓取 Feed: {feed_id} ({feed.item_count} 篇)")
        feed = await self.remember(feed_id, feed, now)
        return CacheOutcome(CacheStatus.FETCHED, feed)

    async def remember(
        self,
        feed_id: str,
        feed: ParsedFeed,
        fetched_at: float | None = None,
    ) -> ParsedFeed:
        """记录一次成功抓取的结果（整体覆盖旧缓存）."""
        now = self._clock() if fetched_at is None else fetched_at
        feed.feed_id = feed_id
        feed.fetched_at = datetime.fromtimestamp(now, UTC).isoformat()
        feed.from_cache = False
        feed.cache_age = None
        feed.stale = None

        try:
            await asyncio.to_thread(self.store.put, feed_id, feed)
        except OSError as e:
            logger.warning(f"写入缓存失败: {feed_id} - {e}")
        return feed

    async def invalidate(self, feed_id: str) -> bool:
        """删除 Feed 的缓存记录."""
        return await asyncio.to_thread(self.store.delete, feed_id)

    async def _fallback(
        self, feed_id: str, url: str, error: Exception
    ) -> CacheOutcome:
        record = await asyncio.to_thread(self.store.get, feed_id)
        if record is None:
            logger.warning(f"抓取失败且无缓存: {feed_id} ({url}) - {error}")
            return CacheOutcome(CacheStatus.UNAVAILABLE)

        logger.warning(f"抓取失败，使用过期缓存: {feed_id} ({url}) - {error}")
        feed = record.feed
        feed.from_cache = True
        feed.stale = True
        return CacheOutcome(CacheStatus.STALE, feed)
