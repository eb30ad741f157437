"""订阅管理服务."""

import asyncio
import logging
from collections.abc import Collection
from typing import Any

from pydantic import ValidationError as ModelValidationError

from feedflow.config import Settings
from feedflow.core.aggregator import ArticleAggregator
from feedflow.core.cache import CacheOutcome, FeedCache, FetchFunc
from feedflow.core.store import FileCacheStore
from feedflow.core.validation import generate_feed_id, is_valid_feed_url
from feedflow.errors import FetchError, NotFoundError, ParseError, ValidationError
from feedflow.fetcher.client import FeedFetcher
from feedflow.models.article import TimelinePage
from feedflow.models.feed import (
    DEFAULT_CATEGORY,
    DEFAULT_ICON,
    Feed,
    FeedList,
    FeedSettings,
)
from feedflow.models.storage import FeedListStore

logger = logging.getLogger(__name__)


class FeedService:
    """订阅列表的增删、刷新、设置及时间线查询."""

    def __init__(
        self,
        store: FeedListStore,
        cache: FeedCache,
        aggregator: ArticleAggregator,
        fetch: FetchFunc,
    ) -> None:
        self.store = store
        self.cache = cache
        self.aggregator = aggregator
        self._fetch = fetch
        # 串行化“读取-修改-保存”
        self._lock = asyncio.Lock()

    def list_feeds(self) -> FeedList:
        """获取订阅列表及设置."""
        return self.store.load()

    def get_feed(self, feed_id: str) -> Feed:
        """按 ID 获取 Feed."""
        feed = self.store.load().find(feed_id)
        if feed is None:
            msg = "Feed not found"
            raise NotFoundError(msg)
        return feed

    async def add_feed(
        self,
        url: str,
        title: str = "",
        category: str = "",
        icon: str = "",
    ) -> Feed:
        """
        添加订阅.

        先校验 URL 并确认能解析出 Feed；未提供标题时使用 Feed 自身的标题。

        Raises:
            ValidationError: URL 无效、重复订阅或无法解析
        """
        url = (url or "").strip()
        if not is_valid_feed_url(url):
            msg = "Invalid URL"
            raise ValidationError(msg)

        if any(feed.url == url for feed in self.store.load().feeds):
            msg = "Feed already exists"
            raise ValidationError(msg)

        try:
            parsed = await self._fetch(url)
        except (FetchError, ParseError) as e:
            logger.warning(f"添加订阅失败，无法解析: {url} - {e}")
            msg = "Could not parse feed"
            raise ValidationError(msg) from e

        async with self._lock:
            feed_list = self.store.load()
            # 抓取期间可能已被并发添加
            if any(feed.url == url for feed in feed_list.feeds):
                msg = "Feed already exists"
                raise ValidationError(msg)

            feed = Feed(
                id=generate_feed_id(),
                url=url,
                title=(title or "").strip() or parsed.title or "Untitled Feed",
                category=(category or "").strip() or DEFAULT_CATEGORY,
                icon=(icon or "").strip() or DEFAULT_ICON,
            )
            feed_list.feeds.append(feed)
            self.store.save(feed_list)

        # 校验时已抓取过，直接写入缓存
        await self.cache.remember(feed.id, parsed)
        logger.info(f"已添加订阅: {feed.title} ({feed.url})")
        return feed

    async def remove_feed(self, feed_id: str) -> Feed:
        """
        删除订阅及其缓存.

        Raises:
            ValidationError: 未提供 ID
            NotFoundError: Feed 不存在
        """
        if not feed_id:
            msg = "Feed ID required"
            raise ValidationError(msg)

        async with self._lock:
            feed_list = self.store.load()
            feed = feed_list.find(feed_id)
            if feed is None:
                msg = "Feed not found"
                raise NotFoundError(msg)

            feed_list.feeds = [f for f in feed_list.feeds if f.id != feed_id]
            self.store.save(feed_list)

        await self.cache.invalidate(feed_id)
        logger.info(f"已删除订阅: {feed.title} ({feed.url})")
        return feed

    async def refresh_feed(self, feed_id: str) -> CacheOutcome:
        """
        强制刷新 Feed.

        抓取失败时仍会返回过期缓存（如果有）。

        Raises:
            NotFoundError: Feed 不存在
        """
        feed = self.get_feed(feed_id)
        return await self.cache.get(feed.id, feed.url, ttl_minutes=0)

    def get_settings(self) -> FeedSettings:
        """获取设置."""
        return self.store.load().settings

    async def update_settings(self, patch: dict[str, Any]) -> FeedSettings:
        """
        合并更新设置.

        Raises:
            ValidationError: 设置值不合法
        """
        async with self._lock:
            feed_list = self.store.load()
            merged = {**feed_list.settings.to_json_dict(), **patch}
            try:
                settings = FeedSettings.model_validate(merged)
            except ModelValidationError as e:
                fields = ", ".join(
                    str(err["loc"][0]) for err in e.errors() if err["loc"]
                )
                msg = f"Invalid settings: {fields}" if fields else "Invalid settings"
                raise ValidationError(msg) from e

            feed_list.settings = settings
            self.store.save(feed_list)

        logger.info("设置已更新")
        return settings

    async def timeline(
        self,
        feed_ids: Collection[str] | None = None,
        page: int = 1,
        search: str = "",
    ) -> TimelinePage:
        """按已保存的设置聚合时间线."""
        feed_list = self.store.load()
        return await self.aggregator.aggregate(
            feed_list.feeds,
            selected_ids=feed_ids,
            page=page,
            per_page=feed_list.settings.items_per_page,
            search=search,
            ttl_minutes=feed_list.settings.cache_minutes,
        )

    async def warm_cache(self) -> dict[str, int]:
        """
        预热缓存：对所有 Feed 按当前 TTL 查询一次.

        Returns:
            各状态的 Feed 数量
        """
        feed_list = self.store.load()
        outcomes = await self.aggregator.lookup(
            feed_list.feeds, feed_list.settings.cache_minutes
        )

        stats: dict[str, int] = {}
        for outcome in outcomes:
            stats[outcome.status.value] = stats.get(outcome.status.value, 0) + 1
        return stats


# 全局服务实例
_service: FeedService | None = None
_fetcher: FeedFetcher | None = None


def build_service(settings: Settings, fetcher: FeedFetcher) -> FeedService:
    """按配置组装服务."""
    store = FeedListStore(
        settings.feeds_file,
        default_cache_minutes=settings.default_cache_minutes,
        default_items_per_page=settings.default_items_per_page,
    )
    cache = FeedCache(FileCacheStore(settings.effective_cache_dir), fetcher.fetch)
    aggregator = ArticleAggregator(cache, concurrency=settings.fetch_concurrency)
    return FeedService(store, cache, aggregator, fetcher.fetch)


def init_service(settings: Settings) -> FeedService:
    """初始化全局服务."""
    global _service, _fetcher

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    _fetcher = FeedFetcher(
        timeout=settings.fetch_timeout_seconds,
        user_agent=settings.user_agent,
    )
    _service = build_service(settings, _fetcher)
    return _service


async def shutdown_service() -> None:
    """关闭全局服务."""
    global _service, _fetcher

    if _fetcher is not None:
        await _fetcher.close()
    _fetcher = None
    _service = None


def get_feed_service() -> FeedService:
    """获取服务实例（用于依赖注入）."""
    if _service is None:
        msg = "服务未初始化，请先调用 init_service()"
        raise RuntimeError(msg)
    return _service
