"""文章聚合：合并多个 Feed 的文章，搜索、排序并分页."""

import asyncio
import logging
import math
from collections.abc import Collection, Sequence

from feedflow.core.cache import CacheOutcome, FeedCache
from feedflow.errors import ValidationError
from feedflow.models.article import Pagination, TimelineItem, TimelinePage
from feedflow.models.feed import Feed

logger = logging.getLogger(__name__)


def stamp_items(feed: Feed, outcome: CacheOutcome) -> list[TimelineItem]:
    """为 Feed 的文章附加 feedId / feedTitle / feedIcon."""
    if outcome.feed is None:
        return []
    return [
        TimelineItem(
            **item.model_dump(),
            feed_id=feed.id,
            feed_title=feed.title,
            feed_icon=feed.icon or "",
        )
        for item in outcome.feed.items
    ]


def filter_items(items: list[TimelineItem], search: str) -> list[TimelineItem]:
    """按标题或摘要做不区分大小写的子串匹配."""
    needle = search.strip().casefold()
    if not needle:
        return items
    return [
        item
        for item in items
        if needle in item.title.casefold() or needle in item.description.casefold()
    ]


def sort_by_recency(items: list[TimelineItem]) -> list[TimelineItem]:
    """按发布时间倒序排列；时间相同的保持原有顺序."""
    # sorted 是稳定排序，reverse=True 同样保持相等元素的原始顺序
    return sorted(items, key=lambda item: item.timestamp, reverse=True)


def paginate(
    items: Sequence[TimelineItem],
    page: int,
    per_page: int,
) -> tuple[list[TimelineItem], Pagination]:
    """
    分页.

    超出范围的页码返回空列表，不报错。
    """
    if page < 1:
        msg = "page 必须 >= 1"
        raise ValidationError(msg)
    if per_page < 1:
        msg = "perPage 必须 >= 1"
        raise ValidationError(msg)

    total = len(items)
    offset = (page - 1) * per_page
    return list(items[offset : offset + per_page]), Pagination(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page),
    )


class ArticleAggregator:
    """文章聚合器."""

    def __init__(self, cache: FeedCache, concurrency: int = 8) -> None:
        self.cache = cache
        self.concurrency = max(1, concurrency)

    async def aggregate(
        self,
        feeds: Sequence[Feed],
        selected_ids: Collection[str] | None = None,
        page: int = 1,
        per_page: int = 20,
        search: str = "",
        ttl_minutes: int = 15,
    ) -> TimelinePage:
        """
        聚合时间线.

        Args:
            feeds: 完整的订阅列表（按顺序）
            selected_ids: 要包含的 Feed ID，None 表示全部
            page: 页码，从 1 开始
            per_page: 每页数量
            search: 搜索词，空字符串表示不过滤
            ttl_minutes: 缓存有效期（分钟）

        Returns:
            TimelinePage
        """
        selected = [
            feed for feed in feeds if selected_ids is None or feed.id in selected_ids
        ]

        # 所有 Feed 查询完成后才开始合并
        outcomes = await self.lookup(selected, ttl_minutes)

        items: list[TimelineItem] = []
        for feed, outcome in zip(selected, outcomes, strict=True):
            if not outcome.available:
                logger.debug(f"跳过不可用的 Feed: {feed.id}")
                continue
            items.extend(stamp_items(feed, outcome))

        items = filter_items(items, search)
        items = sort_by_recency(items)
        page_items, pagination = paginate(items, page, per_page)

        return TimelinePage(items=page_items, pagination=pagination)

    async def lookup(
        self,
        feeds: list[Feed],
        ttl_minutes: int,
    ) -> list[CacheOutcome]:
        """并发查询多个 Feed 的缓存，结果与 feeds 顺序一致."""
        # 使用信号量控制并发
        semaphore = asyncio.Semaphore(self.concurrency)

        async def lookup_one(feed: Feed) -> CacheOutcome:
            async with semaphore:
                return await self.cache.get(feed.id, feed.url, ttl_minutes)

        return list(await asyncio.gather(*(lookup_one(feed) for feed in feeds)))
