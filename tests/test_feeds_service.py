"""测试订阅管理服务."""

import asyncio
import json
from pathlib import Path

import pytest

from conftest import ATOM_URL, BROKEN_URL, MISSING_URL, RSS_URL, StubFetch, make_feed
from feedflow.core.cache import CacheStatus
from feedflow.core.feeds import FeedService, get_feed_service
from feedflow.core.store import FileCacheStore
from feedflow.errors import FetchError, NotFoundError, ValidationError
from feedflow.models.feed import Feed


class TestAddFeed:
    """测试添加订阅."""

    async def test_add_uses_feed_title(
        self, service: FeedService, tmp_path: Path
    ) -> None:
        """未提供标题时使用 Feed 自身标题，并持久化."""
        feed = await service.add_feed(RSS_URL)

        assert feed.id.startswith("feed_")
        assert feed.title == "Example News"
        assert feed.category == "Uncategorized"
        assert feed.icon == "📰"

        data = json.loads((tmp_path / "feeds.json").read_text(encoding="utf-8"))
        assert data["feeds"][0]["url"] == RSS_URL

    async def test_add_with_overrides(self, service: FeedService) -> None:
        """使用提供的标题、分类和图标."""
        feed = await service.add_feed(
            f"  {ATOM_URL}  ", title="My Blog", category="Personal", icon="✍"
        )

        assert feed.url == ATOM_URL
        assert feed.title == "My Blog"
        assert feed.category == "Personal"
        assert feed.icon == "✍"

    async def test_add_primes_cache(self, service: FeedService) -> None:
        """添加时抓取的结果直接写入缓存."""
        feed = await service.add_feed(RSS_URL)

        record = service.cache.store.get(feed.id)
        assert record is not None
        assert record.feed.item_count == 2

        outcome = await service.cache.get(feed.id, feed.url, ttl_minutes=15)
        assert outcome.status == CacheStatus.FRESH

    @pytest.mark.parametrize(
        "url", ["", "not a url", "ftp://example.com/rss", "http://xn--/"]
    )
    async def test_invalid_url(self, service: FeedService, url: str) -> None:
        """URL 无效."""
        with pytest.raises(ValidationError, match="Invalid URL"):
            await service.add_feed(url)

    async def test_duplicate(self, service: FeedService) -> None:
        """重复订阅."""
        await service.add_feed(RSS_URL)
        with pytest.raises(ValidationError, match="Feed already exists"):
            await service.add_feed(RSS_URL)
        assert len(service.list_feeds().feeds) == 1

    async def test_unparseable(self, service: FeedService) -> None:
        """无法抓取或解析时不保存."""
        with pytest.raises(ValidationError, match="Could not parse feed"):
            await service.add_feed(BROKEN_URL)
        with pytest.raises(ValidationError, match="Could not parse feed"):
            await service.add_feed(MISSING_URL)
        assert service.list_feeds().feeds == []

    async def test_concurrent_adds_keep_both(self, service: FeedService) -> None:
        """并发添加不同的 Feed 不会互相覆盖."""
        await asyncio.gather(service.add_feed(RSS_URL), service.add_feed(ATOM_URL))
        assert {feed.url for feed in service.list_feeds().feeds} == {RSS_URL, ATOM_URL}


class TestRemoveFeed:
    """测试删除订阅."""

    async def test_remove(self, service: FeedService) -> None:
        """删除订阅及其缓存文件."""
        feed = await service.add_feed(RSS_URL)
        store = service.cache.store
        assert isinstance(store, FileCacheStore)
        assert store.path_for(feed.id).exists()

        removed = await service.remove_feed(feed.id)

        assert removed.id == feed.id
        assert service.list_feeds().feeds == []
        assert not store.path_for(feed.id).exists()

    async def test_remove_keeps_order(self, service: FeedService) -> None:
        """删除后其他 Feed 顺序不变."""
        first = await service.add_feed(RSS_URL)
        second = await service.add_feed(ATOM_URL)

        await service.remove_feed(first.id)
        assert [feed.id for feed in service.list_feeds().feeds] == [second.id]

    async def test_remove_missing_id(self, service: FeedService) -> None:
        """未提供 ID."""
        with pytest.raises(ValidationError, match="Feed ID required"):
            await service.remove_feed("")

    async def test_remove_unknown(self, service: FeedService) -> None:
        """Feed 不存在."""
        with pytest.raises(NotFoundError):
            await service.remove_feed("feed_unknown")


class TestRefreshFeed:
    """测试强制刷新."""

    async def test_refresh_refetches(
        self, memory_service: tuple[FeedService, StubFetch]
    ) -> None:
        """刷新忽略 TTL 重新抓取."""
        service, stub = memory_service
        stub.results[RSS_URL] = make_feed("Example", [1])
        feed = await service.add_feed(RSS_URL)

        stub.results[RSS_URL] = make_feed("Example", [1, 2, 3])
        outcome = await service.refresh_feed(feed.id)

        assert outcome.status == CacheStatus.FETCHED
        assert outcome.feed is not None
        assert outcome.feed.item_count == 3
        assert len(stub.calls) == 2

    async def test_refresh_failure_returns_stale(
        self, memory_service: tuple[FeedService, StubFetch]
    ) -> None:
        """刷新失败时返回过期缓存."""
        service, stub = memory_service
        stub.results[RSS_URL] = make_feed("Example", [1])
        feed = await service.add_feed(RSS_URL)

        stub.results[RSS_URL] = FetchError("HTTP 500")
        outcome = await service.refresh_feed(feed.id)

        assert outcome.status == CacheStatus.STALE
        assert outcome.feed is not None
        assert outcome.feed.stale is True

    async def test_refresh_unknown(self, service: FeedService) -> None:
        """Feed 不存在."""
        with pytest.raises(NotFoundError):
            await service.refresh_feed("feed_unknown")


class TestSettings:
    """测试设置."""

    async def test_defaults(self, service: FeedService) -> None:
        """默认设置."""
        settings = service.get_settings()
        assert settings.cache_minutes == 15
        assert settings.items_per_page == 20

    async def test_merge_update(self, service: FeedService) -> None:
        """合并更新，保留未修改的字段和未知字段."""
        await service.update_settings({"itemsPerPage": 5, "fontSize": "large"})
        settings = await service.update_settings({"cacheMinutes": 0})

        data = settings.to_json_dict()
        assert data["itemsPerPage"] == 5
        assert data["cacheMinutes"] == 0
        assert data["fontSize"] == "large"
        assert service.get_settings().to_json_dict() == data

    async def test_invalid_value(self, service: FeedService) -> None:
        """非法设置值不保存."""
        with pytest.raises(ValidationError, match="itemsPerPage"):
            await service.update_settings({"itemsPerPage": 0})
        assert service.get_settings().items_per_page == 20


class TestTimeline:
    """测试时间线."""

    async def test_uses_stored_settings(
        self, memory_service: tuple[FeedService, StubFetch]
    ) -> None:
        """按保存的每页数量分页."""
        service, stub = memory_service
        stub.results[RSS_URL] = make_feed("R", list(range(1, 8)))
        stub.results[ATOM_URL] = make_feed("A", list(range(10, 15)))
        rss = await service.add_feed(RSS_URL)
        await service.add_feed(ATOM_URL)
        await service.update_settings({"itemsPerPage": 5})

        page = await service.timeline()
        assert page.pagination.total == 12
        assert page.pagination.per_page == 5
        assert page.pagination.total_pages == 3
        assert [item.timestamp for item in page.items] == [14, 13, 12, 11, 10]

        page = await service.timeline(feed_ids={rss.id}, page=2)
        assert [item.timestamp for item in page.items] == [2, 1]

    async def test_add_then_timeline_without_refetch(
        self, memory_service: tuple[FeedService, StubFetch]
    ) -> None:
        """添加后立即查询时间线不会再次抓取."""
        service, stub = memory_service
        stub.results[RSS_URL] = make_feed("R", [1, 2])
        await service.add_feed(RSS_URL)

        page = await service.timeline(search="r #1")
        assert [item.title for item in page.items] == ["R #1"]
        assert stub.calls == [RSS_URL]

    async def test_warm_cache(
        self, memory_service: tuple[FeedService, StubFetch]
    ) -> None:
        """预热缓存返回各状态数量."""
        service, stub = memory_service
        stub.results[RSS_URL] = make_feed("R", [1])
        await service.add_feed(RSS_URL)
        await service.update_settings({"cacheMinutes": 0})

        stats = await service.warm_cache()
        assert stats == {"fetched": 1}

    @pytest.mark.parametrize("url", ["http://xn--/", "http://[::1/"])
    async def test_malformed_stored_url(self, service: FeedService, url: str) -> None:
        """订阅列表中无法请求的 URL 只影响该 Feed 本身."""
        await service.add_feed(RSS_URL)
        feed_list = service.store.load()
        feed_list.feeds.append(Feed(id="feed_bad", url=url, title="Bad"))
        service.store.save(feed_list)

        page = await service.timeline()
        assert [item.title for item in page.items] == ["Second story", "Breaking News"]

        outcome = await service.refresh_feed("feed_bad")
        assert outcome.status == CacheStatus.UNAVAILABLE


class TestGlobalService:
    """测试全局服务实例."""

    def test_not_initialized(self) -> None:
        """未初始化时抛出 RuntimeError."""
        with pytest.raises(RuntimeError):
            get_feed_service()
