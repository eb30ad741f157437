"""测试配置和 fixtures."""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from feedflow.core.aggregator import ArticleAggregator
from feedflow.core.cache import FeedCache
from feedflow.core.feeds import FeedService, get_feed_service
from feedflow.core.store import FileCacheStore, MemoryCacheStore
from feedflow.errors import FetchError
from feedflow.fetcher.client import FeedFetcher
from feedflow.main import app
from feedflow.models.article import Item, ParsedFeed
from feedflow.models.storage import FeedListStore

# 2024-01-15 10:00:00 UTC
JAN_15 = 1705312800
# 2024-01-16 10:00:00 UTC
JAN_16 = 1705399200

RSS_URL = "https://example.com/rss.xml"
ATOM_URL = "https://blog.example.com/feed.xml"
BROKEN_URL = "https://broken.example.com/feed.xml"
MISSING_URL = "https://missing.example.com/feed.xml"

SAMPLE_RSS = b"""\
<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Example News</title>
    <link>https://example.com</link>
    <description>Latest news</description>
    <item>
      <title>Breaking News</title>
      <link>https://example.com/1</link>
      <description>
        &lt;p&gt;Something &lt;b&gt;happened&lt;/b&gt;&lt;/p&gt;
      </description>
      <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
      <author>editor@example.com</author>
      <category>World</category>
      <category>Politics</category>
      <enclosure url="https://example.com/1.jpg"
                 type="image/jpeg" length="1024"/>
      <content:encoded>
        <![CDATA[<p><img src="https://example.com/inline.jpg"></p>]]>
      </content:encoded>
    </item>
    <item>
      <title>Second story</title>
      <link>https://example.com/2</link>
      <description>Plain text summary</description>
      <pubDate>Tue, 16 Jan 2024 10:00:00 GMT</pubDate>
      <dc:creator>Jane Doe</dc:creator>
      <media:thumbnail url="https://example.com/thumb.jpg"/>
    </item>
  </channel>
</rss>
"""

SAMPLE_ATOM = b"""\
<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Blog</title>
  <subtitle>Thoughts and notes</subtitle>
  <link rel="self" href="https://blog.example.com/feed.xml"/>
  <link rel="alternate" href="https://blog.example.com/"/>
  <entry>
    <title>Hello Atom</title>
    <link rel="self" href="https://blog.example.com/hello/self"/>
    <link rel="alternate" href="https://blog.example.com/hello"/>
    <published>2024-01-15T10:00:00Z</published>
    <updated>2024-01-16T10:00:00Z</updated>
    <author><name>Alice</name></author>
    <category term="ignored"/>
    <summary>Short summary</summary>
    <content type="html">
      &lt;p&gt;Body &lt;img src="https://blog.example.com/pic.png"/&gt;&lt;/p&gt;
    </content>
  </entry>
</feed>
"""


class FakeClock:
    """可控的时钟."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += minutes * 60


class StubFetch:
    """按 URL 返回预设结果的抓取函数，记录调用次数."""

    def __init__(
        self, results: dict[str, ParsedFeed | Exception] | None = None
    ) -> None:
        self.results: dict[str, ParsedFeed | Exception] = results or {}
        self.calls: list[str] = []

    async def __call__(self, url: str) -> ParsedFeed:
        self.calls.append(url)
        result = self.results.get(url)
        if result is None:
            msg = f"HTTP 404: {url}"
            raise FetchError(msg)
        if isinstance(result, Exception):
            raise result
        return result.model_copy(deep=True)


def make_feed(title: str, timestamps: list[int], prefix: str = "") -> ParsedFeed:
    """构造测试用的 ParsedFeed."""
    items = [
        Item(
            title=f"{prefix}{title} #{i}",
            link=f"https://example.com/{title}/{i}",
            description=f"Description of {title} #{i}",
            timestamp=ts,
        )
        for i, ts in enumerate(timestamps)
    ]
    return ParsedFeed(title=title, items=items, item_count=len(items))


def feed_transport(routes: dict[str, tuple[int, bytes]]) -> httpx.MockTransport:
    """按 URL 返回预设响应的 httpx 传输层."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404, text="not found")
        status, body = route
        return httpx.Response(status, content=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def clock() -> FakeClock:
    """测试时钟."""
    return FakeClock()


@pytest.fixture
def default_routes() -> dict[str, tuple[int, bytes]]:
    """默认的远程 Feed."""
    return {
        RSS_URL: (200, SAMPLE_RSS),
        ATOM_URL: (200, SAMPLE_ATOM),
        BROKEN_URL: (200, b"<rss><channel><title>oops"),
    }


@pytest.fixture
async def fetcher(
    default_routes: dict[str, tuple[int, bytes]],
) -> AsyncGenerator[FeedFetcher, None]:
    """使用 MockTransport 的抓取客户端."""
    client = FeedFetcher(transport=feed_transport(default_routes))
    yield client
    await client.close()


@pytest.fixture
def service_factory(
    tmp_path: Path,
) -> Callable[[FeedFetcher], FeedService]:
    """基于临时目录组装 FeedService."""

    def build(fetcher: FeedFetcher) -> FeedService:
        store = FeedListStore(tmp_path / "feeds.json")
        cache = FeedCache(FileCacheStore(tmp_path / "cache"), fetcher.fetch)
        aggregator = ArticleAggregator(cache, concurrency=4)
        return FeedService(store, cache, aggregator, fetcher.fetch)

    return build


@pytest.fixture
def service(
    service_factory: Callable[[FeedFetcher], FeedService],
    fetcher: FeedFetcher,
) -> FeedService:
    """测试用的 FeedService."""
    return service_factory(fetcher)


@pytest.fixture
def memory_service(tmp_path: Path, clock: FakeClock) -> tuple[FeedService, StubFetch]:
    """使用内存缓存和桩抓取函数的 FeedService."""
    stub = StubFetch()
    store = FeedListStore(tmp_path / "feeds.json")
    cache = FeedCache(MemoryCacheStore(clock), stub, clock=clock)
    aggregator = ArticleAggregator(cache)
    return FeedService(store, cache, aggregator, stub), stub


@pytest.fixture
async def client(service: FeedService) -> AsyncGenerator[AsyncClient, None]:
    """创建测试用的 HTTP 客户端."""
    app.dependency_overrides[get_feed_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
