"""Feed 抓取客户端."""

import asyncio
import logging

import httpx

from feedflow.errors import FetchError
from feedflow.fetcher.parser import FeedDocumentParser
from feedflow.models.article import ParsedFeed

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "FeedFlow RSS Reader/1.0"


def parse_request_url(url: str) -> httpx.URL:
    """
    按 httpx 的规则解析 URL.

    Raises:
        httpx.InvalidURL: URL 格式错误
        UnicodeError: 主机名不是合法的 IDNA 编码
    """
    parsed = httpx.URL(url)
    # 访问 host 会解码 xn-- 形式的主机名
    _ = parsed.host
    return parsed


class FeedFetcher:
    """抓取并解析远程 Feed 文档.

    整个下载（连接、重定向、读取响应体）共用一个总超时（默认 10 秒），
    自动跟随重定向。
    """

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        parser: FeedDocumentParser | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.parser = parser or FeedDocumentParser()
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={
                "User-Agent": user_agent,
                "Accept": "application/rss+xml, application/atom+xml, "
                "application/xml;q=0.9, text/xml;q=0.9, */*;q=0.8",
            },
            transport=transport,
        )

    async def close(self) -> None:
        """关闭客户端."""
        await self._client.aclose()

    async def fetch_document(self, url: str) -> bytes:
        """
        下载 Feed 原始内容.

        Raises:
            FetchError: URL 无效、网络错误、超时、非 2xx 响应或空响应
        """
        try:
            request_url = parse_request_url(url)
            # httpx 的超时只限制单次读写，慢速响应需要总时限
            async with asyncio.timeout(self.timeout):
                response = await self._client.get(request_url)
        except (TimeoutError, httpx.TimeoutException) as e:
            msg = f"请求超时: {url}"
            raise FetchError(msg) from e
        except (httpx.InvalidURL, UnicodeError) as e:
            msg = f"URL 无效: {url}"
            raise FetchError(msg) from e
        except httpx.HTTPError as e:
            msg = f"请求失败: {url} ({e.__class__.__name__}: {e})"
            raise FetchError(msg) from e

        if not response.is_success:
            msg = f"HTTP {response.status_code}: {url}"
            raise FetchError(msg)

        content = response.content
        if not content or not content.strip():
            msg = f"响应为空: {url}"
            raise FetchError(msg)

        return content

    async def fetch(self, url: str) -> ParsedFeed:
        """
        抓取并解析 Feed.

        Raises:
            FetchError: 抓取失败
            ParseError: XML 格式错误
        """
        content = await self.fetch_document(url)
        # 解析较大的文档耗时明显，放到线程中执行
        feed = await asyncio.to_thread(self.parser.parse, content)
        logger.debug(f"解析完成: {url} ({feed.item_count} 篇)")
        return feed
