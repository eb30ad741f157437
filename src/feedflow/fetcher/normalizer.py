"""文章字段归一化：从 RSS item / Atom entry 中提取统一的 Item."""

import time
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

from lxml import etree

from feedflow.models.article import Item
from feedflow.utils.html_parser import extract_first_image, html_to_text, truncate_text

DESCRIPTION_LIMIT = 200

# 扩展命名空间（部分 Feed 使用不带结尾斜杠的 media 命名空间）
MEDIA_NS = frozenset({"http://search.yahoo.com/mrss/", "http://search.yahoo.com/mrss"})
CONTENT_NS = frozenset({"http://purl.org/rss/1.0/modules/content/"})
DC_NS = frozenset({"http://purl.org/dc/elements/1.1/"})

# 核心元素所在命名空间：RSS 2.0 无命名空间，RSS 1.0 / 0.90 与 Atom 各有其命名空间
ATOM_NS = "http://www.w3.org/2005/Atom"
CORE_NS = frozenset(
    {
        None,
        ATOM_NS,
        "http://purl.org/atom/ns#",
        "http://purl.org/rss/1.0/",
        "http://my.netscape.com/rdf/simple/0.9/",
    }
)

_FALLBACK_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
    "%d %b %Y %H:%M:%S %z",
    "%d %b %Y %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S",
)


# --- XML 辅助函数 ---


def local_name(element: etree._Element) -> str:
    """元素的本地名（去掉命名空间）."""
    return etree.QName(element).localname


def namespace(element: etree._Element) -> str | None:
    """元素的命名空间 URI."""
    return etree.QName(element).namespace


def children(
    element: etree._Element,
    name: str,
    ns: frozenset[str | None] = CORE_NS,
) -> Iterator[etree._Element]:
    """
    按本地名遍历直接子元素.

    默认只匹配核心命名空间，避免 media:title、itunes:category 之类的扩展元素混入。
    """
    for child in element:
        # 跳过注释和处理指令
        if not isinstance(child.tag, str):
            continue
        if local_name(child) != name or namespace(child) not in ns:
            continue
        yield child


def first_child(
    element: etree._Element,
    name: str,
    ns: frozenset[str | None] = CORE_NS,
) -> etree._Element | None:
    """第一个匹配的直接子元素."""
    return next(children(element, name, ns), None)


def element_text(element: etree._Element | None) -> str:
    """元素内的全部文本（包含子孙节点）."""
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def child_text(
    element: etree._Element,
    name: str,
    ns: frozenset[str | None] = CORE_NS,
) -> str:
    """第一个匹配子元素的文本."""
    return element_text(first_child(element, name, ns))


def inner_markup(element: etree._Element | None) -> str:
    """
    元素内部的原始标记.

    转义的 HTML（或 CDATA）直接返回文本；内联 XHTML 子元素则序列化为字符串。
    """
    if element is None:
        return ""
    if len(element) == 0:
        return element.text or ""
    parts = [element.text or ""]
    for child in element:
        parts.append(etree.tostring(child, encoding="unicode", with_tail=True))
    return "".join(parts)


# --- 字段解析 ---


def parse_timestamp(value: str, now: float | None = None) -> int:
    """
    宽松解析日期字符串为 epoch 秒.

    依次尝试 RFC 822、ISO 8601 以及几种常见格式；不带时区的按 UTC 处理。
    无法解析时返回当前时间（即视为“刚刚发布”）。
    """
    fallback = int(now if now is not None else time.time())
    value = (value or "").strip()
    if not value:
        return fallback

    parsed = _parse_rfc822(value) or _parse_iso8601(value) or _parse_with_formats(value)
    if parsed is None:
        return fallback

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    try:
        return int(parsed.timestamp())
    except (OverflowError, OSError, ValueError):
        return fallback


def _parse_rfc822(value: str) -> datetime | None:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _parse_iso8601(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_with_formats(value: str) -> datetime | None:
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def clean_description(raw: str) -> str:
    """去除标签并截断为 200 字符."""
    return truncate_text(html_to_text(raw), DESCRIPTION_LIMIT)


def _media_elements(element: etree._Element, name: str) -> Iterator[etree._Element]:
    """直接子元素及 media:group 内的 media:* 元素."""
    yield from children(element, name, MEDIA_NS)
    for group in children(element, "group", MEDIA_NS):
        yield from children(group, name, MEDIA_NS)


def _media_image(element: etree._Element) -> str:
    """media:content 的 url，其次 media:thumbnail 的 url."""
    for name in ("content", "thumbnail"):
        for media in _media_elements(element, name):
            url = (media.get("url") or "").strip()
            if url:
                return url
    return ""


class ItemNormalizer:
    """将 RSS item / Atom entry 归一化为 Item."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def normalize_rss_item(self, item: etree._Element) -> Item:
        """归一化 RSS 2.0 的 <item>."""
        description_raw = inner_markup(first_child(item, "description"))
        encoded = inner_markup(first_child(item, "encoded", CONTENT_NS))

        pub_date = child_text(item, "pubDate") or child_text(item, "date", DC_NS)

        return Item(
            title=child_text(item, "title"),
            link=self._rss_link(item),
            description=clean_description(description_raw),
            pub_date=pub_date,
            timestamp=parse_timestamp(pub_date, self._clock()),
            image=self._rss_image(item, encoded or description_raw),
            author=child_text(item, "author") or child_text(item, "creator", DC_NS),
            categories=[
                label
                for label in (element_text(c) for c in children(item, "category"))
                if label
            ],
        )

    def normalize_atom_entry(self, entry: etree._Element) -> Item:
        """归一化 Atom 的 <entry>."""
        summary = inner_markup(first_child(entry, "summary"))
        content = inner_markup(first_child(entry, "content"))

        pub_date = child_text(entry, "published") or child_text(entry, "updated")

        author = first_child(entry, "author")
        author_name = child_text(author, "name") if author is not None else ""

        return Item(
            title=child_text(entry, "title"),
            link=select_atom_link(entry),
            description=clean_description(summary or content),
            pub_date=pub_date,
            timestamp=parse_timestamp(pub_date, self._clock()),
            image=self._atom_image(entry, content or summary),
            author=author_name,
            # Atom 分类不提取
            categories=[],
        )

    def _rss_link(self, item: etree._Element) -> str:
        link = child_text(item, "link")
        if link:
            return link

        # 没有 <link> 时使用永久链接形式的 <guid>
        guid = first_child(item, "guid")
        if guid is not None and guid.get("isPermaLink", "true").lower() != "false":
            value = element_text(guid)
            if value.startswith(("http://", "https://")):
                return value
        return ""

    def _rss_image(self, item: etree._Element, html: str) -> str:
        # 1. 图片类型的 enclosure
        for enclosure in children(item, "enclosure"):
            if "image" in (enclosure.get("type") or ""):
                url = (enclosure.get("url") or "").strip()
                if url:
                    return url

        # 2. media:content / media:thumbnail
        image = _media_image(item)
        if image:
            return image

        # 3. 正文中的第一张图片
        return extract_first_image(html)

    def _atom_image(self, entry: etree._Element, html: str) -> str:
        for link in children(entry, "link"):
            if link.get("rel") == "enclosure" and "image" in (link.get("type") or ""):
                href = (link.get("href") or "").strip()
                if href:
                    return href

        image = _media_image(entry)
        if image:
            return image

        return extract_first_image(html)


def select_atom_link(entry: etree._Element) -> str:
    """
    选择 Atom entry 的链接.

    按文档顺序取第一个 rel 为 alternate 或未设置 rel 的链接；
    都不匹配时退回第一个 <link> 的 href。
    """
    links = list(children(entry, "link"))
    for link in links:
        rel = link.get("rel")
        if not rel or rel == "alternate":
            href = link.get("href")
            if href:
                return href.strip()

    if links:
        return (links[0].get("href") or "").strip()
    return ""
