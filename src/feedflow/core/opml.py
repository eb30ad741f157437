"""OPML 导出."""

from collections.abc import Iterable

from lxml import etree

from feedflow.models.feed import DEFAULT_CATEGORY, Feed

EXPORT_TITLE = "FeedFlow Export"
EXPORT_FILENAME = "feedflow-export.opml"


def group_by_category(feeds: Iterable[Feed]) -> dict[str, list[Feed]]:
    """按分类分组，保持分类首次出现的顺序及分类内 Feed 的顺序."""
    categories: dict[str, list[Feed]] = {}
    for feed in feeds:
        categories.setdefault(feed.category or DEFAULT_CATEGORY, []).append(feed)
    return categories


def render_opml(feeds: Iterable[Feed], title: str = EXPORT_TITLE) -> bytes:
    """
    生成 OPML 2.0 文档.

    每个分类一个 <outline>，其中每个 Feed 一个 <outline type="rss">。
    """
    opml = etree.Element("opml", version="2.0")
    head = etree.SubElement(opml, "head")
    etree.SubElement(head, "title").text = title
    body = etree.SubElement(opml, "body")

    for category, category_feeds in group_by_category(feeds).items():
        outline = etree.SubElement(body, "outline", text=category)
        for feed in category_feeds:
            etree.SubElement(
                outline,
                "outline",
                type="rss",
                text=feed.title,
                xmlUrl=feed.url,
            )

    return etree.tostring(
        opml,
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    )
