"""Feed 文档解析器：RSS 2.0 / Atom → ParsedFeed."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from lxml import etree

from feedflow.errors import ParseError
from feedflow.fetcher.normalizer import (
    ItemNormalizer,
    child_text,
    children,
    first_child,
    local_name,
    select_atom_link,
)
from feedflow.models.article import Item, ParsedFeed

logger = logging.getLogger(__name__)


@dataclass
class FeedDocument(ABC):
    """按结构识别出的 Feed 文档."""

    root: etree._Element

    @abstractmethod
    def header(self) -> tuple[str, str, str]:
        """返回 (title, link, description)."""
        ...

    @abstractmethod
    def items(self, normalizer: ItemNormalizer) -> list[Item]:
        """按文档顺序返回归一化后的文章."""
        ...

    def to_parsed_feed(self, normalizer: ItemNormalizer) -> ParsedFeed:
        """转换为 ParsedFeed."""
        title, link, description = self.header()
        items = self.items(normalizer)
        return ParsedFeed(
            title=title,
            link=link,
            description=description,
            items=items,
            item_count=len(items),
        )


@dataclass
class RSSDocument(FeedDocument):
    """RSS 2.0（以及 RSS 1.0 / RDF）文档."""

    channel: etree._Element

    def header(self) -> tuple[str, str, str]:
        return (
            child_text(self.channel, "title"),
            child_text(self.channel, "link"),
            child_text(self.channel, "description"),
        )

    def items(self, normalizer: ItemNormalizer) -> list[Item]:
        elements = list(children(self.channel, "item"))
        if not elements:
            # RSS 1.0 的 <item> 与 <channel> 同级
            elements = list(children(self.root, "item"))
        return [normalizer.normalize_rss_item(element) for element in elements]


@dataclass
class AtomDocument(FeedDocument):
    """Atom 文档."""

    def header(self) -> tuple[str, str, str]:
        # 部分非标准 Feed 把链接写成 <link> 的文本
        link = select_atom_link(self.root) or child_text(self.root, "link")
        return (
            child_text(self.root, "title"),
            link,
            child_text(self.root, "subtitle"),
        )

    def items(self, normalizer: ItemNormalizer) -> list[Item]:
        return [
            normalizer.normalize_atom_entry(entry)
            for entry in children(self.root, "entry")
        ]


@dataclass
class UnknownDocument(FeedDocument):
    """无法识别的文档：返回空结果而不是报错."""

    def header(self) -> tuple[str, str, str]:
        return ("", "", "")

    def items(self, normalizer: ItemNormalizer) -> list[Item]:
        return []


def detect_document(root: etree._Element) -> FeedDocument:
    """根据结构判断 Feed 类型（不依赖扩展名或 Content-Type）."""
    channel = first_child(root, "channel")
    if channel is not None:
        return RSSDocument(root=root, channel=channel)
    if local_name(root) == "feed":
        return AtomDocument(root=root)
    return UnknownDocument(root=root)


class FeedDocumentParser:
    """Feed 文档解析器."""

    def __init__(self, normalizer: ItemNormalizer | None = None) -> None:
        self.normalizer = normalizer or ItemNormalizer()
        self._xml_parser = etree.XMLParser(
            recover=False,
            resolve_entities=False,
            no_network=True,
            huge_tree=False,
        )

    def parse(self, raw: bytes) -> ParsedFeed:
        """
        解析原始 Feed 文档.

        Args:
            raw: 原始字节

        Returns:
            ParsedFeed；无法识别的根元素返回空的 ParsedFeed

        Raises:
            ParseError: XML 格式错误
        """
        if not raw or not raw.strip():
            msg = "Feed 文档为空"
            raise ParseError(msg)

        try:
            # XML 声明之前不允许出现空白
            root = etree.fromstring(raw.lstrip(), parser=self._xml_parser)
        except etree.XMLSyntaxError as e:
            msg = f"XML 解析失败: {e}"
            raise ParseError(msg) from e

        document = detect_document(root)
        if isinstance(document, UnknownDocument):
            logger.info(f"无法识别的 Feed 根元素: {local_name(root)}")

        return document.to_parsed_feed(self.normalizer)
