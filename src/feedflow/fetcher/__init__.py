"""Feed 抓取与解析模块."""

from feedflow.fetcher.client import FeedFetcher
from feedflow.fetcher.normalizer import ItemNormalizer
from feedflow.fetcher.parser import FeedDocumentParser

__all__ = [
    "FeedDocumentParser",
    "FeedFetcher",
    "ItemNormalizer",
]
