"""核心业务逻辑."""

from feedflow.core.aggregator import ArticleAggregator
from feedflow.core.cache import CacheOutcome, CacheStatus, FeedCache
from feedflow.core.feeds import FeedService
from feedflow.core.store import CacheStore, FileCacheStore, MemoryCacheStore

__all__ = [
    "ArticleAggregator",
    "CacheOutcome",
    "CacheStatus",
    "CacheStore",
    "FeedCache",
    "FeedService",
    "FileCacheStore",
    "MemoryCacheStore",
]
