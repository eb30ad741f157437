"""数据模型."""

from feedflow.models.article import (
    Item,
    Pagination,
    ParsedFeed,
    TimelineItem,
    TimelinePage,
)
from feedflow.models.feed import Feed, FeedList, FeedSettings
from feedflow.models.storage import FeedListStore

__all__ = [
    "Feed",
    "FeedList",
    "FeedListStore",
    "FeedSettings",
    "Item",
    "Pagination",
    "ParsedFeed",
    "TimelineItem",
    "TimelinePage",
]
