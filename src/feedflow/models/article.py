"""文章与解析结果模型."""

from pydantic import Field

from feedflow.models.base import CamelModel


class Item(CamelModel):
    """Feed 中的一篇文章（已归一化）."""

    title: str = ""
    link: str = ""
    description: str = Field(default="", description="纯文本摘要，最多 200 字符")
    pub_date: str = Field(default="", description="原始发布时间字符串")
    timestamp: int = Field(default=0, description="发布时间（epoch 秒）")
    image: str = ""
    author: str = ""
    categories: list[str] = Field(default_factory=list)


class TimelineItem(Item):
    """合并到时间线中的文章，附带所属 Feed 信息."""

    feed_id: str
    feed_title: str
    feed_icon: str = ""


class ParsedFeed(CamelModel):
    """解析后的 Feed 文档，附带缓存层写入的来源元数据."""

    title: str = ""
    link: str = ""
    description: str = ""
    items: list[Item] = Field(default_factory=list)
    item_count: int = 0

    # 缓存层元数据
    feed_id: str | None = None
    fetched_at: str | None = None
    from_cache: bool | None = None
    cache_age: int | None = None
    stale: bool | None = None


class Pagination(CamelModel):
    """分页信息."""

    page: int
    per_page: int
    total: int
    total_pages: int


class TimelinePage(CamelModel):
    """时间线的一页."""

    items: list[TimelineItem] = Field(default_factory=list)
    pagination: Pagination
