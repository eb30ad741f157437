"""Feed 订阅源模型."""

from pydantic import ConfigDict, Field

from feedflow.models.base import CamelModel

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_ICON = "📰"


class Feed(CamelModel):
    """RSS 订阅源."""

    id: str = Field(description="稳定的不透明 ID")
    url: str = Field(description="Feed URL，全局唯一")
    title: str = Field(description="Feed 标题")
    category: str = Field(default=DEFAULT_CATEGORY, description="分类")
    icon: str = Field(default=DEFAULT_ICON, description="图标")


class FeedSettings(CamelModel):
    """订阅列表中保存的运行时设置.

    除已知字段外，客户端提交的其他字段（如界面偏好）原样保留。
    """

    model_config = ConfigDict(extra="allow")

    cache_minutes: int = Field(default=15, ge=0, description="缓存有效期（分钟）")
    items_per_page: int = Field(default=20, ge=1, description="每页文章数")
    theme: str = Field(default="auto", description="界面主题")


class FeedList(CamelModel):
    """订阅列表及设置."""

    feeds: list[Feed] = Field(default_factory=list)
    settings: FeedSettings = Field(default_factory=FeedSettings)

    def find(self, feed_id: str) -> Feed | None:
        """按 ID 查找 Feed."""
        for feed in self.feeds:
            if feed.id == feed_id:
                return feed
        return None
