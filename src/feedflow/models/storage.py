"""订阅列表 JSON 存储."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError as ModelValidationError

from feedflow.models.feed import FeedList, FeedSettings
from feedflow.utils.files import atomic_write_text

logger = logging.getLogger(__name__)


class FeedListStore:
    """订阅列表及设置的持久化（单个 JSON 文件）."""

    def __init__(
        self,
        path: Path,
        default_cache_minutes: int = 15,
        default_items_per_page: int = 20,
    ) -> None:
        self.path = path
        self.default_cache_minutes = default_cache_minutes
        self.default_items_per_page = default_items_per_page

    def default_list(self) -> FeedList:
        """空订阅列表."""
        return FeedList(
            settings=FeedSettings(
                cache_minutes=self.default_cache_minutes,
                items_per_page=self.default_items_per_page,
            )
        )

    def load(self) -> FeedList:
        """加载订阅列表，文件不存在时返回空列表."""
        if not self.path.exists():
            return self.default_list()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not data:
                return self.default_list()
            return FeedList.model_validate(data)
        except (json.JSONDecodeError, ModelValidationError) as e:
            logger.error(f"订阅列表文件无法解析，按空列表处理: {self.path} - {e}")
            return self.default_list()

    def save(self, feed_list: FeedList) -> None:
        """保存订阅列表."""
        text = json.dumps(feed_list.to_json_dict(), ensure_ascii=False, indent=4)
        atomic_write_text(self.path, text)
        logger.debug(f"订阅列表已保存: {len(feed_list.feeds)} 个 Feed")
