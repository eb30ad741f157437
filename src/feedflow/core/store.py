"""Feed 缓存存储."""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError as ModelValidationError

from feedflow.models.article import ParsedFeed
from feedflow.utils.files import atomic_write_text

logger = logging.getLogger(__name__)


@dataclass
class StoredRecord:
    """缓存记录及其写入时间."""

    feed: ParsedFeed
    written_at: float  # epoch 秒


class CacheStore(ABC):
    """按 Feed ID 存取缓存记录的键值存储.

    实现必须保证 put 是原子的：读者只会看到旧记录或新记录，
    不会看到写了一半的数据。
    """

    @abstractmethod
    def get(self, feed_id: str) -> StoredRecord | None:
        """读取缓存记录，不存在时返回 None."""
        ...

    @abstractmethod
    def put(self, feed_id: str, feed: ParsedFeed) -> None:
        """整体替换缓存记录."""
        ...

    @abstractmethod
    def delete(self, feed_id: str) -> bool:
        """删除缓存记录，返回是否存在."""
        ...


class MemoryCacheStore(CacheStore):
    """内存缓存（用于测试）."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._records: dict[str, StoredRecord] = {}

    def get(self, feed_id: str) -> StoredRecord | None:
        record = self._records.get(feed_id)
        if record is None:
            return None
        # 返回副本，调用方修改不影响存储内容
        return StoredRecord(
            feed=record.feed.model_copy(deep=True),
            written_at=record.written_at,
        )

    def put(self, feed_id: str, feed: ParsedFeed) -> None:
        self._records[feed_id] = StoredRecord(
            feed=feed.model_copy(deep=True),
            written_at=self._clock(),
        )

    def delete(self, feed_id: str) -> bool:
        return self._records.pop(feed_id, None) is not None


def cache_filename(feed_id: str) -> str:
    """缓存文件名：Feed ID 的 MD5（与 URL 无关）."""
    return hashlib.md5(feed_id.encode("utf-8")).hexdigest() + ".json"  # noqa: S324


class FileCacheStore(CacheStore):
    """文件缓存：每个 Feed 一个 JSON 文件，修改时间即写入时间."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, feed_id: str) -> Path:
        """Feed 对应的缓存文件路径."""
        return self.cache_dir / cache_filename(feed_id)

    def get(self, feed_id: str) -> StoredRecord | None:
        path = self.path_for(feed_id)
        try:
            written_at = path.stat().st_mtime
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"读取缓存失败: {path} - {e}")
            return None

        try:
            feed = ParsedFeed.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ModelValidationError) as e:
            logger.warning(f"缓存文件损坏，忽略: {path} - {e}")
            return None

        return StoredRecord(feed=feed, written_at=written_at)

    def put(self, feed_id: str, feed: ParsedFeed) -> None:
        path = self.path_for(feed_id)
        atomic_write_text(path, json.dumps(feed.to_json_dict(), ensure_ascii=False))
        logger.debug(f"缓存已写入: {feed_id} -> {path.name}")

    def delete(self, feed_id: str) -> bool:
        path = self.path_for(feed_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True
