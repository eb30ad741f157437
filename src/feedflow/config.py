"""应用配置管理."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置（环境变量）."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FEEDFLOW_",
        extra="ignore",
    )

    # 存储配置
    data_dir: Path = Path("./data")
    cache_dir: Path | None = None

    # 抓取配置
    fetch_timeout_seconds: float = 10.0
    fetch_concurrency: int = 8
    user_agent: str = "FeedFlow RSS Reader/1.0"

    # 订阅列表为空时使用的默认值
    default_cache_minutes: int = 15
    default_items_per_page: int = 20

    # 缓存预热间隔，0 表示禁用
    warm_interval_minutes: int = 0

    @property
    def feeds_file(self) -> Path:
        """订阅列表 JSON 文件路径."""
        return self.data_dir / "feeds.json"

    @property
    def effective_cache_dir(self) -> Path:
        """Feed 缓存目录."""
        return self.cache_dir or self.data_dir / "cache"


@lru_cache
def get_settings() -> Settings:
    """获取应用配置（带缓存）."""
    return Settings()
