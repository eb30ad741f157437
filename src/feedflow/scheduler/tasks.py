"""定时任务定义."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from feedflow.config import Settings

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


async def warm_cache_task() -> None:
    """缓存预热任务：刷新已过期的 Feed 缓存."""
    from feedflow.core.feeds import get_feed_service

    logger.info("开始缓存预热任务...")
    try:
        stats = await get_feed_service().warm_cache()
    except Exception as e:
        logger.exception(f"缓存预热任务失败: {e}")
        return

    summary = ", ".join(f"{status}={count}" for status, count in sorted(stats.items()))
    logger.info(f"缓存预热完成: {summary or '无订阅'}")


def create_scheduler(settings: Settings) -> AsyncIOScheduler | None:
    """创建并启动定时任务调度器；预热间隔为 0 时不启动."""
    global _scheduler

    if settings.warm_interval_minutes <= 0:
        logger.info("缓存预热已禁用")
        return None

    _scheduler = AsyncIOScheduler()

    _scheduler.add_job(
        warm_cache_task,
        "interval",
        minutes=settings.warm_interval_minutes,
        id="warm_cache_task",
        name="Feed 缓存预热",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    _scheduler.start()
    logger.info(
        f"定时任务调度器已启动，预热间隔: {settings.warm_interval_minutes} 分钟"
    )

    return _scheduler


async def shutdown_scheduler() -> None:
    """关闭定时任务调度器."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        logger.info("定时任务调度器已关闭")
        _scheduler = None
