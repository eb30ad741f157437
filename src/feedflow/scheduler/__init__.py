"""定时任务."""

from feedflow.scheduler.tasks import (
    create_scheduler,
    shutdown_scheduler,
    warm_cache_task,
)

__all__ = [
    "create_scheduler",
    "shutdown_scheduler",
    "warm_cache_task",
]
