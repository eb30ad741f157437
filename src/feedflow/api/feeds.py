"""Feed 订阅源 API."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from feedflow.core.feeds import FeedService, get_feed_service

router = APIRouter(prefix="/api/feeds", tags=["feeds"])


class AddFeedRequest(BaseModel):
    """添加订阅请求."""

    url: str = ""
    title: str = ""
    category: str = ""
    icon: str = ""


@router.get("")
async def list_feeds(
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """获取订阅列表及设置."""
    feed_list = service.list_feeds().to_json_dict()
    return {
        "success": True,
        "feeds": feed_list["feeds"],
        "settings": feed_list["settings"],
    }


@router.post("")
async def add_feed(
    body: AddFeedRequest,
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """添加订阅."""
    feed = await service.add_feed(
        body.url,
        title=body.title,
        category=body.category,
        icon=body.icon,
    )
    return {
        "success": True,
        "feed": feed.to_json_dict(),
        "message": "Feed added successfully",
    }


@router.delete("/{feed_id}")
async def remove_feed(
    feed_id: str,
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """删除订阅及其缓存."""
    await service.remove_feed(feed_id)
    return {"success": True, "message": "Feed removed successfully"}


@router.post("/{feed_id}/refresh")
async def refresh_feed(
    feed_id: str,
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """强制刷新 Feed 缓存."""
    outcome = await service.refresh_feed(feed_id)
    return {
        "success": True,
        "status": outcome.status.value,
        "feed": outcome.feed.to_json_dict() if outcome.feed else None,
    }
