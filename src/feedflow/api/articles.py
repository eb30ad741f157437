"""文章 API."""

from fastapi import APIRouter, Depends, Query

from feedflow.core.feeds import FeedService, get_feed_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


def parse_feed_ids(value: str | None) -> set[str] | None:
    """解析逗号分隔的 Feed ID 列表，未提供时返回 None（表示全部）."""
    if value is None:
        return None
    return {part.strip() for part in value.split(",") if part.strip()}


@router.get("")
async def list_articles(
    feeds: str | None = Query(None, description="逗号分隔的 Feed ID，不传表示全部"),
    page: int = Query(1, description="页码"),
    search: str = Query("", description="搜索标题或摘要"),
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """获取聚合后的文章列表."""
    timeline = await service.timeline(
        feed_ids=parse_feed_ids(feeds),
        page=max(1, page),
        search=search.strip(),
    )
    data = timeline.to_json_dict()
    return {
        "success": True,
        "items": data["items"],
        "pagination": data["pagination"],
    }
