"""OPML 导出 API."""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from feedflow.core.feeds import FeedService, get_feed_service
from feedflow.core.opml import EXPORT_FILENAME, render_opml

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("")
async def export_opml(
    service: FeedService = Depends(get_feed_service),
) -> Response:
    """导出订阅列表为 OPML."""
    document = render_opml(service.list_feeds().feeds)
    return Response(
        content=document,
        media_type="application/xml; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )
