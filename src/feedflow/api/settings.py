"""设置 API."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from feedflow.core.feeds import FeedService, get_feed_service

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("")
async def get_current_settings(
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """获取当前设置."""
    return {"success": True, "settings": service.get_settings().to_json_dict()}


@router.api_route("", methods=["PATCH", "POST"])
async def update_settings(
    patch: dict[str, Any] = Body(..., description="要更新的设置项（camelCase）"),
    service: FeedService = Depends(get_feed_service),
) -> dict:
    """合并更新设置."""
    settings = await service.update_settings(patch)
    return {"success": True, "settings": settings.to_json_dict()}
