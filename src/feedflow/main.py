"""FeedFlow 主应用入口."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from feedflow.api import articles, export, feeds, settings
from feedflow.config import get_settings
from feedflow.core.feeds import init_service, shutdown_service
from feedflow.errors import FeedFlowError
from feedflow.scheduler import create_scheduler, shutdown_scheduler

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

APP_NAME = "FeedFlow RSS Reader API"
APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """应用生命周期管理."""
    app_settings = get_settings()

    logger.info(f"正在初始化存储: {app_settings.data_dir}")
    init_service(app_settings)

    logger.info("正在启动定时任务...")
    create_scheduler(app_settings)

    logger.info("FeedFlow 启动完成！")
    yield

    # 关闭时清理
    logger.info("正在关闭...")
    await shutdown_scheduler()
    await shutdown_service()
    logger.info("FeedFlow 已关闭")


app = FastAPI(
    title="FeedFlow",
    description="RSS / Atom 聚合阅读器",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(FeedFlowError)
async def feedflow_error_handler(request: Request, exc: FeedFlowError) -> JSONResponse:
    """业务错误统一返回 {success: false, error}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """请求参数格式错误."""
    fields = ", ".join(
        ".".join(str(part) for part in err["loc"] if part != "body")
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": f"Invalid request: {fields}"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """未预期的错误：记录日志，返回 500."""
    logger.exception(f"请求处理失败: {request.method} {request.url.path} - {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


# 注册路由
app.include_router(feeds.router)
app.include_router(articles.router)
app.include_router(settings.router)
app.include_router(export.router)


@app.get("/")
async def root() -> dict:
    """根路径."""
    return {
        "success": True,
        "name": APP_NAME,
        "version": APP_VERSION,
        "endpoints": {
            "GET /api/feeds": "List all feeds",
            "POST /api/feeds": "Add new feed",
            "DELETE /api/feeds/{feed_id}": "Remove feed",
            "POST /api/feeds/{feed_id}/refresh": "Refresh feed cache",
            "GET /api/articles": "Get articles (optional: feeds, page, search)",
            "GET/PATCH /api/settings": "Get/update settings",
            "GET /api/export": "Export feeds as OPML",
        },
    }


@app.get("/health")
async def health() -> dict:
    """健康检查."""
    return {"status": "ok"}


def run() -> None:
    """命令行入口."""
    import uvicorn

    uvicorn.run(
        "feedflow.main:app",
        host="0.0.0.0",
        port=8000,
    )


if __name__ == "__main__":
    run()
