"""URL 校验与 Feed ID 生成."""

import re
import secrets
from urllib.parse import urlsplit

import httpx

from feedflow.fetcher.client import parse_request_url

_WHITESPACE_RE = re.compile(r"\s")


def is_valid_feed_url(url: str) -> bool:
    """
    检查 Feed URL 是否合法.

    仅允许 http / https，且必须带有主机名；httpx 无法请求的 URL
    （例如格式错误的 IDNA 主机名）同样视为无效。
    """
    if not url or _WHITESPACE_RE.search(url):
        return False

    try:
        parts = urlsplit(url)
        # 访问 port 会校验端口号
        _ = parts.port
        parse_request_url(url)
    except (ValueError, httpx.InvalidURL):
        # UnicodeError 是 ValueError 的子类
        return False

    return parts.scheme in ("http", "https") and bool(parts.hostname)


def generate_feed_id() -> str:
    """生成唯一的 Feed ID."""
    return f"feed_{secrets.token_hex(8)}"
