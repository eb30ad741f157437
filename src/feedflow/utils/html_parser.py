"""HTML 解析工具."""

import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

_IMG_SRC_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["']""", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

ELLIPSIS = "..."


def html_to_text(html: str) -> str:
    """
    将 HTML 转换为单行纯文本.

    Args:
        html: HTML 内容（也可以是纯文本）

    Returns:
        去除标签、合并空白后的文本
    """
    if not html or not html.strip():
        return ""

    # 摘要经常只是纯文本或一个 URL，bs4 会对此发出警告
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(html, "lxml")

    # 移除 script 和 style 标签
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def extract_first_image(html: str) -> str:
    """
    提取 HTML 中第一个 <img> 的 src.

    Args:
        html: HTML 内容

    Returns:
        图片 URL，没有则返回空字符串
    """
    if not html:
        return ""

    match = _IMG_SRC_RE.search(html)
    return match.group(1) if match else ""


def truncate_text(text: str, limit: int = 200) -> str:
    """
    截断文本，超出 limit 个字符时追加省略号.

    按字符（而非字节）截断，不会拆开多字节字符。
    """
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS
