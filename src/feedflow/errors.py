"""FeedFlow 异常定义."""


class FeedFlowError(Exception):
    """FeedFlow 基础异常."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FetchError(FeedFlowError):
    """网络错误、超时或非成功响应."""

    status_code = 502


class ParseError(FeedFlowError):
    """XML 格式错误，无法解析."""

    status_code = 422


class ValidationError(FeedFlowError):
    """请求参数不合法：URL 无效、重复订阅、缺少必填字段."""

    status_code = 400


class NotFoundError(FeedFlowError):
    """Feed 不存在."""

    status_code = 404
