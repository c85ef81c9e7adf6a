"""
业务异常定义

所有异常都带有稳定的 code，供日志表与 HTTP 层使用
"""
from typing import Any, Optional


class ReviewGeneratorError(Exception):
    """评论生成相关异常基类"""

    code = "review_generator_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidModelError(ReviewGeneratorError):
    """选择了不存在的模型提供方"""

    code = "invalid_model"

    def __init__(self, message: str = "Invalid AI model selected"):
        super().__init__(message)


class MissingApiKeyError(ReviewGeneratorError):
    """提供方要求 API Key 但未配置"""

    code = "missing_api_key"

    def __init__(self, message: str = "API key is required for this model"):
        super().__init__(message)


class ApiError(ReviewGeneratorError):
    """网络层 / HTTP 层错误"""

    code = "api_error"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status = status
        self.response = response


class InvalidResponseError(ReviewGeneratorError):
    """响应无法解析或缺少内容"""

    code = "invalid_response"

    def __init__(self, message: str = "Could not extract content from AI model response"):
        super().__init__(message)


class EmptyResponseError(ReviewGeneratorError):
    """响应为空"""

    code = "empty_response"

    def __init__(self, message: str = "Empty or invalid response received from AI model"):
        super().__init__(message)


class GenerationFailedError(ReviewGeneratorError):
    """整批生成全部失败"""

    code = "generation_failed"

    def __init__(self, message: str = "Failed to generate any reviews"):
        super().__init__(message)


class AutoGenerateDisabledError(ReviewGeneratorError):
    code = "auto_generate_disabled"

    def __init__(self, message: str = "Auto-generation is disabled for this item"):
        super().__init__(message)


class PostNotPublishedError(ReviewGeneratorError):
    code = "post_not_published"

    def __init__(self, message: str = "Post is not published"):
        super().__init__(message)


class InvalidPostError(ReviewGeneratorError):
    code = "invalid_post"

    def __init__(self, message: str = "Invalid post ID"):
        super().__init__(message)
