"""
业务异常 → HTTP 状态码
"""
from fastapi import HTTPException

from ai_review_generator.core.exceptions import ReviewGeneratorError

STATUS_BY_CODE = {
    "invalid_post": 404,
    "api_error": 502,
    "generation_failed": 502,
    "invalid_response": 502,
    "empty_response": 502,
}


def to_http_exception(error: ReviewGeneratorError) -> HTTPException:
    """配置与状态类错误统一返回 400"""
    status_code = STATUS_BY_CODE.get(error.code, 400)
    return HTTPException(
        status_code=status_code,
        detail={"code": error.code, "message": error.message},
    )
