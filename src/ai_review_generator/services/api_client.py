"""
外部 API 客户端 - 带响应缓存的 HTTP 调用封装
"""
import hashlib
import json
from typing import Any, Optional

import requests

from ai_review_generator.core import get_logger, get_settings
from ai_review_generator.core.exceptions import ApiError, InvalidResponseError
from ai_review_generator.services.cache import ResponseCache, response_cache

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "ai_review_"
DEFAULT_CACHE_TTL = 86400


def make_cache_key(endpoint: str, body: Any) -> str:
    """缓存键 = hash(端点 + 序列化请求体)"""
    serialized = json.dumps(body, sort_keys=True, ensure_ascii=False, default=str)
    digest = hashlib.md5(f"{endpoint}{serialized}".encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


def _extract_error_message(error_data: Any) -> str:
    """兼容 {"error": "..."} 与 {"error": {"message": "..."}} 两种格式"""
    if not isinstance(error_data, dict) or "error" not in error_data:
        return ""
    error = error_data["error"]
    if isinstance(error, str):
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return ""


class ApiClient:
    """
    HTTP 客户端

    单次请求，不重试；成功响应按 TTL 写入缓存，
    debug 模式下完全绕过缓存
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[ResponseCache] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        debug: Optional[bool] = None,
        timeout: Optional[int] = None,
        max_redirects: Optional[int] = None,
    ):
        settings = get_settings()
        self.session = session or requests.Session()
        self.session.max_redirects = (
            max_redirects if max_redirects is not None else settings.http_max_redirects
        )
        self.cache = cache if cache is not None else response_cache
        self.cache_ttl = cache_ttl
        self.debug = settings.debug if debug is None else debug
        self.timeout = timeout if timeout is not None else settings.http_timeout

    def _get_cached(self, cache_key: str) -> Optional[Any]:
        if self.debug:
            return None
        return self.cache.get(cache_key)

    def _cache_response(self, cache_key: str, data: Any, ttl: int) -> None:
        if self.debug:
            return
        self.cache.set(cache_key, data, ttl)

    def request(
        self,
        endpoint: str,
        body: Optional[dict] = None,
        headers: Optional[dict] = None,
        method: str = "POST",
        force_fresh: bool = False,
        ttl: Optional[int] = None,
    ) -> Any:
        """
        发起请求（命中缓存时直接返回）

        Args:
            endpoint: 完整的接口地址
            body: 请求体（GET 时作为查询参数）
            headers: 请求头
            method: 请求方法
            force_fresh: 是否跳过缓存读取
            ttl: 本次写缓存的过期秒数，默认使用客户端配置

        Returns:
            解码后的 JSON

        Raises:
            ApiError: 网络错误或 HTTP 状态码 >= 400
            InvalidResponseError: 响应不是合法 JSON
        """
        body = body or {}
        method = method.upper()
        cache_key = make_cache_key(endpoint, body)

        if not force_fresh:
            cached = self._get_cached(cache_key)
            if cached is not None:
                logger.debug(f"命中响应缓存: {endpoint}")
                return cached

        kwargs: dict[str, Any] = {
            "headers": headers or {},
            "timeout": self.timeout,
            "verify": True,
            "allow_redirects": True,
        }
        if method == "GET":
            kwargs["params"] = body or None
        else:
            kwargs["json"] = body

        logger.info(f"调用外部接口: {method} {endpoint}")

        try:
            response = self.session.request(method, endpoint, **kwargs)
        except requests.RequestException as e:
            logger.error(f"外部接口请求失败: {endpoint}, error={e}")
            raise ApiError(str(e)) from e

        status = response.status_code
        if status >= 400:
            try:
                error_data = response.json()
            except ValueError:
                error_data = None
            message = _extract_error_message(error_data) or f"HTTP Error: {status}"
            logger.warning(f"外部接口返回错误: status={status}, message={message}")
            raise ApiError(message, status=status, response=error_data)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"响应 JSON 解析失败: {endpoint}")
            raise InvalidResponseError("Invalid JSON response from AI model") from e

        self._cache_response(cache_key, data, self.cache_ttl if ttl is None else ttl)
        return data

    def clear_cache(self) -> int:
        """清空响应缓存"""
        count = self.cache.clear()
        logger.info(f"响应缓存已清空: {count} 条")
        return count
