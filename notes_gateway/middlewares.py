"""
Notes Gateway Middlewares
HTTP 요청/응답 처리를 위한 미들웨어
"""

import hmac
import logging
import time

from fastapi import Request

from notes_gateway.routes.helpers.response_helper import ERROR_TYPES, error_response

logger = logging.getLogger(__name__)

# API 키 없이 접근 가능한 경로
PUBLIC_PATHS = frozenset({"/", "/api/raw/health"})


def _extract_api_key(request: Request):
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key.strip()
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip()
    return None


async def verify_api_key(request: Request, call_next):
    """
    X-API-Key 또는 Authorization: Bearer 헤더의 API 키 검증
    - 없음: 401
    - 불일치: 403
    """
    if request.url.path in PUBLIC_PATHS or request.method == "OPTIONS":
        return await call_next(request)

    expected = request.app.state.config.security.api_key
    api_key = _extract_api_key(request)

    if not api_key:
        return error_response(
            request,
            ERROR_TYPES.MISSING_API_KEY,
            detail="X-API-Key 또는 Authorization: Bearer 헤더가 필요합니다",
        )
    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning("잘못된 API 키: %s %s", request.method, request.url.path)
        return error_response(request, ERROR_TYPES.INVALID_API_KEY)

    return await call_next(request)


async def log_requests(request: Request, call_next):
    """요청별 처리 시간 로깅"""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %d (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


def limit_body_size(max_bytes: int):
    """Content-Length 가 max_bytes 를 넘는 요청은 413"""

    async def middleware(request: Request, call_next):
        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            return error_response(
                request,
                ERROR_TYPES.PAYLOAD_TOO_LARGE,
                detail=f"요청 본문은 최대 {max_bytes} bytes 입니다",
            )
        return await call_next(request)

    return middleware
