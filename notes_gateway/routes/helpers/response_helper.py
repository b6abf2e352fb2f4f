"""
응답 봉투 헬퍼

모든 라우트가 같은 JSON 형태를 돌려주도록 성공/오류 봉투를 만듭니다.
- 성공: {success: true, data, message, meta{timestamp, version, requestId, correlationId}}
- 오류: RFC 9457 Problem Details + success=false, timestamp, errors[]

오류의 상태 코드와 제목은 ERROR_TYPES 별로 ERROR_CATALOG 에 고정되어 있어
호출하는 쪽은 오류 유형과 (필요하면) detail 만 넘깁니다.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Dict, List, Literal, NamedTuple, Optional
from uuid import uuid4

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

API_VERSION = "1.0"


class ApiResponseMeta(BaseModel):
    timestamp: str
    version: str
    requestId: str
    correlationId: Optional[str] = None


class StandardApiResponse(BaseModel):
    success: Literal[True]
    data: Any
    message: Optional[str] = None
    meta: ApiResponseMeta


class ApiErrorItem(BaseModel):
    detail: str
    pointer: Optional[str] = None
    code: Optional[str] = None


class ApiErrorResponse(BaseModel):
    type: str
    title: str
    status: int
    detail: Optional[str] = None
    instance: Optional[str] = None
    success: Literal[False]
    correlationId: Optional[str] = None
    timestamp: str
    errors: Optional[List[ApiErrorItem]] = None


class ERROR_TYPES(StrEnum):
    MISSING_API_KEY = "missing_api_key"
    INVALID_API_KEY = "invalid_api_key"

    INVALID_BODY = "invalid_body"
    INVALID_OPTIONS = "invalid_options"
    INVALID_TABLE = "invalid_table"
    PAYLOAD_TOO_LARGE = "payload_too_large"

    ACCOUNT_NOT_FOUND = "account_not_found"
    NOTE_NOT_FOUND = "note_not_found"
    FOLDER_NOT_FOUND = "folder_not_found"

    DB_FAILED = "db_failed"
    DB_UNAVAILABLE = "db_unavailable"


class ErrorSpec(NamedTuple):
    status: int
    title: str


ERROR_CATALOG: Dict[ERROR_TYPES, ErrorSpec] = {
    ERROR_TYPES.MISSING_API_KEY: ErrorSpec(401, "Missing API key"),
    ERROR_TYPES.INVALID_API_KEY: ErrorSpec(403, "Invalid API key"),
    ERROR_TYPES.INVALID_BODY: ErrorSpec(400, "Invalid request body"),
    ERROR_TYPES.INVALID_OPTIONS: ErrorSpec(400, "Invalid request options"),
    ERROR_TYPES.INVALID_TABLE: ErrorSpec(400, "Invalid table"),
    ERROR_TYPES.PAYLOAD_TOO_LARGE: ErrorSpec(413, "Payload too large"),
    ERROR_TYPES.ACCOUNT_NOT_FOUND: ErrorSpec(404, "Account not found"),
    ERROR_TYPES.NOTE_NOT_FOUND: ErrorSpec(404, "Note not found"),
    ERROR_TYPES.FOLDER_NOT_FOUND: ErrorSpec(404, "Folder not found"),
    ERROR_TYPES.DB_FAILED: ErrorSpec(500, "Database error"),
    ERROR_TYPES.DB_UNAVAILABLE: ErrorSpec(503, "Database unavailable"),
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_meta(request: Request) -> ApiResponseMeta:
    """X-Request-ID (없으면 uuid4), Correlation-Id 헤더로 meta 구성"""
    return ApiResponseMeta(
        timestamp=_now_iso(),
        version=API_VERSION,
        requestId=request.headers.get("X-Request-ID") or str(uuid4()),
        correlationId=request.headers.get("Correlation-Id"),
    )


def ok_response(
    request: Request,
    *,
    data: Any,
    message: Optional[str] = None,
    status_code: int = 200,
) -> JSONResponse:
    """성공 봉투. 도메인 모델은 camelCase 별칭으로 직렬화"""
    body = StandardApiResponse(
        success=True,
        data=jsonable_encoder(data, by_alias=True),
        message=message,
        meta=build_meta(request),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def error_response(
    request: Request,
    error_type: ERROR_TYPES,
    *,
    detail: Optional[str] = None,
    errors: Optional[List[ApiErrorItem]] = None,
) -> JSONResponse:
    entry = ERROR_CATALOG[error_type]
    body = ApiErrorResponse(
        type=error_type.value,
        title=entry.title,
        status=entry.status,
        detail=detail or None,
        instance=request.url.path,
        success=False,
        correlationId=request.headers.get("Correlation-Id"),
        timestamp=_now_iso(),
        errors=errors,
    )
    return JSONResponse(status_code=entry.status, content=body.model_dump())


def not_found_response(request: Request, entity: str) -> JSONResponse:
    """entity: "account" | "note" | "folder" """
    return error_response(request, ERROR_TYPES(f"{entity}_not_found"))


def validation_errors(errors: List[Dict[str, Any]]) -> List[ApiErrorItem]:
    """pydantic/FastAPI 검증 오류 -> ApiErrorItem 목록 (loc 는 JSON pointer 로)"""
    items = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        items.append(
            ApiErrorItem(
                detail=str(error.get("msg", "")),
                pointer="/" + "/".join(loc) if loc else None,
                code=error.get("type"),
            )
        )
    return items
