"""
라우트 공통 요청 처리 유틸
"""

from typing import Any, Dict, Optional

from fastapi import Request

from notes_gateway.resources.database.database_manager import DatabaseGateway

# 쿼리스트링에서 "folderId=null" 은 "폴더 없음" 필터를 의미
NULL_LITERAL = "null"


def get_gateway(request: Request) -> DatabaseGateway:
    """lifespan 에서 app.state 에 등록한 게이트웨이"""
    return request.app.state.gateway


def nullable_query(value: Optional[str]) -> Optional[str]:
    return None if value == NULL_LITERAL else value


def owned_query_options(
    *,
    owner_id: Optional[str] = None,
    include_deleted: bool = False,
    only_deleted: bool = False,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    order_by: Optional[str] = None,
    order_direction: Optional[str] = None,
) -> Dict[str, Any]:
    """
    None 인 항목은 빼고 옵션 dict 를 만듭니다.
    (NoteQueryOptions 의 folder_id 처럼 '지정 여부' 가 의미를 갖는 필드를 위해)
    """
    options = {
        "owner_id": owner_id,
        "include_deleted": include_deleted,
        "only_deleted": only_deleted,
        "limit": limit,
        "offset": offset,
        "order_by": order_by,
        "order_direction": order_direction.upper() if order_direction else None,
    }
    return {key: value for key, value in options.items() if value is not None}
