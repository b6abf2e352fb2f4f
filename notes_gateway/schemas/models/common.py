"""
공통 모델 - 페이지네이션 옵션/결과, camelCase 직렬화 베이스
"""

from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

DEFAULT_LIMIT = 50


class CamelModel(BaseModel):
    """Python 에서는 snake_case, JSON 에서는 camelCase 를 쓰는 베이스 모델"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class OrderDirection(str, Enum):
    asc = "ASC"
    desc = "DESC"


class QueryOptions(CamelModel):
    """목록 조회 공통 옵션"""

    limit: Optional[int] = Field(None, ge=1)
    offset: Optional[int] = Field(None, ge=0)
    order_by: Optional[str] = None
    order_direction: Optional[OrderDirection] = None

    @property
    def effective_limit(self) -> int:
        return self.limit or DEFAULT_LIMIT

    @property
    def effective_offset(self) -> int:
        return self.offset or 0


class OwnedQueryOptions(QueryOptions):
    """소유자 + 휴지통 상태 필터 (notes, folders 공통)"""

    owner_id: Optional[str] = None
    include_deleted: bool = False
    only_deleted: bool = False


class PaginatedResult(CamelModel, Generic[T]):
    data: List[T]
    total: int
    limit: int
    offset: int
