"""
필터 쿼리 빌더

하나의 조건(predicate) 목록을 WHERE 절로 한 번 렌더링하고,
같은 결과를 페이지 쿼리와 COUNT 쿼리에 그대로 사용합니다.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from psycopg.types.json import Jsonb

from notes_gateway.schemas.codecs import EntityCodec
from notes_gateway.schemas.models import OrderDirection


def escape_like(term: str) -> str:
    """LIKE 와일드카드 이스케이프 (PostgreSQL 기본 escape 문자 = 백슬래시)"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class Predicate:
    sql: str
    params: Tuple[Any, ...] = ()


class PredicateBuilder:
    """
    조건을 추가 순서대로 AND 결합합니다.

    Repository 는 항상 같은 순서로 조건을 추가합니다:
    owner -> 삭제 상태 -> nullable FK(folder) -> enum -> 검색 -> 태그
    """

    def __init__(self):
        self._predicates: List[Predicate] = []

    def __len__(self) -> int:
        return len(self._predicates)

    @property
    def predicates(self) -> List[Predicate]:
        return list(self._predicates)

    def add(self, sql: str, *params: Any) -> "PredicateBuilder":
        self._predicates.append(Predicate(sql, tuple(params)))
        return self

    def equals(self, column: str, value: Any) -> "PredicateBuilder":
        """value 가 None 이면 조건을 추가하지 않습니다."""
        if value is None:
            return self
        return self.add(f"{column} = %s", value)

    def deleted_state(self, include_deleted: bool = False, only_deleted: bool = False) -> "PredicateBuilder":
        # only_deleted 가 include_deleted 보다 우선
        if only_deleted:
            return self.add("is_deleted = 1")
        if include_deleted:
            return self
        return self.add("(is_deleted = 0 OR is_deleted IS NULL)")

    def nullable_reference(self, column: str, specified: bool, value: Optional[str]) -> "PredicateBuilder":
        """지정 안 함: 조건 없음 / None: IS NULL / 값: 일치"""
        if not specified:
            return self
        if value is None:
            return self.add(f"{column} IS NULL")
        return self.add(f"{column} = %s", value)

    def search(self, columns: Sequence[str], term: Optional[str]) -> "PredicateBuilder":
        """여러 텍스트 컬럼에 대한 부분 일치 (OR)"""
        if not term:
            return self
        pattern = f"%{escape_like(term)}%"
        clause = " OR ".join(f"{column} ILIKE %s" for column in columns)
        return self.add(f"({clause})", *([pattern] * len(columns)))

    def contains_any(self, column: str, values: Optional[Iterable[str]]) -> "PredicateBuilder":
        """JSONB 배열 컬럼이 값 중 하나라도 포함 (태그 하나당 조건 하나, OR)"""
        values = list(values or [])
        if not values:
            return self
        clause = " OR ".join(f"{column} @> %s" for _ in values)
        return self.add(f"({clause})", *[Jsonb([value]) for value in values])

    def render(self) -> Tuple[str, List[Any]]:
        """(WHERE 절, 파라미터). 조건이 없으면 빈 문자열"""
        if not self._predicates:
            return "", []
        where = "WHERE " + " AND ".join(p.sql for p in self._predicates)
        params: List[Any] = []
        for predicate in self._predicates:
            params.extend(predicate.params)
        return where, params


def order_clause(
    codec: EntityCodec,
    order_by: Optional[str],
    direction: Union[OrderDirection, str, None],
    default_column: str,
) -> str:
    """화이트리스트 컬럼/방향으로 ORDER BY 절 생성. 알 수 없는 값은 ValueError"""
    column = codec.require_column(order_by) if order_by else default_column
    if direction is None:
        direction_sql = OrderDirection.desc.value
    else:
        raw = direction.value if isinstance(direction, OrderDirection) else str(direction)
        try:
            direction_sql = OrderDirection(raw.upper()).value
        except ValueError:
            raise ValueError(f"잘못된 정렬 방향: {direction}") from None
    return f"ORDER BY {column} {direction_sql}"


@dataclass
class PagedQuery:
    """같은 WHERE 절을 공유하는 페이지 쿼리 + COUNT 쿼리"""

    page_sql: str
    page_params: List[Any]
    count_sql: str
    count_params: List[Any]


def build_paged_query(
    table: str,
    predicates: PredicateBuilder,
    order_sql: str,
    limit: int,
    offset: int,
) -> PagedQuery:
    where, params = predicates.render()
    select = " ".join(part for part in (f"SELECT * FROM {table}", where, order_sql) if part)
    count = " ".join(part for part in (f"SELECT COUNT(*) AS total FROM {table}", where) if part)
    return PagedQuery(
        page_sql=f"{select} LIMIT %s OFFSET %s",
        page_params=[*params, limit, offset],
        count_sql=count,
        count_params=list(params),
    )


@dataclass
class UpdateBuilder:
    """
    UPDATE ... SET 절 조립

    assign() 은 값 파라미터, assign_raw() 는 SQL 식을 그대로 사용합니다.
    """

    assignments: List[Predicate] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.assignments)

    def assign(self, column: str, value: Any) -> "UpdateBuilder":
        self.assignments.append(Predicate(f"{column} = %s", (value,)))
        return self

    def assign_raw(self, sql: str, *params: Any) -> "UpdateBuilder":
        self.assignments.append(Predicate(sql, tuple(params)))
        return self

    def has_column(self, column: str) -> bool:
        prefix = f"{column} ="
        return any(a.sql.startswith(prefix) for a in self.assignments)

    def render(self) -> Tuple[str, List[Any]]:
        params: List[Any] = []
        for assignment in self.assignments:
            params.extend(assignment.params)
        return ", ".join(a.sql for a in self.assignments), params
