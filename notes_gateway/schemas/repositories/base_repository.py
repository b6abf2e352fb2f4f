"""
Repository 공통 기반

- CRUD 계약: find_by_id / find_all / create / update / delete / count
- 페이지 조회: 같은 조건으로 페이지 쿼리와 COUNT 쿼리를 동시에 실행
- 동기화: upsert 를 항목별로 독립 실행하고 결과를 집계 (부분 실패 허용)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from psycopg import AsyncConnection
from pydantic import BaseModel

from notes_gateway.resources.database.postgresql import PostgreSQLManager
from notes_gateway.resources.logging import get_meter
from notes_gateway.schemas.codecs import EntityCodec
from notes_gateway.schemas.models import OwnedQueryOptions, PaginatedResult, QueryOptions
from notes_gateway.schemas.repositories.query_builder import (
    PredicateBuilder,
    UpdateBuilder,
    build_paged_query,
    order_clause,
)

logger = logging.getLogger(__name__)

_sync_failures = get_meter(__name__).create_counter(
    "notes_gateway.sync.failures",
    unit="1",
    description="bulk upsert 에서 실패한 항목 수",
)

ModelT = TypeVar("ModelT", bound=BaseModel)

# upsert 시 update 경로로 넘기지 않는 키
IDENTITY_KEYS = ("id", "owner_id")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BulkSyncFailure:
    """동기화 실패 항목 (index 는 입력 배열 기준)"""
    index: int
    id: Optional[str]
    error: str


@dataclass
class BulkSyncResult:
    total: int
    succeeded: int
    failures: List[BulkSyncFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


def _item_id(item: Any) -> Optional[str]:
    if isinstance(item, BaseModel):
        return getattr(item, "id", None)
    if isinstance(item, Mapping):
        value = item.get("id")
        return str(value) if value is not None else None
    return None


def partial_data(partial: Union[BaseModel, Mapping[str, Any], None]) -> Dict[str, Any]:
    """부분 입력에서 실제로 전달된 필드만 추출"""
    if partial is None:
        return {}
    if isinstance(partial, BaseModel):
        return partial.model_dump(exclude_unset=True)
    return dict(partial)


class BaseRepository(Generic[ModelT]):
    """
    테이블 하나 = 엔티티 하나 Repository 의 공통 구현

    하위 클래스는 codec, default_order_column, sync_model 을 지정하고
    _sync_defaults() 로 신규 삽입 시 기본값을 제공합니다.
    """

    codec: EntityCodec
    default_order_column: str = "created_at"
    sync_model: Type[BaseModel]
    # upsert 가 기존 행을 갱신할 때 건드리지 않는 컬럼 (신규 삽입 시에는 그대로 사용)
    sync_update_exclude: Tuple[str, ...] = ("created_at",)

    def __init__(self, db: PostgreSQLManager):
        """
        Args:
            db: PostgreSQL 매니저
        """
        self.db = db

    @property
    def table(self) -> str:
        return self.codec.table

    def _decode(self, row: Optional[Dict[str, Any]]) -> Optional[ModelT]:
        return self.codec.decode(row) if row else None

    # ========== 조회 ==========

    async def find_by_id(self, entity_id: str, conn: Optional[AsyncConnection] = None) -> Optional[ModelT]:
        """ID로 조회. 없으면 None"""
        row = await self.db.fetchrow(f"SELECT * FROM {self.table} WHERE id = %s", entity_id, conn=conn)
        return self._decode(row)

    async def find_all(self, options: Optional[QueryOptions] = None) -> PaginatedResult[ModelT]:
        """활성 행 페이지 조회"""
        predicates = PredicateBuilder()
        if self.codec.soft_delete:
            predicates.deleted_state()
        return await self._paginate(predicates, options)

    async def _paginate(self, predicates: PredicateBuilder, options: Optional[QueryOptions]) -> PaginatedResult[ModelT]:
        options = options or QueryOptions()
        limit = options.effective_limit
        offset = options.effective_offset
        order_sql = order_clause(self.codec, options.order_by, options.order_direction, self.default_order_column)
        paged = build_paged_query(self.table, predicates, order_sql, limit, offset)

        rows, total = await asyncio.gather(
            self.db.fetch(paged.page_sql, *paged.page_params),
            self.db.fetchval(paged.count_sql, *paged.count_params),
        )
        return PaginatedResult(
            data=[self.codec.decode(row) for row in rows],
            total=int(total or 0),
            limit=limit,
            offset=offset,
        )

    async def _list(self, predicates: PredicateBuilder, options: Optional[QueryOptions]) -> List[ModelT]:
        """페이지 메타데이터 없이 목록 조회 (limit/offset 은 지정된 경우에만 적용)"""
        options = options or QueryOptions()
        where, params = predicates.render()
        order_sql = order_clause(self.codec, options.order_by, options.order_direction, self.default_order_column)
        query = " ".join(part for part in (f"SELECT * FROM {self.table}", where, order_sql) if part)
        if options.limit is not None:
            query += " LIMIT %s"
            params.append(options.limit)
        if options.offset is not None:
            query += " OFFSET %s"
            params.append(options.offset)
        rows = await self.db.fetch(query, *params)
        return [self.codec.decode(row) for row in rows]

    async def count(self, filters: Optional[Mapping[str, Any]] = None) -> int:
        """동등 비교 필터로 행 수 조회. 알 수 없는 컬럼은 ValueError"""
        predicates = PredicateBuilder()
        for key, value in (filters or {}).items():
            column = self.codec.require_column(key)
            if value is None:
                predicates.nullable_reference(column, True, None)
            else:
                predicates.equals(column, self.codec.encode_value(column, value))
        where, params = predicates.render()
        query = " ".join(part for part in (f"SELECT COUNT(*) AS total FROM {self.table}", where) if part)
        return int(await self.db.fetchval(query, *params) or 0)

    async def exists(
        self,
        entity_id: str,
        owner_id: Optional[str] = None,
        conn: Optional[AsyncConnection] = None,
    ) -> bool:
        if owner_id is None:
            row = await self.db.fetchrow(f"SELECT id FROM {self.table} WHERE id = %s", entity_id, conn=conn)
        else:
            row = await self.db.fetchrow(
                f"SELECT id FROM {self.table} WHERE id = %s AND owner_id = %s",
                entity_id,
                owner_id,
                conn=conn,
            )
        return row is not None

    # ========== 쓰기 ==========

    async def _insert(self, values: Dict[str, Any], conn: Optional[AsyncConnection] = None) -> ModelT:
        """행 삽입 후 다시 읽어서 반환 (기본값이 채워진 상태로 정규화)"""
        encoded = self.codec.encode(values)
        columns = ", ".join(encoded)
        placeholders = ", ".join(["%s"] * len(encoded))
        await self.db.execute(
            f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
            *encoded.values(),
            conn=conn,
        )
        created = await self.find_by_id(values["id"], conn=conn)
        if created is None:
            raise RuntimeError(f"{self.table} 삽입 직후 조회 실패: {values['id']}")
        return created

    def _update_assignments(self, data: Dict[str, Any]) -> UpdateBuilder:
        """전달된 필드 -> SET 절. NOT NULL 컬럼에 대한 None 은 무시"""
        builder = UpdateBuilder()
        for key, value in data.items():
            column = self.codec.require_column(key)
            if column in IDENTITY_KEYS or column == "updated_at":
                continue
            if value is None and column not in self.codec.nullable_columns:
                continue
            builder.assign(column, self.codec.encode_value(column, value))
        return builder

    async def update(
        self,
        entity_id: str,
        partial: Union[BaseModel, Mapping[str, Any], None],
        conn: Optional[AsyncConnection] = None,
    ) -> Optional[ModelT]:
        """
        전달된 필드만 UPDATE. 변경할 필드가 없으면 조회만 수행합니다.
        updated_at 이 함께 전달되면 그 값을, 아니면 현재 시각을 사용합니다.
        """
        data = partial_data(partial)
        builder = self._update_assignments(data)
        if not builder:
            return await self.find_by_id(entity_id, conn=conn)

        builder.assign("updated_at", data.get("updated_at") or utcnow())
        set_sql, params = builder.render()
        row = await self.db.fetchrow(
            f"UPDATE {self.table} SET {set_sql} WHERE id = %s RETURNING *",
            *params,
            entity_id,
            conn=conn,
        )
        return self._decode(row)

    async def delete(self, entity_id: str) -> bool:
        """영구 삭제"""
        result = await self.db.execute(f"DELETE FROM {self.table} WHERE id = %s", entity_id)
        return result.affected_rows > 0

    # ========== 동기화 ==========

    def _sync_defaults(self, now: datetime) -> Dict[str, Any]:
        """upsert 신규 삽입 시 생략된 필드의 기본값"""
        return {"created_at": now, "updated_at": now}

    def _sync_insert_values(self, entity_id: str, owner_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        now = utcnow()
        values = self._sync_defaults(now)
        for key, value in data.items():
            column = self.codec.require_column(key)
            if value is None and column not in self.codec.nullable_columns:
                continue
            values[column] = value
        values["id"] = entity_id
        if owner_id is not None:
            values["owner_id"] = owner_id
        return values

    async def _upsert(
        self,
        entity_id: str,
        owner_id: Optional[str],
        partial: Union[BaseModel, Mapping[str, Any], None],
        conn: Optional[AsyncConnection] = None,
    ) -> ModelT:
        """(id, owner_id) 로 존재 확인 후 update 또는 전체 행 insert"""
        data = {k: v for k, v in partial_data(partial).items() if k not in IDENTITY_KEYS}

        if await self.exists(entity_id, owner_id, conn=conn):
            changes = {k: v for k, v in data.items() if self.codec.resolve_column(k) not in self.sync_update_exclude}
            updated = await self.update(entity_id, changes, conn=conn)
            if updated is None:
                raise RuntimeError(f"{self.table} upsert 중 행이 사라짐: {entity_id}")
            return updated

        return await self._insert(self._sync_insert_values(entity_id, owner_id, data), conn=conn)

    def _coerce_sync_item(self, item: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
        """항목별 검증. 잘못된 항목은 해당 항목만 실패"""
        if isinstance(item, self.sync_model):
            return item
        if isinstance(item, BaseModel):
            item = item.model_dump(exclude_unset=True)
        return self.sync_model.model_validate(item)

    async def _upsert_sync_item(self, item: BaseModel, conn: Optional[AsyncConnection] = None) -> ModelT:
        raise NotImplementedError

    async def bulk_upsert(self, items: Iterable[Union[BaseModel, Mapping[str, Any]]]) -> int:
        """항목별 독립 upsert. 성공 개수만 반환 (실패 상세는 bulk_upsert_detailed)"""
        result = await self.bulk_upsert_detailed(items)
        return result.succeeded

    async def bulk_upsert_detailed(self, items: Iterable[Union[BaseModel, Mapping[str, Any]]]) -> BulkSyncResult:
        """
        모든 항목을 동시에 upsert 합니다. 공유 트랜잭션이 없으므로
        한 항목의 실패가 다른 항목을 되돌리지 않습니다.
        """
        items = list(items)

        async def apply(item):
            return await self._upsert_sync_item(self._coerce_sync_item(item))

        outcomes = await asyncio.gather(*(apply(item) for item in items), return_exceptions=True)

        failures = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, Exception):
                failures.append(self._record_failure(index, items[index], outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
        return BulkSyncResult(total=len(items), succeeded=len(items) - len(failures), failures=failures)

    def _record_failure(self, index: int, item: Any, error: Exception) -> BulkSyncFailure:
        failure = BulkSyncFailure(index=index, id=_item_id(item), error=f"{type(error).__name__}: {error}")
        logger.warning("[%s] 동기화 실패 index=%d id=%s: %s", self.table, index, failure.id, failure.error)
        _sync_failures.add(1, {"db.sql.table": self.table, "error.type": type(error).__name__})
        return failure


class OwnedRepository(BaseRepository[ModelT]):
    """
    소유자가 있고 휴지통(soft delete)을 지원하는 엔티티 공통 구현 (notes, folders)

    상태: active <-> trashed
    - trash: active 에서만. 한 번의 UPDATE 로 플래그/시각 설정 + 하위 클래스의 스냅샷 처리
    - restore: trashed 에서만. 스냅샷 복원 후 플래그 해제
    - permanent_delete: 어느 상태에서든 소유자 범위 안에서 영구 삭제
    """

    # trash/restore 시 추가로 SET 할 SQL 식 (하위 클래스에서 지정)
    trash_assignments: Tuple[str, ...] = ()
    restore_assignments: Tuple[str, ...] = ()

    def _owner_predicates(self, owner_id: Optional[str], options: OwnedQueryOptions) -> PredicateBuilder:
        predicates = PredicateBuilder()
        predicates.equals("owner_id", owner_id)
        predicates.deleted_state(options.include_deleted, options.only_deleted)
        return predicates

    async def find_by_owner(self, owner_id: str, options: Optional[OwnedQueryOptions] = None) -> List[ModelT]:
        """소유자의 목록 (기본: 휴지통 제외)"""
        options = options or OwnedQueryOptions()
        return await self._list(self._owner_predicates(owner_id, options), options)

    async def find_with_filter(self, options: Optional[OwnedQueryOptions] = None) -> PaginatedResult[ModelT]:
        """필터 + 페이지 조회. total 은 같은 조건의 전체 개수"""
        options = options or OwnedQueryOptions()
        return await self._paginate(self._owner_predicates(options.owner_id, options), options)

    # ========== 휴지통 ==========

    async def trash(self, entity_id: str, owner_id: str) -> bool:
        """휴지통으로 이동. 없거나, 소유자가 다르거나, 이미 휴지통이면 아무것도 하지 않음"""
        now = utcnow()
        assignments = ", ".join((*self.trash_assignments, "is_deleted = 1", "deleted_at = %s", "updated_at = %s"))
        result = await self.db.execute(
            f"UPDATE {self.table} SET {assignments} "
            "WHERE id = %s AND owner_id = %s AND (is_deleted = 0 OR is_deleted IS NULL)",
            now,
            now,
            entity_id,
            owner_id,
        )
        return result.affected_rows > 0

    async def restore(self, entity_id: str, owner_id: str) -> bool:
        """휴지통에서 복원. 휴지통 상태가 아니면 아무것도 하지 않음"""
        assignments = ", ".join((*self.restore_assignments, "is_deleted = 0", "deleted_at = NULL", "updated_at = %s"))
        result = await self.db.execute(
            f"UPDATE {self.table} SET {assignments} WHERE id = %s AND owner_id = %s AND is_deleted = 1",
            utcnow(),
            entity_id,
            owner_id,
        )
        return result.affected_rows > 0

    async def permanent_delete(self, entity_id: str, owner_id: str) -> bool:
        result = await self.db.execute(
            f"DELETE FROM {self.table} WHERE id = %s AND owner_id = %s",
            entity_id,
            owner_id,
        )
        return result.affected_rows > 0

    async def delete_by_owner(self, owner_id: str) -> int:
        """소유자의 모든 행 영구 삭제 (계정 삭제 시 명시적으로 호출)"""
        result = await self.db.execute(f"DELETE FROM {self.table} WHERE owner_id = %s", owner_id)
        return result.affected_rows

    # ========== 동기화 ==========

    async def upsert(
        self,
        entity_id: str,
        owner_id: str,
        partial: Union[BaseModel, Mapping[str, Any], None],
        conn: Optional[AsyncConnection] = None,
    ) -> ModelT:
        """(id, owner_id) 로 존재 확인 후 update, 없으면 기본값으로 채운 전체 행 insert"""
        return await self._upsert(entity_id, owner_id, partial, conn=conn)

    async def _upsert_sync_item(self, item: BaseModel, conn: Optional[AsyncConnection] = None) -> ModelT:
        return await self.upsert(item.id, item.owner_id, item, conn=conn)
