"""
Account Repository
계정 CRUD, 검색/역할 필터, 활동 시각 갱신, 정지/해제, 동기화(upsert)
"""

import re
import secrets
import string
from typing import Any, Dict, Mapping, Optional, Union
from uuid import uuid4

from psycopg import AsyncConnection
from pydantic import BaseModel

from notes_gateway.resources.logging import trace_class
from notes_gateway.schemas.codecs import ACCOUNT_CODEC
from notes_gateway.schemas.models import (
    Account,
    AccountCreate,
    AccountQueryOptions,
    AccountRole,
    AccountSync,
    HashAlgorithm,
    PaginatedResult,
)
from notes_gateway.schemas.repositories.base_repository import BaseRepository, utcnow
from notes_gateway.schemas.repositories.query_builder import PredicateBuilder, UpdateBuilder

SEARCH_COLUMNS = ("username", "email", "display_name")
SUSPENSION_COLUMNS = ("suspended", "suspended_at", "suspended_reason")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def generate_username(email: str) -> str:
    """이메일 로컬 파트(영숫자만) + '_' + 임의 4자"""
    local = re.sub(r"[^a-z0-9]", "", email.split("@")[0].lower())
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(4))
    return f"{local}_{suffix}"


@trace_class
class AccountRepository(BaseRepository[Account]):
    """Account 엔티티 Repository (소유자 개념 없음)"""

    codec = ACCOUNT_CODEC
    default_order_column = "created_at"
    sync_model = AccountSync

    # ========== 조회 ==========

    async def find_by_email(self, email: str) -> Optional[Account]:
        row = await self.db.fetchrow("SELECT * FROM accounts WHERE email = %s LIMIT 1", email)
        return self._decode(row)

    async def find_by_username(self, username: str) -> Optional[Account]:
        row = await self.db.fetchrow("SELECT * FROM accounts WHERE username = %s LIMIT 1", username)
        return self._decode(row)

    async def find_with_filter(self, options: Optional[AccountQueryOptions] = None) -> PaginatedResult[Account]:
        """username/email/display_name 부분 일치 검색 + 역할 필터"""
        options = options or AccountQueryOptions()
        predicates = PredicateBuilder()
        predicates.equals("role", options.role.value if options.role else None)
        predicates.search(SEARCH_COLUMNS, options.search)
        return await self._paginate(predicates, options)

    async def has_admin_account(self) -> bool:
        row = await self.db.fetchrow("SELECT 1 AS found FROM accounts WHERE role = %s LIMIT 1", AccountRole.admin.value)
        return row is not None

    # ========== 생성/수정 ==========

    async def create(self, dto: AccountCreate) -> Account:
        """계정 생성. username 미지정 시 이메일에서 생성, 활동 시각 3종은 생성 시각으로 초기화"""
        now = utcnow()
        values = {
            "id": str(uuid4()),
            "username": dto.username or generate_username(dto.email),
            "email": dto.email,
            "password_hash": dto.password_hash,
            "hash_algorithm": dto.hash_algorithm,
            "display_name": dto.display_name,
            "role": dto.role,
            "permissions": dto.permissions,
            "suspended": False,
            "created_at": now,
            "updated_at": now,
            "last_login_at": now,
            "last_seen_at": now,
            "notes_updated_at": now,
        }
        return await self._insert(values)

    def _update_assignments(self, data: Dict[str, Any]) -> UpdateBuilder:
        """
        정지 관련 필드는 불변식을 지키도록 따로 처리합니다:
        suspended_at/suspended_reason 은 suspended 인 동안에만 값이 있습니다.
        """
        rest = {k: v for k, v in data.items() if self.codec.resolve_column(k) not in SUSPENSION_COLUMNS}
        builder = super()._update_assignments(rest)

        suspension = {self.codec.resolve_column(k): v for k, v in data.items() if self.codec.resolve_column(k) in SUSPENSION_COLUMNS}
        if not suspension:
            return builder

        suspended = suspension.get("suspended")
        if suspended is True:
            builder.assign("suspended", 1)
            if suspension.get("suspended_at"):
                builder.assign("suspended_at", suspension["suspended_at"])
            else:
                # 이미 정지된 계정은 최초 정지 시각 유지
                builder.assign_raw("suspended_at = COALESCE(suspended_at, %s)", utcnow())
            if "suspended_reason" in suspension:
                builder.assign("suspended_reason", suspension["suspended_reason"])
        elif suspended is False:
            builder.assign("suspended", 0)
            builder.assign_raw("suspended_at = NULL")
            builder.assign_raw("suspended_reason = NULL")
        else:
            # 정지 상태를 바꾸지 않는 경우 현재 정지된 계정에만 반영
            for column in ("suspended_at", "suspended_reason"):
                if column in suspension:
                    builder.assign_raw(f"{column} = CASE WHEN suspended = 1 THEN %s ELSE NULL END", suspension[column])
        return builder

    async def _touch(self, assignments: str, *params: Any) -> bool:
        result = await self.db.execute(f"UPDATE accounts SET {assignments} WHERE id = %s", *params)
        return result.affected_rows > 0

    async def update_last_login(self, account_id: str) -> bool:
        now = utcnow()
        return await self._touch("last_login_at = %s, last_seen_at = %s", now, now, account_id)

    async def update_last_seen(self, account_id: str) -> bool:
        return await self._touch("last_seen_at = %s", utcnow(), account_id)

    async def update_notes_timestamp(self, account_id: str) -> bool:
        return await self._touch("notes_updated_at = %s", utcnow(), account_id)

    async def update_password_hash(
        self,
        account_id: str,
        password_hash: str,
        algorithm: Union[HashAlgorithm, str] = HashAlgorithm.pbkdf2,
    ) -> bool:
        algorithm = HashAlgorithm(algorithm).value
        return await self._touch(
            "password_hash = %s, hash_algorithm = %s, updated_at = %s",
            password_hash,
            algorithm,
            utcnow(),
            account_id,
        )

    async def suspend(self, account_id: str, reason: Optional[str] = None) -> bool:
        now = utcnow()
        return await self._touch(
            "suspended = 1, suspended_at = %s, suspended_reason = %s, updated_at = %s",
            now,
            reason,
            now,
            account_id,
        )

    async def unsuspend(self, account_id: str) -> bool:
        return await self._touch(
            "suspended = 0, suspended_at = NULL, suspended_reason = NULL, updated_at = %s",
            utcnow(),
            account_id,
        )

    # ========== 동기화 ==========

    def _sync_insert_values(self, entity_id: str, owner_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        values = super()._sync_insert_values(entity_id, owner_id, data)
        email = values.get("email") or ""
        values.setdefault("email", email)
        values.setdefault("username", email.split("@")[0] or "user")
        values.setdefault("password_hash", "")
        values.setdefault("hash_algorithm", HashAlgorithm.pbkdf2)
        values.setdefault("display_name", "")
        values.setdefault("role", AccountRole.user)
        values.setdefault("permissions", [])
        values["suspended"] = bool(values.get("suspended"))
        if not values["suspended"]:
            values["suspended_at"] = None
            values["suspended_reason"] = None
        elif not values.get("suspended_at"):
            values["suspended_at"] = values["updated_at"]
        return values

    async def upsert(
        self,
        account_id: str,
        partial: Union[BaseModel, Mapping[str, Any], None],
        conn: Optional[AsyncConnection] = None,
    ) -> Account:
        """id 로 존재 확인 후 update, 없으면 기본값으로 채운 전체 행 insert"""
        return await self._upsert(account_id, None, partial, conn=conn)

    async def _upsert_sync_item(self, item: AccountSync, conn: Optional[AsyncConnection] = None) -> Account:
        return await self.upsert(item.id, item, conn=conn)
