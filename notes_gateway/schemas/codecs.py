"""
저장소 코덱 - DB 행 <-> 도메인 엔티티 변환

- boolean 플래그: SMALLINT 0/1 <-> bool
- 컬렉션: JSONB <-> list (드라이버가 문자열로 돌려주는 경우도 허용)
- 컬럼 이름: snake_case (입력은 camelCase 도 허용)
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from psycopg.types.json import Jsonb
from pydantic import BaseModel
from pydantic.alias_generators import to_snake

from notes_gateway.schemas.models import Account, Folder, Note


def to_bool(value: Any) -> bool:
    """0/1 (또는 None) -> bool"""
    return bool(value) if value is not None else False


def to_optional_bool(value: Any) -> Optional[bool]:
    """shadow 필드용: NULL 은 None 으로 유지"""
    return None if value is None else bool(value)


def from_bool(value: Optional[bool]) -> Optional[int]:
    if value is None:
        return None
    return 1 if value else 0


def to_list(value: Any) -> list:
    """JSONB 컬럼 값을 list 로 변환"""
    if value is None or value == "":
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        value = json.loads(value)
    if not isinstance(value, list):
        raise ValueError(f"JSON 배열이 아닌 값: {type(value).__name__}")
    return value


def to_jsonb(items: Any) -> Jsonb:
    """list (pydantic 모델 포함) -> Jsonb 파라미터. 레코드는 camelCase 키로 저장"""
    payload = [
        item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
        for item in (items or [])
    ]
    return Jsonb(payload)


def decode_account(row: Dict[str, Any]) -> Account:
    return Account(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        hash_algorithm=row.get("hash_algorithm") or "pbkdf2",
        display_name=row.get("display_name") or "",
        role=row.get("role") or "user",
        permissions=to_list(row.get("permissions")),
        suspended=to_bool(row.get("suspended")),
        suspended_at=row.get("suspended_at"),
        suspended_reason=row.get("suspended_reason"),
        last_login_at=row.get("last_login_at"),
        last_seen_at=row.get("last_seen_at"),
        notes_updated_at=row.get("notes_updated_at"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def decode_note(row: Dict[str, Any]) -> Note:
    return Note(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        content=row.get("content") or "",
        tags=to_list(row.get("tags")),
        pinned=to_bool(row.get("pinned")),
        favorite=to_bool(row.get("favorite")),
        folder_id=row.get("folder_id"),
        visibility=row.get("visibility") or "private",
        password=row.get("password"),
        share_url=row.get("share_url"),
        short_id=row.get("short_id"),
        expires_at=row.get("expires_at"),
        views=row.get("views") or 0,
        versions=to_list(row.get("versions")),
        comments=to_list(row.get("comments")),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
        original_folder_id=row.get("original_folder_id"),
        original_pinned=to_optional_bool(row.get("original_pinned")),
        original_favorite=to_optional_bool(row.get("original_favorite")),
    )


def decode_folder(row: Dict[str, Any]) -> Folder:
    return Folder(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        color=row.get("color") or "#808080",
        created_at=row["created_at"],
        updated_at=row.get("updated_at"),
        is_deleted=to_bool(row.get("is_deleted")),
        deleted_at=row.get("deleted_at"),
    )


@dataclass(frozen=True)
class EntityCodec:
    """
    엔티티 하나의 테이블 매핑

    columns 는 테이블 컬럼 전체이며, 정렬/카운트 필터에 허용되는 이름의 화이트리스트로도 쓰입니다.
    """

    table: str
    columns: Tuple[str, ...]
    decode: Callable[[Dict[str, Any]], BaseModel]
    bool_columns: FrozenSet[str] = frozenset()
    json_columns: FrozenSet[str] = frozenset()
    nullable_columns: FrozenSet[str] = frozenset()
    soft_delete: bool = False

    def resolve_column(self, name: str) -> Optional[str]:
        """camelCase/snake_case 이름을 컬럼명으로 변환. 모르는 이름이면 None"""
        if name in self.columns:
            return name
        snake = to_snake(name)
        return snake if snake in self.columns else None

    def require_column(self, name: str) -> str:
        column = self.resolve_column(name)
        if column is None:
            raise ValueError(f"{self.table} 테이블에 없는 컬럼: {name}")
        return column

    def encode_value(self, column: str, value: Any) -> Any:
        """도메인 값 -> SQL 파라미터"""
        if column in self.bool_columns:
            return from_bool(value)
        if column in self.json_columns:
            return to_jsonb(value)
        if isinstance(value, Enum):
            return value.value
        return value

    def encode(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """{필드: 값} -> {컬럼: 파라미터}"""
        encoded = {}
        for key, value in data.items():
            column = self.require_column(key)
            encoded[column] = self.encode_value(column, value)
        return encoded


ACCOUNT_CODEC = EntityCodec(
    table="accounts",
    columns=(
        "id",
        "username",
        "email",
        "password_hash",
        "hash_algorithm",
        "display_name",
        "role",
        "permissions",
        "suspended",
        "suspended_at",
        "suspended_reason",
        "last_login_at",
        "last_seen_at",
        "notes_updated_at",
        "created_at",
        "updated_at",
    ),
    decode=decode_account,
    bool_columns=frozenset({"suspended"}),
    json_columns=frozenset({"permissions"}),
    nullable_columns=frozenset(
        {"suspended_at", "suspended_reason", "last_login_at", "last_seen_at", "notes_updated_at"}
    ),
)

NOTE_CODEC = EntityCodec(
    table="notes",
    columns=(
        "id",
        "owner_id",
        "title",
        "content",
        "tags",
        "pinned",
        "favorite",
        "folder_id",
        "visibility",
        "password",
        "share_url",
        "short_id",
        "expires_at",
        "views",
        "versions",
        "comments",
        "created_at",
        "updated_at",
        "is_deleted",
        "deleted_at",
        "original_folder_id",
        "original_pinned",
        "original_favorite",
    ),
    decode=decode_note,
    bool_columns=frozenset({"pinned", "favorite", "is_deleted", "original_pinned", "original_favorite"}),
    json_columns=frozenset({"tags", "versions", "comments"}),
    nullable_columns=frozenset(
        {
            "content",
            "folder_id",
            "password",
            "share_url",
            "short_id",
            "expires_at",
            "deleted_at",
            "original_folder_id",
            "original_pinned",
            "original_favorite",
        }
    ),
    soft_delete=True,
)

FOLDER_CODEC = EntityCodec(
    table="folders",
    columns=(
        "id",
        "owner_id",
        "name",
        "color",
        "created_at",
        "updated_at",
        "is_deleted",
        "deleted_at",
    ),
    decode=decode_folder,
    bool_columns=frozenset({"is_deleted"}),
    nullable_columns=frozenset({"updated_at", "deleted_at"}),
    soft_delete=True,
)
