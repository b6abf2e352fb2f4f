"""
Note Repository
노트 CRUD, 필터 조회, 휴지통(스냅샷/복원), 버전/댓글 추가, 조회수, 동기화
"""

from typing import Any, Dict, Optional
from uuid import uuid4

from notes_gateway.resources.logging import trace_class
from notes_gateway.schemas.codecs import NOTE_CODEC, to_jsonb
from notes_gateway.schemas.models import (
    Comment,
    Note,
    NoteCreate,
    NoteQueryOptions,
    NoteSync,
    NoteVersion,
    OwnedQueryOptions,
    Visibility,
)
from notes_gateway.schemas.repositories.base_repository import OwnedRepository, utcnow
from notes_gateway.schemas.repositories.query_builder import PredicateBuilder


@trace_class
class NoteRepository(OwnedRepository[Note]):
    """Note 엔티티 Repository"""

    codec = NOTE_CODEC
    default_order_column = "updated_at"
    sync_model = NoteSync
    # 조회수는 증가만, versions/comments 는 추가만 허용
    sync_update_exclude = ("created_at", "views", "versions", "comments")

    # 휴지통 이동 시 현재 배치를 original_* 에 보관하고 비움
    # (PostgreSQL 의 SET 식은 갱신 전 값을 참조)
    trash_assignments = (
        "original_folder_id = folder_id",
        "original_pinned = pinned",
        "original_favorite = favorite",
        "folder_id = NULL",
        "pinned = 0",
        "favorite = 0",
    )
    restore_assignments = (
        "folder_id = original_folder_id",
        "pinned = COALESCE(original_pinned, 0)",
        "favorite = COALESCE(original_favorite, 0)",
        "original_folder_id = NULL",
        "original_pinned = NULL",
        "original_favorite = NULL",
    )

    def _owner_predicates(self, owner_id: Optional[str], options: OwnedQueryOptions) -> PredicateBuilder:
        predicates = super()._owner_predicates(owner_id, options)
        if isinstance(options, NoteQueryOptions):
            predicates.nullable_reference("folder_id", options.folder_filter_specified, options.folder_id)
            predicates.equals("visibility", options.visibility.value if options.visibility else None)
            predicates.contains_any("tags", options.tags)
        return predicates

    async def find_by_short_id(self, short_id: str) -> Optional[Note]:
        row = await self.db.fetchrow("SELECT * FROM notes WHERE short_id = %s LIMIT 1", short_id)
        return self._decode(row)

    async def create(self, dto: NoteCreate) -> Note:
        now = utcnow()
        values = {
            "id": str(uuid4()),
            "owner_id": dto.owner_id,
            "title": dto.title,
            "content": dto.content,
            "tags": dto.tags,
            "pinned": dto.pinned,
            "favorite": dto.favorite,
            "folder_id": dto.folder_id,
            "visibility": dto.visibility,
            "password": dto.password,
            "views": 0,
            "versions": [],
            "comments": [],
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        }
        return await self._insert(values)

    # ========== 추가 전용 컬렉션 ==========

    async def add_version(self, note_id: str, version: NoteVersion) -> bool:
        """버전 스냅샷 추가. 노트가 없으면 False"""
        result = await self.db.execute(
            "UPDATE notes SET versions = COALESCE(versions, '[]'::jsonb) || %s, updated_at = %s WHERE id = %s",
            to_jsonb([version]),
            utcnow(),
            note_id,
        )
        return result.affected_rows > 0

    async def add_comment(self, note_id: str, comment: Comment) -> bool:
        """댓글 추가. 노트가 없으면 False"""
        result = await self.db.execute(
            "UPDATE notes SET comments = COALESCE(comments, '[]'::jsonb) || %s, updated_at = %s WHERE id = %s",
            to_jsonb([comment]),
            utcnow(),
            note_id,
        )
        return result.affected_rows > 0

    async def increment_views(self, note_id: str) -> bool:
        result = await self.db.execute("UPDATE notes SET views = COALESCE(views, 0) + 1 WHERE id = %s", note_id)
        return result.affected_rows > 0

    # ========== 소유자 단위 작업 ==========

    async def update_folder_reference(self, folder_id: str, owner_id: str, new_folder_id: Optional[str]) -> int:
        """folder_id 를 참조하는 소유자의 노트를 new_folder_id 로 옮김 (None 이면 폴더 해제)"""
        result = await self.db.execute(
            "UPDATE notes SET folder_id = %s, updated_at = %s WHERE folder_id = %s AND owner_id = %s",
            new_folder_id,
            utcnow(),
            folder_id,
            owner_id,
        )
        return result.affected_rows

    # ========== 동기화 ==========

    def _sync_defaults(self, now) -> Dict[str, Any]:
        defaults = super()._sync_defaults(now)
        defaults.update(
            title="",
            content="",
            tags=[],
            pinned=False,
            favorite=False,
            visibility=Visibility.private,
            views=0,
            versions=[],
            comments=[],
            is_deleted=False,
        )
        return defaults
