"""
Folder Repository
폴더 CRUD, 소유자 조회, 휴지통, 동기화 (트랜잭션 + 항목별 SAVEPOINT)
"""

from typing import Any, Dict, Iterable, Mapping, Union
from uuid import uuid4

from pydantic import BaseModel

from notes_gateway.resources.logging import trace_class
from notes_gateway.schemas.codecs import FOLDER_CODEC
from notes_gateway.schemas.models import Folder, FolderCreate, FolderSync
from notes_gateway.schemas.models.folder import DEFAULT_FOLDER_COLOR
from notes_gateway.schemas.repositories.base_repository import BulkSyncResult, OwnedRepository, utcnow


@trace_class
class FolderRepository(OwnedRepository[Folder]):
    """Folder 엔티티 Repository (복원할 배치 정보가 없으므로 shadow 필드 없음)"""

    codec = FOLDER_CODEC
    default_order_column = "created_at"
    sync_model = FolderSync

    async def create(self, dto: FolderCreate) -> Folder:
        now = utcnow()
        values = {
            "id": str(uuid4()),
            "owner_id": dto.owner_id,
            "name": dto.name,
            "color": dto.color or DEFAULT_FOLDER_COLOR,
            "is_deleted": False,
            "created_at": now,
            "updated_at": now,
        }
        return await self._insert(values)

    def _sync_defaults(self, now) -> Dict[str, Any]:
        defaults = super()._sync_defaults(now)
        defaults.update(name="", color=DEFAULT_FOLDER_COLOR, is_deleted=False)
        return defaults

    async def bulk_upsert_detailed(self, items: Iterable[Union[BaseModel, Mapping[str, Any]]]) -> BulkSyncResult:
        """
        하나의 트랜잭션 안에서 순서대로 upsert 합니다.
        각 항목은 SAVEPOINT 로 감싸므로 실패한 항목만 되돌려지고 나머지는 함께 커밋됩니다.
        """
        items = list(items)
        failures = []

        async with self.db.transaction() as conn:
            for index, item in enumerate(items):
                try:
                    folder = self._coerce_sync_item(item)
                    # 중첩 transaction() 은 SAVEPOINT 로 동작
                    async with conn.transaction():
                        await self._upsert_sync_item(folder, conn=conn)
                except Exception as e:
                    failures.append(self._record_failure(index, item, e))

        return BulkSyncResult(total=len(items), succeeded=len(items) - len(failures), failures=failures)
