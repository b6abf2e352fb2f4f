"""
Note 도메인 모델
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import CamelModel, OwnedQueryOptions


class Visibility(str, Enum):
    private = "private"
    unlisted = "unlisted"
    public = "public"


class NoteVersion(CamelModel):
    """노트 본문 스냅샷"""

    id: str
    title: str
    content: str
    saved_at: datetime


class Comment(CamelModel):
    id: str
    author: str
    content: str
    created_at: datetime


class NoteCreate(CamelModel):
    """Note 생성 요청 모델"""

    owner_id: str = Field(..., min_length=1, max_length=36)
    title: str = Field(..., max_length=500)
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    pinned: bool = False
    favorite: bool = False
    folder_id: Optional[str] = None
    visibility: Visibility = Visibility.private
    password: Optional[str] = None


class NoteUpdate(CamelModel):
    """Note 업데이트 요청 모델 - 전달된 필드만 반영 (folder_id=None 은 폴더 해제)"""

    title: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    tags: Optional[List[str]] = None
    pinned: Optional[bool] = None
    favorite: Optional[bool] = None
    folder_id: Optional[str] = None
    visibility: Optional[Visibility] = None
    password: Optional[str] = None
    share_url: Optional[str] = None
    short_id: Optional[str] = Field(None, max_length=10)
    expires_at: Optional[datetime] = None
    is_deleted: Optional[bool] = None
    deleted_at: Optional[datetime] = None
    original_folder_id: Optional[str] = None
    original_pinned: Optional[bool] = None
    original_favorite: Optional[bool] = None


class NoteSync(NoteUpdate):
    """동기화(upsert)용 부분 엔티티 - 신규 삽입 시 생략된 필드는 기본값 사용"""

    id: str = Field(..., min_length=1, max_length=36)
    owner_id: str = Field(..., min_length=1, max_length=36)
    views: Optional[int] = Field(None, ge=0)
    versions: Optional[List[NoteVersion]] = None
    comments: Optional[List[Comment]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Note(CamelModel):
    """Note 도메인 엔티티"""

    id: str
    owner_id: str
    title: str
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    pinned: bool = False
    favorite: bool = False
    folder_id: Optional[str] = None
    visibility: Visibility = Visibility.private
    password: Optional[str] = None
    share_url: Optional[str] = None
    short_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    views: int = 0
    versions: List[NoteVersion] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    original_folder_id: Optional[str] = None
    original_pinned: Optional[bool] = None
    original_favorite: Optional[bool] = None


class NoteQueryOptions(OwnedQueryOptions):
    """
    Note 목록 필터

    folder_id 는 3-상태: 지정 안 함(필터 없음) / None(폴더 없는 노트만) / 값(해당 폴더)
    지정 여부는 model_fields_set 으로 구분합니다.
    """

    folder_id: Optional[str] = None
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None

    @property
    def folder_filter_specified(self) -> bool:
        return "folder_id" in self.model_fields_set
