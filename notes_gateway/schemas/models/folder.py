"""
Folder 도메인 모델
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel, OwnedQueryOptions

DEFAULT_FOLDER_COLOR = "#808080"


class FolderCreate(CamelModel):
    owner_id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., max_length=255)
    color: str = Field(DEFAULT_FOLDER_COLOR, max_length=20)


class FolderUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    color: Optional[str] = Field(None, max_length=20)
    is_deleted: Optional[bool] = None
    deleted_at: Optional[datetime] = None


class FolderSync(FolderUpdate):
    id: str = Field(..., min_length=1, max_length=36)
    owner_id: str = Field(..., min_length=1, max_length=36)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Folder(CamelModel):
    id: str
    owner_id: str
    name: str
    color: str = DEFAULT_FOLDER_COLOR
    created_at: datetime
    updated_at: Optional[datetime] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None


class FolderQueryOptions(OwnedQueryOptions):
    pass
