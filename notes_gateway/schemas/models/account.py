"""
Account 도메인 모델
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import EmailStr, Field

from .common import CamelModel, QueryOptions


class AccountRole(str, Enum):
    admin = "admin"
    moderator = "moderator"
    user = "user"


class HashAlgorithm(str, Enum):
    sha256 = "sha256"
    pbkdf2 = "pbkdf2"


class AccountCreate(CamelModel):
    """Account 생성 요청 모델 (비밀번호는 클라이언트에서 해시된 값)"""

    email: EmailStr
    password_hash: str = Field(..., min_length=1, max_length=512)
    hash_algorithm: HashAlgorithm = HashAlgorithm.pbkdf2
    display_name: str = Field(..., max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    role: AccountRole = AccountRole.user
    permissions: List[str] = Field(default_factory=list)


class AccountUpdate(CamelModel):
    """Account 업데이트 요청 모델 - 전달된 필드만 반영"""

    display_name: Optional[str] = Field(None, max_length=255)
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[AccountRole] = None
    permissions: Optional[List[str]] = None
    suspended: Optional[bool] = None
    suspended_reason: Optional[str] = None


class AccountSync(CamelModel):
    """동기화(upsert)용 부분 엔티티"""

    id: str = Field(..., min_length=1, max_length=36)
    username: Optional[str] = None
    email: Optional[str] = None
    password_hash: Optional[str] = None
    hash_algorithm: Optional[HashAlgorithm] = None
    display_name: Optional[str] = None
    role: Optional[AccountRole] = None
    permissions: Optional[List[str]] = None
    suspended: Optional[bool] = None
    suspended_at: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    last_login_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    notes_updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Account(CamelModel):
    """Account 도메인 엔티티"""

    id: str
    username: str
    email: str
    password_hash: str
    hash_algorithm: HashAlgorithm = HashAlgorithm.pbkdf2
    display_name: str = ""
    role: AccountRole = AccountRole.user
    permissions: List[str] = Field(default_factory=list)
    suspended: bool = False
    suspended_at: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    last_login_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None
    notes_updated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AccountQueryOptions(QueryOptions):
    # username / email / display_name 부분 일치
    search: Optional[str] = None
    role: Optional[AccountRole] = None
