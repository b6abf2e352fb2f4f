"""
게이트웨이 테이블 DDL
모두 CREATE ... IF NOT EXISTS 이므로 여러 번 실행해도 안전합니다.

- boolean 플래그는 SMALLINT 0/1 로 저장 (codecs 에서 bool 로 변환)
- 컬렉션(tags, permissions, versions, comments)은 JSONB 배열
"""

from typing import List

ACCOUNTS_TABLE = """
    CREATE TABLE IF NOT EXISTS accounts (
        id VARCHAR(36) PRIMARY KEY,
        username VARCHAR(255) NOT NULL UNIQUE,
        email VARCHAR(255) NOT NULL UNIQUE,
        password_hash VARCHAR(512) NOT NULL,
        hash_algorithm VARCHAR(20) NOT NULL DEFAULT 'pbkdf2',
        display_name VARCHAR(255) NOT NULL DEFAULT '',
        role VARCHAR(20) NOT NULL DEFAULT 'user'
            CHECK (role IN ('admin', 'moderator', 'user')),
        permissions JSONB NOT NULL DEFAULT '[]'::jsonb,
        suspended SMALLINT NOT NULL DEFAULT 0,
        suspended_at TIMESTAMPTZ NULL,
        suspended_reason TEXT NULL,
        last_login_at TIMESTAMPTZ NULL,
        last_seen_at TIMESTAMPTZ NULL,
        notes_updated_at TIMESTAMPTZ NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
"""

FOLDERS_TABLE = """
    CREATE TABLE IF NOT EXISTS folders (
        id VARCHAR(36) PRIMARY KEY,
        owner_id VARCHAR(36) NOT NULL,
        name VARCHAR(255) NOT NULL,
        color VARCHAR(20) NOT NULL DEFAULT '#808080',
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NULL,
        is_deleted SMALLINT NOT NULL DEFAULT 0,
        deleted_at TIMESTAMPTZ NULL
    )
"""

NOTES_TABLE = """
    CREATE TABLE IF NOT EXISTS notes (
        id VARCHAR(36) PRIMARY KEY,
        owner_id VARCHAR(36) NOT NULL,
        title VARCHAR(500) NOT NULL,
        content TEXT,
        tags JSONB NOT NULL DEFAULT '[]'::jsonb,
        pinned SMALLINT NOT NULL DEFAULT 0,
        favorite SMALLINT NOT NULL DEFAULT 0,
        folder_id VARCHAR(36) NULL,
        visibility VARCHAR(10) NOT NULL DEFAULT 'private'
            CHECK (visibility IN ('private', 'unlisted', 'public')),
        password VARCHAR(255) NULL,
        share_url VARCHAR(500) NULL,
        short_id VARCHAR(10) NULL,
        expires_at TIMESTAMPTZ NULL,
        views INTEGER NOT NULL DEFAULT 0 CHECK (views >= 0),
        versions JSONB NOT NULL DEFAULT '[]'::jsonb,
        comments JSONB NOT NULL DEFAULT '[]'::jsonb,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL,
        is_deleted SMALLINT NOT NULL DEFAULT 0,
        deleted_at TIMESTAMPTZ NULL,
        original_folder_id VARCHAR(36) NULL,
        original_pinned SMALLINT NULL,
        original_favorite SMALLINT NULL
    )
"""

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_accounts_role ON accounts (role)",
    "CREATE INDEX IF NOT EXISTS idx_folders_owner ON folders (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_notes_owner ON notes (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_notes_folder ON notes (folder_id)",
    "CREATE INDEX IF NOT EXISTS idx_notes_short_id ON notes (short_id)",
    "CREATE INDEX IF NOT EXISTS idx_notes_updated ON notes (updated_at)",
]


def migration_statements() -> List[str]:
    """실행 순서대로 정렬된 DDL 목록"""
    return [ACCOUNTS_TABLE, FOLDERS_TABLE, NOTES_TABLE, *INDEXES]
