"""
테스트 설정 및 Fixtures
DB 없이 Repository/라우트를 검증하기 위한 기록용 가짜 PostgreSQLManager 와 행 팩토리
"""

import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# 앱 설정은 import 시점에 환경변수에서 읽음
os.environ.setdefault("API_KEY", "test-api-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from notes_gateway.resources.database.database_manager import DatabaseGateway
from notes_gateway.resources.database.postgresql import ExecuteResult

TEST_API_KEY = os.environ["API_KEY"]
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# ==================== 가짜 DB ====================


class FakeConnection:
    """트랜잭션 안에서 넘겨지는 커넥션. SAVEPOINT 진입/롤백을 기록"""

    def __init__(self, log: List[str]):
        self.log = log

    @asynccontextmanager
    async def transaction(self):
        self.log.append("savepoint")
        try:
            yield self
        except Exception:
            self.log.append("rollback_to_savepoint")
            raise
        self.log.append("release_savepoint")


class FakePostgreSQLManager:
    """
    PostgreSQLManager 와 같은 인터페이스의 기록용 가짜 구현

    respond(method, fragment, value) 로 SQL 에 fragment 가 포함된 첫 호출의 결과를 지정합니다.
    value 가 예외면 raise 하고, 호출 가능한 객체면 (query, args) 로 호출한 결과를 돌려줍니다.
    """

    def __init__(self):
        self.calls: List[Tuple[str, str, Tuple[Any, ...]]] = []
        self.transaction_log: List[str] = []
        self._responses: List[Tuple[str, str, Any, bool]] = []
        self.connected = False
        self.healthy = True

    def respond(self, method: str, fragment: str, value: Any, *, repeat: bool = False) -> None:
        self._responses.append((method, fragment, value, repeat))

    def _result(self, method: str, query: str, args: Tuple[Any, ...], default: Any) -> Any:
        for index, (m, fragment, value, repeat) in enumerate(self._responses):
            if m == method and fragment in query:
                if not repeat:
                    del self._responses[index]
                if isinstance(value, Exception):
                    raise value
                if callable(value):
                    return value(query, args)
                return value
        return default

    def _record(self, method: str, query: str, args: Tuple[Any, ...]) -> None:
        self.calls.append((method, " ".join(query.split()), args))

    def queries(self, method: Optional[str] = None) -> List[str]:
        return [q for m, q, _ in self.calls if method is None or m == method]

    def last(self, method: str) -> Tuple[str, Tuple[Any, ...]]:
        for m, q, args in reversed(self.calls):
            if m == method:
                return q, args
        raise AssertionError(f"{method} 호출 없음")

    # ---- PostgreSQLManager 인터페이스 ----

    async def initialize(self) -> None:
        self.connected = True

    async def close(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    async def health_check(self) -> bool:
        return self.healthy

    async def execute(self, query: str, *args, conn=None) -> ExecuteResult:
        self._record("execute", query, args)
        return self._result("execute", query, args, ExecuteResult(affected_rows=1))

    async def fetch(self, query: str, *args, conn=None) -> List[Dict[str, Any]]:
        self._record("fetch", query, args)
        return self._result("fetch", query, args, [])

    async def fetchrow(self, query: str, *args, conn=None) -> Optional[Dict[str, Any]]:
        self._record("fetchrow", query, args)
        return self._result("fetchrow", query, args, None)

    async def fetchval(self, query: str, *args, column: int = 0, conn=None) -> Any:
        self._record("fetchval", query, args)
        return self._result("fetchval", query, args, None)

    @asynccontextmanager
    async def transaction(self):
        self.transaction_log.append("begin")
        try:
            yield FakeConnection(self.transaction_log)
        except Exception:
            self.transaction_log.append("rollback")
            raise
        self.transaction_log.append("commit")

    async def run_transaction(self, fn):
        async with self.transaction() as conn:
            return await fn(conn)


# ==================== 행 팩토리 ====================


def account_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "acc-1",
        "username": "alice_ab12",
        "email": "alice@example.com",
        "password_hash": "hash",
        "hash_algorithm": "pbkdf2",
        "display_name": "Alice",
        "role": "user",
        "permissions": [],
        "suspended": 0,
        "suspended_at": None,
        "suspended_reason": None,
        "last_login_at": NOW,
        "last_seen_at": NOW,
        "notes_updated_at": NOW,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


def note_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "note-1",
        "owner_id": "u1",
        "title": "T",
        "content": "C",
        "tags": [],
        "pinned": 0,
        "favorite": 0,
        "folder_id": None,
        "visibility": "private",
        "password": None,
        "share_url": None,
        "short_id": None,
        "expires_at": None,
        "views": 0,
        "versions": [],
        "comments": [],
        "created_at": NOW,
        "updated_at": NOW,
        "is_deleted": 0,
        "deleted_at": None,
        "original_folder_id": None,
        "original_pinned": None,
        "original_favorite": None,
    }
    row.update(overrides)
    return row


def folder_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "folder-1",
        "owner_id": "u1",
        "name": "Work",
        "color": "#808080",
        "created_at": NOW,
        "updated_at": NOW,
        "is_deleted": 0,
        "deleted_at": None,
    }
    row.update(overrides)
    return row


# ==================== Fixtures ====================


@pytest.fixture
def fake_db() -> FakePostgreSQLManager:
    return FakePostgreSQLManager()


@pytest.fixture
def gateway(fake_db) -> DatabaseGateway:
    return DatabaseGateway(fake_db)


@pytest_asyncio.fixture
async def client(gateway):
    """가짜 게이트웨이를 주입한 앱의 HTTP 클라이언트 (API 키 포함)"""
    from main import create_app

    app = create_app(gateway=gateway, migrate_on_startup=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-API-Key": TEST_API_KEY},
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def anonymous_client(gateway):
    from main import create_app

    app = create_app(gateway=gateway, migrate_on_startup=False)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
