"""
데이터베이스 게이트웨이 - Factory & Facade
요청 계층이 접근하는 유일한 객체: 연결/해제, 헬스체크, 마이그레이션, 상태, Repository, raw 패스스루
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from psycopg import AsyncConnection

from notes_gateway.config.resources import PostgreSQLConfig
from notes_gateway.resources.logging import trace_class
from notes_gateway.schemas.repositories import AccountRepository, FolderRepository, NoteRepository
from .postgresql.postgresql_manager import ExecuteResult, PostgreSQLManager
from .postgresql.schema import migration_statements

logger = logging.getLogger(__name__)

# raw count 로 조회 가능한 테이블
COUNTABLE_TABLES = ("accounts", "notes", "folders")


class RawStatement(NamedTuple):
    sql: str
    params: Optional[Sequence[Any]] = None


@dataclass
class GatewayStatus:
    connected: bool
    has_admin_account: bool
    account_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DatabaseFactory:
    """데이터베이스 인스턴스 생성 팩토리"""

    @staticmethod
    def create_postgresql(config: PostgreSQLConfig) -> PostgreSQLManager:
        """PostgreSQL Manager 생성 (풀은 connect 시점에 열림)"""
        return PostgreSQLManager(config)

    @staticmethod
    def create_gateway(config: PostgreSQLConfig) -> "DatabaseGateway":
        return DatabaseGateway(DatabaseFactory.create_postgresql(config))


@trace_class
class DatabaseGateway:
    """
    Repository 세 개를 묶고 상태/헬스/마이그레이션을 제공하는 Facade

    raw_* 메서드는 Repository 계약을 우회하므로 관리 용도로만 사용합니다.
    """

    def __init__(self, db: PostgreSQLManager):
        self.db = db
        self.accounts = AccountRepository(db)
        self.notes = NoteRepository(db)
        self.folders = FolderRepository(db)
        self._connect_lock = asyncio.Lock()

    # ========== 연결 관리 ==========

    async def connect(self) -> None:
        """풀을 열고 왕복 한 번으로 연결을 확인합니다. 실패 시 예외 전파"""
        async with self._connect_lock:
            if self.db.is_connected():
                return
            await self.db.initialize()
            try:
                await self.db.fetchval("SELECT 1")
            except Exception:
                # 확인 실패 시 풀을 닫아 is_connected() 는 False
                await self.db.close()
                raise
            logger.info("데이터베이스 연결 완료")

    async def disconnect(self) -> None:
        await self.db.close()
        logger.info("데이터베이스 연결 해제")

    def is_connected(self) -> bool:
        return self.db.is_connected()

    async def health_check(self) -> bool:
        return await self.db.health_check()

    async def migrate(self) -> None:
        """모든 테이블/인덱스 생성 (이미 있으면 건너뜀)"""
        async with self.db.transaction() as conn:
            for statement in migration_statements():
                await self.db.execute(statement, conn=conn)
        logger.info("마이그레이션 완료")

    async def get_status(self) -> GatewayStatus:
        has_admin, account_count = await asyncio.gather(
            self.accounts.has_admin_account(),
            self.accounts.count(),
        )
        return GatewayStatus(
            connected=self.is_connected(),
            has_admin_account=has_admin,
            account_count=account_count,
        )

    # ========== raw 패스스루 ==========

    async def raw_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        return await self.db.fetch(sql, *(params or ()))

    async def raw_execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> ExecuteResult:
        return await self.db.execute(sql, *(params or ()))

    async def raw_transaction(self, statements: Sequence[RawStatement]) -> List[Any]:
        """
        여러 문장을 하나의 트랜잭션으로 실행합니다.
        결과는 문장별로 행 목록(SELECT 등) 또는 {"affected_rows": n} 입니다.
        """

        async def run(conn: AsyncConnection) -> List[Any]:
            results: List[Any] = []
            for sql, params in statements:
                async with conn.cursor() as cur:
                    await cur.execute(sql, list(params) if params else None)
                    if cur.description is not None:
                        results.append(await cur.fetchall())
                    else:
                        results.append({"affected_rows": max(cur.rowcount, 0)})
            return results

        return await self.db.run_transaction(run)

    async def count_table(self, table: str) -> int:
        if table not in COUNTABLE_TABLES:
            raise ValueError(f"Invalid table: {table}")
        return int(await self.db.fetchval(f"SELECT COUNT(*) AS count FROM {table}") or 0)
