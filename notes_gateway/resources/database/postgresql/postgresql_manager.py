"""
PostgreSQL 매니저 (커넥션 풀)
연결 풀 관리, 트랜잭션, 쿼리 실행, 헬스체크 담당
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, NamedTuple, Optional, TypeVar

from psycopg import AsyncConnection, AsyncCursor, rows
from psycopg_pool import AsyncConnectionPool

from notes_gateway.config.resources import PostgreSQLConfig
from notes_gateway.resources.logging import trace_class

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExecuteResult(NamedTuple):
    """INSERT/UPDATE/DELETE 실행 결과"""
    affected_rows: int
    insert_id: Optional[int] = None


def _insert_oid(status: Optional[str]) -> Optional[int]:
    """INSERT 상태 메시지(INSERT <oid> <rows>)에서 OID 추출 (OID 없는 테이블은 0 -> None)"""
    parts = (status or "").split()
    if len(parts) == 3 and parts[0] == "INSERT" and parts[1].isdigit():
        return int(parts[1]) or None
    return None


@trace_class
class PostgreSQLManager:
    """
    PostgreSQL 매니저 (핵심 기능만)

    - 인스턴스는 명시적으로 생성되어 Repository에 주입됩니다 (전역 싱글톤 없음)
    - 모든 실행 메서드는 conn 인자를 받을 수 있으며, 주어지면 풀 대신 해당 커넥션을 사용합니다
      (트랜잭션 안에서 여러 Repository 호출을 묶을 때 사용)
    """

    def __init__(self, config: PostgreSQLConfig):
        self.config = config
        self._pool: Optional[AsyncConnectionPool] = None
        self._last_health_check = 0.0
        self._health_status = False

    # ---- 풀 ----

    async def initialize(self) -> None:
        """연결 풀 초기화"""
        if self._pool is not None:
            return

        connect_kwargs = {
            "host": self.config.host,
            "port": self.config.port,
            "user": self.config.user,
            "password": self.config.password,
            "dbname": self.config.database,
            "sslmode": self.config.sslmode,
            # 행을 dict 형태로 반환
            "row_factory": rows.dict_row,
        }

        pool = AsyncConnectionPool(
            kwargs=connect_kwargs,
            min_size=self.config.min_connections,
            max_size=self.config.max_connections,
            timeout=self.config.pool_timeout,
            max_waiting=self.config.max_waiting,
            open=False,
        )
        # psycopg_pool 권고: 생성 후 명시적으로 open. 열리기 전에는 _pool 에 두지 않음
        await pool.open()
        self._pool = pool
        logger.info(
            "PostgreSQL 커넥션 풀 생성: host=%s, database=%s, pool_size=%s",
            self.config.host,
            self.config.database,
            self.config.max_connections,
        )

    async def close(self) -> None:
        """연결 풀 종료"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._health_status = False
            self._last_health_check = 0.0
            logger.info("PostgreSQL 커넥션 풀 종료")

    def is_connected(self) -> bool:
        """풀이 열려 있는지 여부"""
        return self._pool is not None

    async def _ensure_pool(self) -> AsyncConnectionPool:
        """연결 풀 확인 (지연 초기화)"""
        if self._pool is None:
            await self.initialize()
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncConnection]:
        """
        풀에서 커넥션 하나를 빌려옵니다. 블록을 벗어나면 성공/실패와 무관하게 반환됩니다.

        Usage:
            async with manager.acquire() as conn:
                await conn.execute("SELECT 1")
        """
        pool = await self._ensure_pool()
        async with pool.connection() as conn:
            yield conn

    @asynccontextmanager
    async def _connection(self, conn: Optional[AsyncConnection]) -> AsyncIterator[AsyncConnection]:
        if conn is not None:
            yield conn
            return
        pool = await self._ensure_pool()
        async with pool.connection() as pooled:
            yield pooled

    # ---- 쿼리 ----

    @asynccontextmanager
    async def _cursor(self, query: str, args: tuple, conn: Optional[AsyncConnection]) -> AsyncIterator[AsyncCursor]:
        """쿼리를 실행한 커서를 넘겨줍니다 (파라미터가 없으면 None 으로 전달)"""
        async with self._connection(conn) as c:
            async with c.cursor() as cur:
                await cur.execute(query, args or None)
                yield cur

    async def execute(self, query: str, *args, conn: Optional[AsyncConnection] = None) -> ExecuteResult:
        """INSERT/UPDATE/DELETE 실행. 영향받은 행 수와 삽입 OID(있으면)"""
        async with self._cursor(query, args, conn) as cur:
            return ExecuteResult(
                affected_rows=max(cur.rowcount, 0),
                insert_id=_insert_oid(cur.statusmessage),
            )

    async def fetch(self, query: str, *args, conn: Optional[AsyncConnection] = None) -> List[Dict[str, Any]]:
        async with self._cursor(query, args, conn) as cur:
            return await cur.fetchall() or []

    async def fetchrow(self, query: str, *args, conn: Optional[AsyncConnection] = None) -> Optional[Dict[str, Any]]:
        """첫 행만 (없으면 None)"""
        async with self._cursor(query, args, conn) as cur:
            return await cur.fetchone() or None

    async def fetchval(
        self,
        query: str,
        *args,
        column: int = 0,
        conn: Optional[AsyncConnection] = None,
    ) -> Any:
        """첫 행의 column 번째 값 (행이 없으면 None)"""
        row = await self.fetchrow(query, *args, conn=conn)
        if not row:
            return None
        return list(row.values())[column]

    # ---- 트랜잭션 ----

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncConnection]:
        """
        트랜잭션 컨텍스트 매니저

        전용 커넥션에서 BEGIN → 성공 시 COMMIT, 예외 시 ROLLBACK 후 예외 재전파.
        커넥션은 어느 경우든 풀로 반환됩니다.

        Usage:
            async with manager.transaction() as conn:
                await manager.execute("UPDATE ...", conn=conn)
                await manager.execute("INSERT ...", conn=conn)
        """
        pool = await self._ensure_pool()
        async with pool.connection() as conn:
            try:
                async with conn.transaction():
                    yield conn
            except Exception:
                logger.warning("트랜잭션 롤백", exc_info=True)
                raise

    async def run_transaction(self, fn: Callable[[AsyncConnection], Awaitable[T]]) -> T:
        """fn(conn)을 하나의 트랜잭션 안에서 실행하고 결과를 반환합니다."""
        async with self.transaction() as conn:
            return await fn(conn)

    # ---- 상태 ----

    async def health_check(self) -> bool:
        """
        연결 상태 확인 (health_check_ttl 초 캐싱)

        커넥션을 하나 빌려 SELECT 1 왕복을 수행합니다. 실패해도 예외를 던지지 않습니다.
        풀이 닫혀 있으면 새로 열지 않고 False 를 반환합니다.

        Returns:
            연결 정상 여부
        """
        if self._pool is None:
            return False

        current_time = time.monotonic()
        ttl = self.config.health_check_ttl

        if ttl > 0 and self._last_health_check and current_time - self._last_health_check < ttl:
            return self._health_status

        try:
            async with self.acquire() as conn:
                await conn.execute("SELECT 1")
            self._health_status = True
        except Exception:
            logger.error("PostgreSQL 헬스체크 실패", exc_info=True)
            self._health_status = False
        finally:
            self._last_health_check = current_time

        return self._health_status

    async def table_exists(self, table_name: str) -> bool:
        """
        테이블 존재 여부 확인

        Args:
            table_name: 테이블 이름

        Returns:
            존재 여부
        """
        query = """
            SELECT EXISTS (
                SELECT FROM pg_tables
                WHERE schemaname = current_schema()
                AND tablename = %s
            )
        """
        return bool(await self.fetchval(query, table_name))

    # ---- async with ----

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()
