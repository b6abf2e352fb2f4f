"""
Raw 라우트 (/api/raw) - 상태, 헬스체크, 마이그레이션, 관리용 SQL 패스스루
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Request

from notes_gateway.resources.database.database_manager import RawStatement
from notes_gateway.schemas.models import CamelModel
from notes_gateway.routes.helpers.request_helper import get_gateway
from notes_gateway.routes.helpers.response_helper import ERROR_TYPES, error_response, ok_response

router = APIRouter(prefix="/api/raw", tags=["raw"])


class RawSql(CamelModel):
    sql: str
    params: Optional[List[Any]] = None


class RawTransaction(CamelModel):
    queries: List[RawSql]


@router.get("/status")
async def status(request: Request):
    gateway_status = await get_gateway(request).get_status()
    return ok_response(request, data=gateway_status.to_dict())


@router.get("/health")
async def health(request: Request):
    healthy = await get_gateway(request).health_check()
    if not healthy:
        return error_response(request, ERROR_TYPES.DB_UNAVAILABLE)
    return ok_response(request, data={"healthy": True})


@router.post("/migrate")
async def migrate(request: Request):
    await get_gateway(request).migrate()
    return ok_response(request, data={"success": True})


@router.get("/count/{table}")
async def count_table(request: Request, table: str):
    try:
        count = await get_gateway(request).count_table(table)
    except ValueError as e:
        return error_response(
            request,
            ERROR_TYPES.INVALID_TABLE,
            detail=str(e),
        )
    return ok_response(request, data={"count": count})


@router.post("/query")
async def raw_query(request: Request, body: RawSql):
    rows = await get_gateway(request).raw_query(body.sql, body.params)
    return ok_response(request, data=rows)


@router.post("/execute")
async def raw_execute(request: Request, body: RawSql):
    result = await get_gateway(request).raw_execute(body.sql, body.params)
    return ok_response(request, data={"affectedRows": result.affected_rows, "insertId": result.insert_id})


@router.post("/transaction")
async def raw_transaction(request: Request, body: RawTransaction):
    statements = [RawStatement(query.sql, query.params) for query in body.queries]
    results = await get_gateway(request).raw_transaction(statements)
    return ok_response(request, data=results)
