"""
Account 라우트 (/api/accounts)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request

from notes_gateway.schemas.models import (
    AccountCreate,
    AccountQueryOptions,
    AccountRole,
    AccountSync,
    AccountUpdate,
    CamelModel,
    HashAlgorithm,
)
from notes_gateway.routes.helpers.request_helper import get_gateway
from notes_gateway.routes.helpers.response_helper import not_found_response, ok_response

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


class PasswordHashUpdate(CamelModel):
    hash: str
    algorithm: HashAlgorithm = HashAlgorithm.pbkdf2


class SuspendRequest(CamelModel):
    reason: Optional[str] = None


@router.get("/admin/exists")
async def admin_exists(request: Request):
    exists = await get_gateway(request).accounts.has_admin_account()
    return ok_response(request, data={"exists": exists})


@router.get("/email/{email}")
async def find_by_email(request: Request, email: str):
    account = await get_gateway(request).accounts.find_by_email(email)
    if account is None:
        return not_found_response(request, "account")
    return ok_response(request, data=account)


@router.get("/username/{username}")
async def find_by_username(request: Request, username: str):
    account = await get_gateway(request).accounts.find_by_username(username)
    if account is None:
        return not_found_response(request, "account")
    return ok_response(request, data=account)


@router.get("")
async def list_accounts(
    request: Request,
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    search: Optional[str] = None,
    role: Optional[AccountRole] = None,
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
):
    options = AccountQueryOptions(
        limit=limit,
        offset=offset,
        search=search,
        role=role,
        order_by=order_by,
        order_direction=order_direction.upper() if order_direction else None,
    )
    result = await get_gateway(request).accounts.find_with_filter(options)
    return ok_response(request, data=result)


@router.post("/upsert")
async def upsert_account(request: Request, body: AccountSync):
    account = await get_gateway(request).accounts.upsert(body.id, body)
    return ok_response(request, data=account)


@router.post("/bulk-upsert")
async def bulk_upsert_accounts(request: Request, body: List[Dict[str, Any]]):
    result = await get_gateway(request).accounts.bulk_upsert_detailed(body)
    return ok_response(request, data={"synced": result.succeeded, "total": result.total, "failed": result.failed})


@router.get("/{account_id}")
async def find_account(request: Request, account_id: str):
    account = await get_gateway(request).accounts.find_by_id(account_id)
    if account is None:
        return not_found_response(request, "account")
    return ok_response(request, data=account)


@router.post("")
async def create_account(request: Request, body: AccountCreate):
    account = await get_gateway(request).accounts.create(body)
    return ok_response(request, data=account, status_code=201)


@router.put("/{account_id}")
async def update_account(request: Request, account_id: str, body: AccountUpdate):
    account = await get_gateway(request).accounts.update(account_id, body)
    if account is None:
        return not_found_response(request, "account")
    return ok_response(request, data=account)


@router.delete("/{account_id}")
async def delete_account(request: Request, account_id: str):
    deleted = await get_gateway(request).accounts.delete(account_id)
    return ok_response(request, data={"success": deleted})


@router.post("/{account_id}/login")
async def touch_login(request: Request, account_id: str):
    updated = await get_gateway(request).accounts.update_last_login(account_id)
    return ok_response(request, data={"success": updated})


@router.post("/{account_id}/seen")
async def touch_seen(request: Request, account_id: str):
    updated = await get_gateway(request).accounts.update_last_seen(account_id)
    return ok_response(request, data={"success": updated})


@router.post("/{account_id}/notes-updated")
async def touch_notes(request: Request, account_id: str):
    updated = await get_gateway(request).accounts.update_notes_timestamp(account_id)
    return ok_response(request, data={"success": updated})


@router.post("/{account_id}/password")
async def update_password_hash(request: Request, account_id: str, body: PasswordHashUpdate):
    updated = await get_gateway(request).accounts.update_password_hash(account_id, body.hash, body.algorithm)
    return ok_response(request, data={"success": updated})


@router.post("/{account_id}/suspend")
async def suspend_account(request: Request, account_id: str, body: Optional[SuspendRequest] = None):
    reason = body.reason if body else None
    updated = await get_gateway(request).accounts.suspend(account_id, reason)
    return ok_response(request, data={"success": updated})


@router.post("/{account_id}/unsuspend")
async def unsuspend_account(request: Request, account_id: str):
    updated = await get_gateway(request).accounts.unsuspend(account_id)
    return ok_response(request, data={"success": updated})
