"""
Folder 라우트 (/api/folders)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request

from notes_gateway.schemas.models import (
    CamelModel,
    FolderCreate,
    FolderQueryOptions,
    FolderSync,
    FolderUpdate,
)
from notes_gateway.routes.helpers.request_helper import get_gateway, owned_query_options
from notes_gateway.routes.helpers.response_helper import not_found_response, ok_response

router = APIRouter(prefix="/api/folders", tags=["folders"])


class OwnerRequest(CamelModel):
    owner_id: str


@router.get("/owner/{owner_id}")
async def find_by_owner(
    request: Request,
    owner_id: str,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    only_deleted: bool = Query(False, alias="onlyDeleted"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
):
    options = FolderQueryOptions.model_validate(
        owned_query_options(
            include_deleted=include_deleted,
            only_deleted=only_deleted,
            order_by=order_by,
            order_direction=order_direction,
        )
    )
    folders = await get_gateway(request).folders.find_by_owner(owner_id, options)
    return ok_response(request, data=folders)


@router.get("")
async def list_folders(
    request: Request,
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    only_deleted: bool = Query(False, alias="onlyDeleted"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
):
    options = FolderQueryOptions.model_validate(
        owned_query_options(
            owner_id=owner_id,
            include_deleted=include_deleted,
            only_deleted=only_deleted,
            limit=limit,
            offset=offset,
            order_by=order_by,
            order_direction=order_direction,
        )
    )
    result = await get_gateway(request).folders.find_with_filter(options)
    return ok_response(request, data=result)


@router.get("/{folder_id}")
async def find_folder(request: Request, folder_id: str):
    folder = await get_gateway(request).folders.find_by_id(folder_id)
    if folder is None:
        return not_found_response(request, "folder")
    return ok_response(request, data=folder)


@router.post("")
async def create_folder(request: Request, body: FolderCreate):
    folder = await get_gateway(request).folders.create(body)
    return ok_response(request, data=folder, status_code=201)


@router.post("/upsert")
async def upsert_folder(request: Request, body: FolderSync):
    folder = await get_gateway(request).folders.upsert(body.id, body.owner_id, body)
    return ok_response(request, data=folder)


@router.post("/bulk-upsert")
async def bulk_upsert_folders(request: Request, body: List[Dict[str, Any]]):
    result = await get_gateway(request).folders.bulk_upsert_detailed(body)
    return ok_response(request, data={"synced": result.succeeded, "total": result.total, "failed": result.failed})


@router.put("/{folder_id}")
async def update_folder(request: Request, folder_id: str, body: FolderUpdate):
    folder = await get_gateway(request).folders.update(folder_id, body)
    if folder is None:
        return not_found_response(request, "folder")
    return ok_response(request, data=folder)


@router.delete("/owner/{owner_id}")
async def delete_by_owner(request: Request, owner_id: str):
    deleted = await get_gateway(request).folders.delete_by_owner(owner_id)
    return ok_response(request, data={"deleted": deleted})


@router.delete("/{folder_id}/permanent")
async def permanent_delete(request: Request, folder_id: str, owner_id: str = Query(..., alias="ownerId")):
    deleted = await get_gateway(request).folders.permanent_delete(folder_id, owner_id)
    return ok_response(request, data={"success": deleted})


@router.delete("/{folder_id}")
async def delete_folder(request: Request, folder_id: str):
    deleted = await get_gateway(request).folders.delete(folder_id)
    return ok_response(request, data={"success": deleted})


@router.post("/{folder_id}/trash")
async def trash_folder(request: Request, folder_id: str, body: OwnerRequest):
    trashed = await get_gateway(request).folders.trash(folder_id, body.owner_id)
    return ok_response(request, data={"success": trashed})


@router.post("/{folder_id}/restore")
async def restore_folder(request: Request, folder_id: str, body: OwnerRequest):
    restored = await get_gateway(request).folders.restore(folder_id, body.owner_id)
    return ok_response(request, data={"success": restored})
