"""
Note 라우트 (/api/notes)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request

from notes_gateway.schemas.models import (
    CamelModel,
    Comment,
    NoteCreate,
    NoteQueryOptions,
    NoteSync,
    NoteUpdate,
    NoteVersion,
    Visibility,
)
from notes_gateway.routes.helpers.request_helper import get_gateway, nullable_query, owned_query_options
from notes_gateway.routes.helpers.response_helper import not_found_response, ok_response

router = APIRouter(prefix="/api/notes", tags=["notes"])


class OwnerRequest(CamelModel):
    owner_id: str


class FolderReferenceUpdate(CamelModel):
    folder_id: str
    owner_id: str
    new_folder_id: Optional[str] = None


def _note_options(
    base: Dict[str, Any],
    folder_id: Optional[str],
    visibility: Optional[Visibility],
    tags: Optional[List[str]],
) -> NoteQueryOptions:
    options = dict(base)
    # folderId 가 쿼리에 있을 때만 폴더 필터 적용 ("null" 은 폴더 없음)
    if folder_id is not None:
        options["folder_id"] = nullable_query(folder_id)
    if visibility is not None:
        options["visibility"] = visibility
    if tags:
        options["tags"] = tags
    return NoteQueryOptions.model_validate(options)


@router.get("/short/{short_id}")
async def find_by_short_id(request: Request, short_id: str):
    note = await get_gateway(request).notes.find_by_short_id(short_id)
    if note is None:
        return not_found_response(request, "note")
    return ok_response(request, data=note)


@router.get("/owner/{owner_id}")
async def find_by_owner(
    request: Request,
    owner_id: str,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    only_deleted: bool = Query(False, alias="onlyDeleted"),
    folder_id: Optional[str] = Query(None, alias="folderId"),
    visibility: Optional[Visibility] = None,
    tags: Optional[List[str]] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
):
    base = owned_query_options(
        include_deleted=include_deleted,
        only_deleted=only_deleted,
        order_by=order_by,
        order_direction=order_direction,
    )
    notes = await get_gateway(request).notes.find_by_owner(owner_id, _note_options(base, folder_id, visibility, tags))
    return ok_response(request, data=notes)


@router.get("")
async def list_notes(
    request: Request,
    limit: Optional[int] = Query(None, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    include_deleted: bool = Query(False, alias="includeDeleted"),
    only_deleted: bool = Query(False, alias="onlyDeleted"),
    folder_id: Optional[str] = Query(None, alias="folderId"),
    visibility: Optional[Visibility] = None,
    tags: Optional[List[str]] = Query(None),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
):
    base = owned_query_options(
        owner_id=owner_id,
        include_deleted=include_deleted,
        only_deleted=only_deleted,
        limit=limit,
        offset=offset,
        order_by=order_by,
        order_direction=order_direction,
    )
    result = await get_gateway(request).notes.find_with_filter(_note_options(base, folder_id, visibility, tags))
    return ok_response(request, data=result)


@router.get("/{note_id}")
async def find_note(request: Request, note_id: str):
    note = await get_gateway(request).notes.find_by_id(note_id)
    if note is None:
        return not_found_response(request, "note")
    return ok_response(request, data=note)


@router.post("")
async def create_note(request: Request, body: NoteCreate):
    note = await get_gateway(request).notes.create(body)
    return ok_response(request, data=note, status_code=201)


@router.post("/upsert")
async def upsert_note(request: Request, body: NoteSync):
    note = await get_gateway(request).notes.upsert(body.id, body.owner_id, body)
    return ok_response(request, data=note)


@router.post("/bulk-upsert")
async def bulk_upsert_notes(request: Request, body: List[Dict[str, Any]]):
    result = await get_gateway(request).notes.bulk_upsert_detailed(body)
    return ok_response(request, data={"synced": result.succeeded, "total": result.total, "failed": result.failed})


@router.post("/update-folder")
async def update_folder_reference(request: Request, body: FolderReferenceUpdate):
    updated = await get_gateway(request).notes.update_folder_reference(body.folder_id, body.owner_id, body.new_folder_id)
    return ok_response(request, data={"updated": updated})


@router.put("/{note_id}")
async def update_note(request: Request, note_id: str, body: NoteUpdate):
    note = await get_gateway(request).notes.update(note_id, body)
    if note is None:
        return not_found_response(request, "note")
    return ok_response(request, data=note)


@router.delete("/owner/{owner_id}")
async def delete_by_owner(request: Request, owner_id: str):
    deleted = await get_gateway(request).notes.delete_by_owner(owner_id)
    return ok_response(request, data={"deleted": deleted})


@router.delete("/{note_id}/permanent")
async def permanent_delete(request: Request, note_id: str, owner_id: str = Query(..., alias="ownerId")):
    deleted = await get_gateway(request).notes.permanent_delete(note_id, owner_id)
    return ok_response(request, data={"success": deleted})


@router.delete("/{note_id}")
async def delete_note(request: Request, note_id: str):
    deleted = await get_gateway(request).notes.delete(note_id)
    return ok_response(request, data={"success": deleted})


@router.post("/{note_id}/trash")
async def trash_note(request: Request, note_id: str, body: OwnerRequest):
    trashed = await get_gateway(request).notes.trash(note_id, body.owner_id)
    return ok_response(request, data={"success": trashed})


@router.post("/{note_id}/restore")
async def restore_note(request: Request, note_id: str, body: OwnerRequest):
    restored = await get_gateway(request).notes.restore(note_id, body.owner_id)
    return ok_response(request, data={"success": restored})


@router.post("/{note_id}/versions")
async def add_version(request: Request, note_id: str, body: NoteVersion):
    added = await get_gateway(request).notes.add_version(note_id, body)
    if not added:
        return not_found_response(request, "note")
    return ok_response(request, data={"success": True})


@router.post("/{note_id}/comments")
async def add_comment(request: Request, note_id: str, body: Comment):
    added = await get_gateway(request).notes.add_comment(note_id, body)
    if not added:
        return not_found_response(request, "note")
    return ok_response(request, data={"success": True})


@router.post("/{note_id}/view")
async def increment_views(request: Request, note_id: str):
    incremented = await get_gateway(request).notes.increment_views(note_id)
    if not incremented:
        return not_found_response(request, "note")
    return ok_response(request, data={"success": True})
