from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from ..context import AppContext, get_ctx
from ..errors import StorageError, status_for
from ..logs import LogContext
from ..models import Addr, Entry, ManyEntries, SingleEntry, template_context
from ..services import entry_svc

router = APIRouter()

# ids are non-negative and fit a signed 64-bit column
MAX_ENTRY_ID = 2**63 - 1
EntryId = Annotated[int, Path(ge=0, le=MAX_ENTRY_ID)]


def entries_url(entry_id: int) -> str:
    return f"/entries/{entry_id}"


def http_error(e: StorageError) -> HTTPException:
    status = status_for(e)
    if status == 404:
        return HTTPException(status_code=404, detail="entry not found")
    if status == 400:
        return HTTPException(status_code=400, detail=f"invalid request: {e}")
    return HTTPException(status_code=status, detail=f"internal server error: {e}")


async def entry_form(request: Request) -> Entry:
    """Decode a url/title/notes form body; every field must be present, empty is fine."""
    form = await request.form()
    try:
        return Entry.model_validate({k: form[k] for k in form.keys()})
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise HTTPException(status_code=400, detail=f"invalid request: {missing}")


def render(ctx: AppContext, request: Request, view: str, payload):
    return ctx.templates.TemplateResponse(request, f"{view}.html", template_context(payload))


@router.get("/", response_class=HTMLResponse)
def get_index(request: Request, ctx: AppContext = Depends(get_ctx)):
    try:
        entries = entry_svc.list_entries(ctx.store)
    except StorageError as e:
        raise http_error(e)
    return render(ctx, request, "index", ManyEntries(entries=entries, addr=ctx.addr))


@router.get("/entry", response_class=HTMLResponse)
def new_entry(request: Request, ctx: AppContext = Depends(get_ctx)):
    return render(ctx, request, "new_entry", Addr(addr=ctx.addr))


@router.post("/entry")
@router.post("/entries")
def create_entry(data: Entry = Depends(entry_form), ctx: AppContext = Depends(get_ctx)):
    log = LogContext("CREATE_ENTRY")
    try:
        new_id = entry_svc.create_entry(ctx.store, data, log)
        log.write("OK")
        return RedirectResponse(entries_url(new_id), status_code=303)
    except StorageError as e:
        log.write("ERROR", str(e))
        raise http_error(e)


@router.get("/entries/{entry_id}", response_class=HTMLResponse)
def get_entry(entry_id: EntryId, request: Request, ctx: AppContext = Depends(get_ctx)):
    try:
        entry = entry_svc.get_entry(ctx.store, entry_id)
    except StorageError as e:
        raise http_error(e)
    return render(ctx, request, "entry", SingleEntry(entry=entry, addr=ctx.addr))


@router.put("/entries/{entry_id}")
@router.post("/entries/{entry_id}")
def update_entry(entry_id: EntryId, data: Entry = Depends(entry_form), ctx: AppContext = Depends(get_ctx)):
    log = LogContext("UPDATE_ENTRY")
    try:
        entry_svc.update_entry(ctx.store, entry_id, data, log)
        log.write("OK")
        return RedirectResponse(entries_url(entry_id), status_code=303)
    except StorageError as e:
        log.write("ERROR", str(e))
        raise http_error(e)


@router.delete("/entries/{entry_id}")
@router.post("/entries/{entry_id}/delete")
def delete_entry(entry_id: EntryId, ctx: AppContext = Depends(get_ctx)):
    log = LogContext("DELETE_ENTRY")
    try:
        entry_svc.delete_entry(ctx.store, entry_id, log)
        log.write("OK")
        return RedirectResponse("/", status_code=303)
    except StorageError as e:
        log.write("ERROR", str(e))
        raise http_error(e)
