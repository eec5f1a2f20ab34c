"""HTTP API routes for note operations."""

from __future__ import annotations

from typing import Annotated, List

from fastapi import APIRouter, Depends, Request

from ...models.concept import ConceptSummary
from ...models.note import MigrationResponse, NoteStatus, NoteUpdate, NoteView, PrivacyUpdate
from ...services.migration import PartialMigration
from ...services.workspace import WorkspaceService, get_workspace_service

router = APIRouter()

Workspace = Annotated[WorkspaceService, Depends(get_workspace_service)]


@router.get("/api/notes/{name}", response_model=NoteView)
async def get_note(name: str, service: Workspace):
    """Open a note (an empty body if it has never been saved)."""
    session = await service.open_note(name)
    return session.view()


@router.put("/api/notes/{name}", response_model=NoteStatus)
async def update_note(name: str, update: NoteUpdate, service: Workspace):
    """Record an editor change; the note is saved after the quiet period."""
    session = await service.open_note(name)
    session.on_change(update.value)
    return session.status()


@router.get("/api/notes/{name}/status", response_model=NoteStatus)
async def get_note_status(name: str, service: Workspace):
    session = await service.open_note(name)
    return session.status()


@router.post("/api/notes/{name}/save", response_model=NoteStatus)
async def save_note(name: str, service: Workspace):
    """Save immediately, bypassing the quiet period."""
    session = await service.open_note(name)
    await session.save()
    return session.status()


@router.delete("/api/notes/{name}", status_code=204)
async def delete_note(name: str, service: Workspace):
    session = await service.open_note(name)
    await session.delete()
    service.close_note(name)


@router.post("/api/notes/{name}/privacy", response_model=MigrationResponse)
async def set_privacy(name: str, update: PrivacyUpdate, service: Workspace):
    """Move a note to the public or private scope."""
    session = await service.open_note(name)
    try:
        result = await session.migrate(update.scope)
    except PartialMigration as exc:
        return MigrationResponse(
            name=name,
            scope=session.scope,
            stored_at=session.stored_at,
            status="partial",
            notice=exc.message,
        )
    return MigrationResponse(
        name=name,
        scope=result.target_scope,
        stored_at=result.stored_at,
        status="complete",
        notice=result.notice,
    )


@router.put("/api/notes/{name}/cover", response_model=NoteView)
async def upload_cover(name: str, request: Request, service: Workspace):
    """Store the request body as the note's cover image."""
    session = await service.open_note(name)
    blob = await request.body()
    content_type = request.headers.get("content-type", "")
    image_uri = await service.images.upload(name, session.scope, blob, content_type)
    await session.set_cover_image(image_uri)
    return session.view()


@router.get("/api/notes/{name}/backlinks", response_model=List[ConceptSummary])
async def get_backlinks(name: str, service: Workspace):
    """Concepts, in either scope, whose notes reference this one."""
    session = await service.open_note(name)
    return session.backlinks()


@router.get("/api/notes/{name}/links", response_model=List[ConceptSummary])
async def get_links(name: str, service: Workspace):
    """Concepts this note references."""
    session = await service.open_note(name)
    return session.links()


__all__ = ["router"]
