"""HTTP API routes for index operations."""

from __future__ import annotations

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from ...models.concept import Concept
from ...models.index import IndexHealth, RebuildResponse
from ...models.workspace import Scope
from ...services.workspace import WorkspaceService, get_workspace_service

router = APIRouter()

Workspace = Annotated[WorkspaceService, Depends(get_workspace_service)]


@router.get("/api/index", response_model=List[Concept])
async def list_concepts(
    service: Workspace,
    scope: Optional[Scope] = Query(None, description="Restrict to one scope"),
):
    """List indexed concepts."""
    return await service.list_concepts(scope)


@router.get("/api/index/health", response_model=IndexHealth)
async def get_index_health(service: Workspace):
    """Report duplicated concepts and orphaned note resources."""
    return await service.health()


@router.post("/api/index/{scope}/rebuild", response_model=RebuildResponse)
async def rebuild_index(scope: Scope, service: Workspace):
    """Rebuild one scope's index from its stored notes."""
    count = await service.rebuild_index(scope)
    return RebuildResponse(status="completed", scope=scope.value, concepts_indexed=count)


__all__ = ["router"]
