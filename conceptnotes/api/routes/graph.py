from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Annotated, List

from ...models.concept import ConceptSummary
from ...models.graph import GraphData
from ...models.index import TagCount
from ...services.workspace import WorkspaceService, get_workspace_service

router = APIRouter()

@router.get("/api/graph", response_model=GraphData)
async def get_graph_data(
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> GraphData:
    """Retrieve graph visualization data across both scopes."""
    await service.list_concepts()
    try:
        return service.graph.graph_data()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to build graph data: {str(e)}")

@router.get("/api/backlinks", response_model=List[ConceptSummary])
async def get_backlinks_by_uri(
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
    uri: str = Query(..., description="Concept URI"),
) -> List[ConceptSummary]:
    """Concepts referencing ``uri``, found by scanning both indices."""
    await service.list_concepts()
    return service.graph.referencing(uri)

@router.get("/api/tags", response_model=List[TagCount])
async def get_tags(
    service: Annotated[WorkspaceService, Depends(get_workspace_service)],
) -> List[TagCount]:
    """Tags with the number of concepts referencing each."""
    await service.list_concepts()
    return service.graph.tag_counts()
