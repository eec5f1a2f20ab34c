"""Graph data models."""

from typing import List
from pydantic import BaseModel, Field

class GraphNode(BaseModel):
    """Represents a single concept in the graph."""
    id: str = Field(..., description="Unique identifier (Concept URI)")
    label: str = Field(..., description="Concept name")
    val: int = Field(default=1, description="Weight/Size of the node (1 + backlink count)")
    group: str = Field(..., description="Scope indexing the concept")

class GraphLink(BaseModel):
    """Represents a directed reference between two concepts."""
    source: str = Field(..., description="URI of the referencing concept")
    target: str = Field(..., description="URI of the referenced concept")

class GraphData(BaseModel):
    """The top-level payload returned by the API."""
    nodes: List[GraphNode]
    links: List[GraphLink]
