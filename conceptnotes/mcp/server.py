"""FastMCP server exposing concept graph tools."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

# Load environment variables from .env file
load_dotenv()

from ..models.workspace import Scope
from ..services.migration import PartialMigration
from ..services.workspace import get_workspace_service

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "concept-notes",
    instructions=(
        "Tools over a workspace of interlinked notes. Each note is a concept identified by its "
        "name; it lives in exactly one scope (public or private). Note bodies are editor document "
        "trees: nodes of type 'concept' and 'tag' carry a 'name' and form the link graph. "
        "Backlinks are found by scanning both scopes' indices. Writes are debounced per note; "
        "use save_note to persist immediately."
    ),
)


def _log_tool(tool_name: str, start_time: float, **fields: Any) -> None:
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "MCP tool called",
        extra={"tool_name": tool_name, "duration_ms": f"{duration_ms:.2f}", **fields},
    )


@mcp.tool(name="list_concepts", description="List indexed concepts (optionally one scope).")
async def list_concepts(
    scope: Optional[Scope] = Field(default=None, description="'public' or 'private'."),
) -> List[Dict[str, Any]]:
    start_time = time.time()
    concepts = await get_workspace_service().list_concepts(scope)
    _log_tool("list_concepts", start_time, result_count=len(concepts))
    return [concept.model_dump(mode="json") for concept in concepts]


@mcp.tool(name="read_note", description="Read a note's document tree and save state.")
async def read_note(
    name: str = Field(..., description="Concept name."),
) -> Dict[str, Any]:
    start_time = time.time()
    session = await get_workspace_service().open_note(name)
    _log_tool("read_note", start_time, note=name)
    return session.view().model_dump(mode="json")


@mcp.tool(
    name="write_note",
    description="Replace a note's document tree and save it immediately (note and index).",
)
async def write_note(
    name: str = Field(..., description="Concept name."),
    value: List[Dict[str, Any]] = Field(..., description="Editor document tree."),
) -> Dict[str, Any]:
    start_time = time.time()
    session = await get_workspace_service().open_note(name)
    session.on_change(value)
    await session.save()
    _log_tool("write_note", start_time, note=name)
    return session.status().model_dump(mode="json")


@mcp.tool(name="get_backlinks", description="List concepts whose notes reference this concept.")
async def get_backlinks(
    name: str = Field(..., description="Concept name."),
) -> List[Dict[str, Any]]:
    session = await get_workspace_service().open_note(name)
    return [summary.model_dump() for summary in session.backlinks()]


@mcp.tool(name="get_links", description="List concepts referenced by this concept's note.")
async def get_links(
    name: str = Field(..., description="Concept name."),
) -> List[Dict[str, Any]]:
    session = await get_workspace_service().open_note(name)
    return [summary.model_dump() for summary in session.links()]


@mcp.tool(name="set_privacy", description="Move a note to the public or private scope.")
async def set_privacy(
    name: str = Field(..., description="Concept name."),
    scope: Scope = Field(..., description="Target scope."),
) -> Dict[str, Any]:
    start_time = time.time()
    session = await get_workspace_service().open_note(name)
    try:
        result = await session.migrate(scope)
    except PartialMigration as exc:
        logger.warning("Partial migration", extra={"note": name, "step": exc.step})
        return {"status": "partial", "notice": exc.message}
    _log_tool("set_privacy", start_time, note=name, scope=scope.value)
    return {"status": "complete", "stored_at": result.stored_at, "notice": result.notice}


if __name__ == "__main__":
    transport = os.getenv("MCP_TRANSPORT", "stdio").strip().lower() or "stdio"

    # Configure HTTP transport with custom port if specified
    if transport == "http":
        port = int(os.getenv("MCP_PORT", "8001"))
        host = os.getenv("MCP_HOST", "127.0.0.1")
        logger.info(
            "Starting MCP server",
            extra={"transport": transport, "host": host, "port": port},
        )
        mcp.run(transport=transport, host=host, port=port)
    else:
        logger.info("Starting MCP server", extra={"transport": transport})
        mcp.run(transport=transport)
