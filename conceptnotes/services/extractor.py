"""Extract concept and tag references from an editor document tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Tuple

CONCEPT_NODE_TYPE = "concept"
TAG_NODE_TYPE = "tag"


class NodeKind(Enum):
    """Closed set of node kinds the extractor distinguishes."""

    CONCEPT_REFERENCE = "concept"
    TAG_REFERENCE = "tag"
    OTHER = "other"


@dataclass(frozen=True)
class ExtractedReferences:
    """Names referenced by a document, in first-seen order without duplicates."""

    concepts: Tuple[str, ...] = field(default_factory=tuple)
    tags: Tuple[str, ...] = field(default_factory=tuple)


def classify_node(node: Any) -> NodeKind:
    if not isinstance(node, Mapping):
        return NodeKind.OTHER
    node_type = node.get("type")
    if node_type == CONCEPT_NODE_TYPE:
        return NodeKind.CONCEPT_REFERENCE
    if node_type == TAG_NODE_TYPE:
        return NodeKind.TAG_REFERENCE
    return NodeKind.OTHER


def _reference_name(node: Mapping[str, Any]) -> str:
    name = node.get("name")
    if not isinstance(name, str):
        return ""
    return name.strip()


def iter_reference_nodes(document: Sequence[Any] | None) -> Iterator[Tuple[NodeKind, str]]:
    """Yield ``(kind, name)`` for every reference node in document order."""
    stack: List[Any] = list(reversed(document or []))
    while stack:
        node = stack.pop()
        kind = classify_node(node)
        if kind is NodeKind.OTHER:
            children = node.get("children") if isinstance(node, Mapping) else None
            if isinstance(children, list):
                stack.extend(reversed(children))
            continue
        # Reference nodes are inline voids; their children carry no references.
        name = _reference_name(node)
        if name:
            yield kind, name


def extract_references(document: Sequence[Any] | None) -> ExtractedReferences:
    """Collect concept and tag names referenced by ``document``."""
    found: Dict[NodeKind, Dict[str, None]] = {
        NodeKind.CONCEPT_REFERENCE: {},
        NodeKind.TAG_REFERENCE: {},
    }
    for kind, name in iter_reference_nodes(document):
        # Preserve order but drop duplicates
        found[kind].setdefault(name, None)
    return ExtractedReferences(
        concepts=tuple(found[NodeKind.CONCEPT_REFERENCE]),
        tags=tuple(found[NodeKind.TAG_REFERENCE]),
    )


__all__ = [
    "CONCEPT_NODE_TYPE",
    "TAG_NODE_TYPE",
    "NodeKind",
    "ExtractedReferences",
    "classify_node",
    "iter_reference_nodes",
    "extract_references",
]
