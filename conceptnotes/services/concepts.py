"""Construct concept records from a note's extracted references."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Iterable, List, Optional

from ..models.concept import Concept
from ..models.workspace import Scope, Workspace
from .codec import concept_uri, default_note_uri, encode_name, tag_uri, validate_name

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def usable_names(names: Iterable[str], *, source: str = "", kind: str = "concept") -> List[str]:
    """Drop reference names the codec rejects so one bad node cannot block a save."""
    accepted: List[str] = []
    for name in names:
        is_valid, message = validate_name(name)
        if is_valid:
            accepted.append(name)
        else:
            logger.warning(
                "Skipping invalid reference",
                extra={"note": source, "kind": kind, "reference": name, "error": message},
            )
    return accepted


def build_concept(
    name: str,
    workspace: Workspace,
    scope: Scope,
    *,
    existing: Optional[Concept] = None,
    ref_names: Iterable[str] = (),
    tag_names: Iterable[str] = (),
    storage_uri: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Concept:
    """
    Return a fresh concept record for ``name``.

    ``refs`` and ``tags`` are recomputed wholesale from the given names.
    ``stored_at`` is ``storage_uri`` when given (migration), else the existing
    record's location, else the default note URI of ``name`` in ``scope``.
    Raises InvalidName if any name cannot be encoded.
    """
    identifier = encode_name(name)
    if storage_uri:
        stored_at = storage_uri
    elif existing is not None:
        stored_at = existing.stored_at
    else:
        stored_at = default_note_uri(workspace, name, scope)

    return Concept(
        name=name,
        id=identifier,
        uri=f"{workspace.concept_prefix}{identifier}",
        refs=frozenset(concept_uri(workspace, ref) for ref in ref_names),
        tags=frozenset(tag_uri(workspace, tag) for tag in tag_names),
        stored_at=stored_at,
        modified=now or _utcnow(),
    )


def relocate_concept(concept: Concept, storage_uri: str, *, now: Optional[datetime] = None) -> Concept:
    """Copy of ``concept`` pointing at ``storage_uri``."""
    return concept.model_copy(update={"stored_at": storage_uri, "modified": now or _utcnow()})


__all__ = ["build_concept", "relocate_concept", "usable_names"]
