"""Reversible mapping between concept/tag names and URL-safe identifiers."""

from __future__ import annotations

import unicodedata
from typing import Tuple
from urllib.parse import quote, unquote

from ..models.concept import Tag
from ..models.workspace import Scope, Workspace

MAX_NAME_LENGTH = 256
# Unicode categories rejected in names: controls, surrogates, unassigned.
INVALID_CATEGORIES = {"Cc", "Cs", "Cn"}
DOT_SEGMENTS = {".", ".."}


class InvalidName(ValueError):
    """Raised when a name or identifier is outside the accepted character set."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Invalid name {value!r}: {reason}")
        self.value = value
        self.reason = reason


def validate_name(name: str) -> Tuple[bool, str]:
    """
    Validate a concept or tag name.

    Returns (is_valid, message). Message is empty when valid.
    """
    if not isinstance(name, str) or not name:
        return False, "Name must be a non-empty string"
    if len(name) > MAX_NAME_LENGTH:
        return False, f"Name must be at most {MAX_NAME_LENGTH} characters"
    if name != name.strip():
        return False, "Name must not start or end with whitespace"
    if name in DOT_SEGMENTS:
        # Left unencoded by quote(); they would address the container or its parent.
        return False, "Name must not be '.' or '..'"
    for char in name:
        if unicodedata.category(char) in INVALID_CATEGORIES:
            return False, f"Name contains an unsupported character (U+{ord(char):04X})"
    return True, ""


def encode_name(name: str) -> str:
    """Return the URL-safe identifier for ``name``."""
    is_valid, message = validate_name(name)
    if not is_valid:
        raise InvalidName(name, message)
    return quote(name, safe="")


def decode_id(identifier: str) -> str:
    """Return the name encoded by ``identifier``; the inverse of :func:`encode_name`."""
    if not identifier:
        raise InvalidName(identifier, "Identifier must be non-empty")
    try:
        name = unquote(identifier, errors="strict")
    except UnicodeDecodeError as exc:
        raise InvalidName(identifier, "Identifier is not valid percent-encoded UTF-8") from exc
    is_valid, message = validate_name(name)
    if not is_valid:
        raise InvalidName(identifier, message)
    if quote(name, safe="") != identifier:
        raise InvalidName(identifier, "Identifier is not in canonical form")
    return name


def concept_uri(workspace: Workspace, name: str) -> str:
    return f"{workspace.concept_prefix}{encode_name(name)}"


def tag_uri(workspace: Workspace, name: str) -> str:
    return f"{workspace.tag_prefix}{encode_name(name)}"


def make_tag(workspace: Workspace, name: str) -> Tag:
    identifier = encode_name(name)
    return Tag(name=name, id=identifier, uri=f"{workspace.tag_prefix}{identifier}")


def _name_from_uri(prefix: str, uri: str) -> str:
    if not uri.startswith(prefix):
        raise InvalidName(uri, f"URI is not under {prefix}")
    return decode_id(uri[len(prefix):])


def concept_name_from_uri(workspace: Workspace, uri: str) -> str:
    return _name_from_uri(workspace.concept_prefix, uri)


def tag_name_from_uri(workspace: Workspace, uri: str) -> str:
    return _name_from_uri(workspace.tag_prefix, uri)


def default_note_uri(workspace: Workspace, name: str, scope: Scope) -> str:
    """Deterministic note resource URI of ``name`` in ``scope``."""
    return f"{workspace.notes_container(scope)}{encode_name(name)}"


__all__ = [
    "InvalidName",
    "MAX_NAME_LENGTH",
    "validate_name",
    "encode_name",
    "decode_id",
    "concept_uri",
    "tag_uri",
    "make_tag",
    "concept_name_from_uri",
    "tag_name_from_uri",
    "default_note_uri",
]
