"""Cover image uploads."""

from __future__ import annotations

import logging
import uuid

from ..models.workspace import Scope, Workspace
from .codec import encode_name
from .storage import RemoteStorage

logger = logging.getLogger(__name__)

TYPES_TO_EXTS = {
    "image/gif": "gif",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/svg+xml": "svg",
    "image/webp": "webp",
}
MAX_IMAGE_BYTES = 10 * 1_048_576


class UnsupportedImage(ValueError):
    """The blob is not an accepted image."""


def extension_for(content_type: str) -> str:
    ext = TYPES_TO_EXTS.get((content_type or "").split(";")[0].strip().lower())
    if ext is None:
        raise UnsupportedImage(f"Unsupported image type: {content_type}")
    return ext


class ImageService:
    """Store image blobs next to a note's scope."""

    def __init__(self, storage: RemoteStorage, workspace: Workspace) -> None:
        self.storage = storage
        self.workspace = workspace

    def image_uri(self, name: str, scope: Scope, content_type: str) -> str:
        return (
            f"{self.workspace.images_container(scope)}"
            f"{encode_name(name)}-{uuid.uuid4().hex[:12]}.{extension_for(content_type)}"
        )

    async def upload(self, name: str, scope: Scope, blob: bytes, content_type: str) -> str:
        """Write ``blob`` and return its URI. Raises StorageError on failure."""
        if not blob:
            raise UnsupportedImage("Image is empty")
        if len(blob) > MAX_IMAGE_BYTES:
            raise UnsupportedImage("Image exceeds 10 MiB limit")
        uri = self.image_uri(name, scope, content_type)
        await self.storage.write_resource(uri, blob, content_type=content_type)
        logger.info("Image uploaded", extra={"note": name, "uri": uri, "size_bytes": len(blob)})
        return uri


__all__ = ["ImageService", "UnsupportedImage", "TYPES_TO_EXTS", "extension_for"]
