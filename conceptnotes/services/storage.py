"""Remote storage clients (create/read/update/delete resources by URI)."""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)

LDP_CONTAINS = "http://www.w3.org/ns/ldp#contains"
CONTAINS_KEYS = (LDP_CONTAINS, "ldp:contains", "contains")


class StorageError(Exception):
    """Remote read/write/delete rejected or unreachable."""

    def __init__(self, message: str, *, uri: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.uri = uri
        self.status_code = status_code


class ResourceNotFound(StorageError):
    """The resource does not exist."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Resource not found: {uri}", uri=uri, status_code=404)


class RemoteStorage(abc.ABC):
    """Abstract resource store addressed by URI."""

    @abc.abstractmethod
    async def read_resource(self, uri: str) -> bytes:
        """Return the resource content. Raises ResourceNotFound if absent."""

    @abc.abstractmethod
    async def write_resource(
        self, uri: str, content: bytes | str, *, content_type: str = "text/plain"
    ) -> None:
        """Create or overwrite a resource. Raises StorageError on failure."""

    @abc.abstractmethod
    async def delete_resource(self, uri: str) -> None:
        """Delete a resource. Raises ResourceNotFound if it is already gone."""

    @abc.abstractmethod
    async def list_children(self, container_uri: str) -> List[str]:
        """Return the URIs contained in ``container_uri`` (empty if it does not exist)."""


def _as_bytes(content: bytes | str) -> bytes:
    return content.encode("utf-8") if isinstance(content, str) else content


def _contained_uris(payload: Any, container_uri: str) -> List[str]:
    """Collect ``ldp:contains`` members of ``container_uri`` from a JSON-LD document."""
    if isinstance(payload, dict) and "@graph" in payload:
        nodes = payload["@graph"]
    elif isinstance(payload, list):
        nodes = payload
    else:
        nodes = [payload]

    children: List[str] = []
    for node in nodes:
        if not isinstance(node, dict) or node.get("@id", container_uri) != container_uri:
            continue
        for key in CONTAINS_KEYS:
            members = node.get(key) or []
            if not isinstance(members, list):
                members = [members]
            for member in members:
                child = member.get("@id") if isinstance(member, dict) else member
                if isinstance(child, str) and child not in children:
                    children.append(child)
    return children


class HttpStorage(RemoteStorage):
    """Credentialed HTTP client for a pod-style resource server."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        headers.update(extra or {})
        return headers

    async def _request(self, method: str, uri: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, uri, **kwargs)
        except httpx.TimeoutException as exc:
            raise StorageError(f"{method} {uri} timed out", uri=uri) from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"{method} {uri} failed: {exc}", uri=uri) from exc

        if response.status_code == 404:
            raise ResourceNotFound(uri)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise StorageError(
                f"{method} {uri} returned {response.status_code}",
                uri=uri,
                status_code=response.status_code,
            ) from exc
        return response

    async def read_resource(self, uri: str) -> bytes:
        response = await self._request("GET", uri, headers=self._headers())
        return response.content

    async def write_resource(
        self, uri: str, content: bytes | str, *, content_type: str = "text/plain"
    ) -> None:
        await self._request(
            "PUT",
            uri,
            content=_as_bytes(content),
            headers=self._headers({"Content-Type": content_type}),
        )

    async def delete_resource(self, uri: str) -> None:
        await self._request("DELETE", uri, headers=self._headers())

    async def list_children(self, container_uri: str) -> List[str]:
        try:
            response = await self._request(
                "GET", container_uri, headers=self._headers({"Accept": "application/ld+json"})
            )
        except ResourceNotFound:
            return []
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError(
                f"Container listing is not JSON-LD: {container_uri}", uri=container_uri
            ) from exc
        return _contained_uris(payload, container_uri)


class LocalStorage(RemoteStorage):
    """Filesystem-backed storage serving ``base_uri`` from ``base_path``."""

    def __init__(self, base_path: Path, base_uri: str) -> None:
        self.base_path = Path(base_path).resolve()
        self.base_uri = base_uri if base_uri.endswith("/") else f"{base_uri}/"
        self.base_path.mkdir(parents=True, exist_ok=True)

    def resolve(self, uri: str) -> Path:
        """
        Map a URI onto a path inside the base directory.

        Raises StorageError if the URI is foreign or escapes the base directory.
        """
        if not uri.startswith(self.base_uri):
            raise StorageError(f"URI is not served by this storage: {uri}", uri=uri, status_code=400)
        relative = uri[len(self.base_uri):]
        full_path = (self.base_path / relative).resolve()
        if full_path != self.base_path and not str(full_path).startswith(f"{self.base_path}/"):
            raise StorageError(f"URI escapes storage root: {uri}", uri=uri, status_code=400)
        return full_path

    async def read_resource(self, uri: str) -> bytes:
        path = self.resolve(uri)
        if not path.is_file():
            raise ResourceNotFound(uri)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {uri}: {exc}", uri=uri) from exc

    async def write_resource(
        self, uri: str, content: bytes | str, *, content_type: str = "text/plain"
    ) -> None:
        path = self.resolve(uri)
        if uri.endswith("/"):
            raise StorageError(f"Cannot write a container: {uri}", uri=uri, status_code=400)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(_as_bytes(content))
        except OSError as exc:
            raise StorageError(f"Failed to write {uri}: {exc}", uri=uri) from exc
        logger.debug("Resource written", extra={"uri": uri, "content_type": content_type})

    async def delete_resource(self, uri: str) -> None:
        path = self.resolve(uri)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise ResourceNotFound(uri) from exc
        except OSError as exc:
            raise StorageError(f"Failed to delete {uri}: {exc}", uri=uri) from exc

    async def list_children(self, container_uri: str) -> List[str]:
        base = container_uri if container_uri.endswith("/") else f"{container_uri}/"
        path = self.resolve(base)
        if not path.is_dir():
            return []
        children: List[str] = []
        for child in sorted(path.iterdir()):
            suffix = "/" if child.is_dir() else ""
            children.append(f"{base}{child.name}{suffix}")
        return children


def create_storage(config: AppConfig | None = None) -> RemoteStorage:
    """Build the storage backend selected by configuration."""
    config = config or get_config()
    if config.storage_backend == "http":
        return HttpStorage(config.storage_token, timeout=config.storage_timeout)
    return LocalStorage(config.storage_base_path, config.storage_base_uri)


__all__ = [
    "StorageError",
    "ResourceNotFound",
    "RemoteStorage",
    "HttpStorage",
    "LocalStorage",
    "create_storage",
]
