import json

import httpx
import pytest

from conceptnotes.services.storage import (
    HttpStorage,
    LocalStorage,
    ResourceNotFound,
    StorageError,
    create_storage,
)

BASE_URI = "https://alice.pod/"


@pytest.mark.asyncio
async def test_local_storage_round_trip(storage: LocalStorage) -> None:
    uri = f"{BASE_URI}private/default/notes/Idea"

    await storage.write_resource(uri, "hello")

    assert await storage.read_resource(uri) == b"hello"
    assert (storage.base_path / "private" / "default" / "notes" / "Idea").is_file()


@pytest.mark.asyncio
async def test_local_storage_missing_resource(storage: LocalStorage) -> None:
    uri = f"{BASE_URI}nothing-here"

    with pytest.raises(ResourceNotFound):
        await storage.read_resource(uri)
    with pytest.raises(ResourceNotFound):
        await storage.delete_resource(uri)


@pytest.mark.asyncio
async def test_local_storage_blocks_escape(storage: LocalStorage) -> None:
    with pytest.raises(StorageError):
        await storage.read_resource(f"{BASE_URI}../outside")
    with pytest.raises(StorageError):
        await storage.write_resource("https://someone-else.pod/x", "x")


@pytest.mark.asyncio
async def test_local_storage_lists_children(storage: LocalStorage) -> None:
    container = f"{BASE_URI}public/default/notes/"
    await storage.write_resource(f"{container}B", "b")
    await storage.write_resource(f"{container}A", "a")
    await storage.write_resource(f"{container}sub/C", "c")

    children = await storage.list_children(container)

    assert children == [f"{container}A", f"{container}B", f"{container}sub/"]
    assert await storage.list_children(f"{BASE_URI}missing/") == []


def make_http_storage(handler) -> HttpStorage:
    return HttpStorage("secret-token", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_http_storage_sends_bearer_token() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "PUT":
            return httpx.Response(201)
        return httpx.Response(200, content=b"body")

    storage = make_http_storage(handler)

    await storage.write_resource("https://pod.example/a", "body", content_type="text/markdown")
    assert await storage.read_resource("https://pod.example/a") == b"body"

    assert seen[0].headers["Authorization"] == "Bearer secret-token"
    assert seen[0].headers["Content-Type"] == "text/markdown"
    assert seen[0].content == b"body"


@pytest.mark.asyncio
async def test_http_storage_maps_status_codes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404)
        return httpx.Response(403)

    storage = make_http_storage(handler)

    with pytest.raises(ResourceNotFound):
        await storage.delete_resource("https://pod.example/missing")
    with pytest.raises(StorageError) as excinfo:
        await storage.write_resource("https://pod.example/forbidden", "x")
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_http_storage_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    storage = make_http_storage(handler)

    with pytest.raises(StorageError):
        await storage.read_resource("https://pod.example/a")


@pytest.mark.asyncio
async def test_http_storage_lists_container_members() -> None:
    container = "https://pod.example/notes/"
    payload = {
        "@graph": [
            {
                "@id": container,
                "ldp:contains": [{"@id": f"{container}A"}, {"@id": f"{container}B"}],
            },
            {"@id": f"{container}A"},
        ]
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Accept"] == "application/ld+json"
        return httpx.Response(200, content=json.dumps(payload).encode())

    storage = make_http_storage(handler)

    assert await storage.list_children(container) == [f"{container}A", f"{container}B"]


def test_create_storage_selects_backend(app_config) -> None:
    assert isinstance(create_storage(app_config), LocalStorage)

    remote = create_storage(app_config.model_copy(update={"storage_backend": "http"}))

    assert isinstance(remote, HttpStorage)
