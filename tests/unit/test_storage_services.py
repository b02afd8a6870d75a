"""Tests for the local and Supabase object storage backends."""

import json

import httpx
import pytest

from velai.config import settings
from velai.core.exceptions import StorageError
from velai.services import storage_factory
from velai.services.local_storage_service import LocalStorageService
from velai.services.supabase_storage_service import SupabaseStorageService

SUPABASE_URL = "https://project.supabase.co"
OBJECT_PATH = "documents/6f1c1c3e-6a1d-4a0e-9a55-0d6f3e2b9c11/resume/1730000000000.pdf"


def supabase(handler):
    client = httpx.AsyncClient(
        base_url=f"{SUPABASE_URL}/storage/v1",
        transport=httpx.MockTransport(handler),
    )
    return SupabaseStorageService(url=SUPABASE_URL, service_key="service-key", bucket="documents", client=client)


# ---------------------------------------------------------------------------
# Local
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_local_upload_and_read(storage):
    assert await storage.upload(OBJECT_PATH, b"data", "application/pdf") == OBJECT_PATH
    assert await storage.exists(OBJECT_PATH)
    assert storage.read(OBJECT_PATH) == b"data"


@pytest.mark.asyncio
async def test_local_upload_never_overwrites(storage):
    await storage.upload(OBJECT_PATH, b"first", "application/pdf")

    with pytest.raises(StorageError) as exc_info:
        await storage.upload(OBJECT_PATH, b"second", "application/pdf")

    assert exc_info.value.status_code == 409
    assert storage.read(OBJECT_PATH) == b"first"


@pytest.mark.asyncio
async def test_local_remove_ignores_missing(storage):
    await storage.upload(OBJECT_PATH, b"data", "application/pdf")
    await storage.remove([OBJECT_PATH, "documents/missing.pdf"])
    assert not await storage.exists(OBJECT_PATH)


@pytest.mark.asyncio
async def test_local_rejects_paths_outside_bucket(storage):
    with pytest.raises(StorageError, match="Invalid object path"):
        await storage.upload("../../outside.pdf", b"x", "application/pdf")


@pytest.mark.asyncio
async def test_local_signed_url_for_missing_object(storage):
    with pytest.raises(StorageError) as exc_info:
        await storage.create_signed_url(OBJECT_PATH, 60)
    assert exc_info.value.status_code == 404


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_supabase_upload_request():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"Key": f"documents/{OBJECT_PATH}"})

    storage = supabase(handler)
    assert await storage.upload(OBJECT_PATH, b"%PDF", "application/pdf") == OBJECT_PATH

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == f"/storage/v1/object/documents/{OBJECT_PATH}"
    assert request.headers["x-upsert"] == "false"
    assert request.headers["content-type"] == "application/pdf"
    assert request.content == b"%PDF"
    await storage.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(409, json={"message": "Duplicate"}),
        httpx.Response(400, json={"statusCode": "409", "error": "Duplicate", "message": "The resource already exists"}),
    ],
)
async def test_supabase_duplicate_upload_maps_to_409(response):
    storage = supabase(lambda request: response)

    with pytest.raises(StorageError) as exc_info:
        await storage.upload(OBJECT_PATH, b"%PDF", "application/pdf")

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_supabase_upload_failure():
    storage = supabase(lambda request: httpx.Response(500, json={"message": "Internal error"}))

    with pytest.raises(StorageError, match="Internal error") as exc_info:
        await storage.upload(OBJECT_PATH, b"%PDF", "application/pdf")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_supabase_remove_sends_prefixes():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"name": OBJECT_PATH}])

    storage = supabase(handler)
    await storage.remove([OBJECT_PATH])

    assert seen[0].method == "DELETE"
    assert seen[0].url.path == "/storage/v1/object/documents"
    assert json.loads(seen[0].content) == {"prefixes": [OBJECT_PATH]}


@pytest.mark.asyncio
async def test_supabase_remove_failure():
    storage = supabase(lambda request: httpx.Response(403, json={"message": "Unauthorized"}))

    with pytest.raises(StorageError, match="Unauthorized"):
        await storage.remove([OBJECT_PATH])


@pytest.mark.asyncio
async def test_supabase_signed_url():
    def handler(request):
        assert json.loads(request.content) == {"expiresIn": 3600}
        return httpx.Response(200, json={"signedURL": f"/object/sign/documents/{OBJECT_PATH}?token=abc"})

    storage = supabase(handler)
    url = await storage.create_signed_url(OBJECT_PATH, 3600)

    assert url == f"{SUPABASE_URL}/storage/v1/object/sign/documents/{OBJECT_PATH}?token=abc"


@pytest.mark.asyncio
async def test_supabase_signed_url_non_json_reply():
    storage = supabase(lambda request: httpx.Response(200, content=b"<html>gateway</html>", headers={"content-type": "text/html"}))

    with pytest.raises(StorageError, match="invalid signed URL response") as exc_info:
        await storage.create_signed_url(OBJECT_PATH, 3600)

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_supabase_signed_url_retries_transport_errors():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("reset", request=request)
        return httpx.Response(200, json={"signedURL": "/object/sign/documents/x?token=t"})

    storage = supabase(handler)
    assert (await storage.create_signed_url("x", 60)).endswith("?token=t")
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_supabase_exists():
    storage = supabase(lambda request: httpx.Response(404 if "missing" in request.url.path else 200))
    assert await storage.exists(OBJECT_PATH) is True
    assert await storage.exists("documents/missing.pdf") is False


@pytest.mark.asyncio
async def test_supabase_exists_server_error():
    storage = supabase(lambda request: httpx.Response(503))

    with pytest.raises(StorageError) as exc_info:
        await storage.exists(OBJECT_PATH)

    assert exc_info.value.status_code == 502


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_factory_selects_backend(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_STORAGE_DIR", str(tmp_path))

    assert isinstance(storage_factory.create_storage_service("local"), LocalStorageService)

    monkeypatch.setattr(settings, "SUPABASE_URL", "")
    assert isinstance(storage_factory.create_storage_service("supabase"), LocalStorageService)

    monkeypatch.setattr(settings, "SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_KEY", "service-key")
    backend = storage_factory.create_storage_service("supabase")
    assert isinstance(backend, SupabaseStorageService)
    await backend.close()


def test_get_storage_service_is_a_singleton(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "LOCAL_STORAGE_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(storage_factory, "_storage", None)

    assert storage_factory.get_storage_service() is storage_factory.get_storage_service()
