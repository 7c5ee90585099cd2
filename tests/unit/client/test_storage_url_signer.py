from __future__ import annotations

import pytest

from src.fortune_media.client.signers import StorageUrlSigner
from src.fortune_media.exceptions import NotFoundTransient, StorageError
from src.fortune_media.storage.storage_client import StorageClient
from tests.helpers.http import DummyHTTPResponse, install_client

BASE = "https://storage.test/storage/v1"


def make_signer() -> StorageUrlSigner:
    return StorageUrlSigner(StorageClient(base_url=BASE, api_key="anon"))


@pytest.mark.asyncio
async def test_signs_through_storage(monkeypatch):
    client = install_client(monkeypatch, [DummyHTTPResponse(200, {"signedURL": "/object/sign/photos/u1/a.jpg?token=r"})])

    url = await make_signer().sign("photos", "u1/a.jpg", 120)

    assert url == f"{BASE}/object/sign/photos/u1/a.jpg?token=r"
    assert client.calls[0]["json"] == {"expiresIn": 120}


@pytest.mark.asyncio
async def test_missing_object_is_reported_as_transient(monkeypatch):
    install_client(
        monkeypatch,
        [DummyHTTPResponse(400, {"statusCode": "404", "error": "not_found", "message": "Object not found"})],
    )

    with pytest.raises(NotFoundTransient) as excinfo:
        await make_signer().sign("photos", "u1/a.jpg", 120)

    assert excinfo.value.message == "Object not found"


@pytest.mark.asyncio
async def test_other_storage_errors_pass_through(monkeypatch):
    install_client(monkeypatch, [DummyHTTPResponse(400, {"statusCode": "403", "message": "Invalid JWT"})])

    with pytest.raises(StorageError) as excinfo:
        await make_signer().sign("photos", "u1/a.jpg", 120)

    assert excinfo.value.storage_status == 403
