from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.fortune_media.client.upload_executor import UploadExecutor
from src.fortune_media.client.upload_models import NormalizedTicket, PhotoPayload, UploadMethod
from src.fortune_media.exceptions import StorageError, UploadStageError
from tests.helpers.http import DummyHTTPResponse, connect_error, install_client


def make_ticket(method: UploadMethod, **overrides) -> NormalizedTicket:
    fields = dict(
        upload_url="https://cdn.test/upload/u1/f1-0000aaaa.png",
        bucket_relative_path="u1/f1-0000aaaa.png",
        bucket="photos",
        upload_method=method,
        form_field_name="file",
        required_headers={"x-upsert": "true"},
    )
    fields.update(overrides)
    return NormalizedTicket(**fields)


@pytest.fixture
def payload() -> PhotoPayload:
    return PhotoPayload(data=b"png-bytes", mime="image/png", filename="photo.png")


@pytest.fixture
def storage() -> AsyncMock:
    return AsyncMock()


@pytest.mark.asyncio
async def test_sdk_signed_upload_uses_storage_client(monkeypatch, storage, payload):
    client = install_client(monkeypatch, [])
    ticket = make_ticket(
        UploadMethod.SDK_SIGNED_UPLOAD, signed_upload_token="tok-1", required_headers={}
    )

    await UploadExecutor(storage=storage).execute(ticket, payload)

    storage.upload_to_signed_url.assert_awaited_once_with(
        "photos", "u1/f1-0000aaaa.png", "tok-1", b"png-bytes", content_type="image/png"
    )
    assert client.calls == []


@pytest.mark.asyncio
async def test_sdk_signed_upload_surfaces_storage_error(storage, payload):
    storage.upload_to_signed_url.side_effect = StorageError("The resource already exists", storage_status=409)
    ticket = make_ticket(UploadMethod.SDK_SIGNED_UPLOAD, signed_upload_token="tok-1")

    with pytest.raises(UploadStageError) as excinfo:
        await UploadExecutor(storage=storage).execute(ticket, payload)

    assert excinfo.value.stage == "upload"
    assert excinfo.value.reason == "The resource already exists"
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_multipart_post_sends_file_field_without_custom_headers(monkeypatch, storage, payload):
    client = install_client(monkeypatch, [DummyHTTPResponse(200, {"Key": "photos/u1/f1.png"})])
    ticket = make_ticket(UploadMethod.POST_MULTIPART, form_field_name="photo")

    await UploadExecutor(storage=storage).execute(ticket, payload)

    call = client.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == ticket.upload_url
    assert call["files"] == {"photo": ("photo.png", b"png-bytes", "image/png")}
    assert "headers" not in call


@pytest.mark.asyncio
async def test_put_sends_required_headers_and_content_type(monkeypatch, storage, payload):
    client = install_client(monkeypatch, [DummyHTTPResponse(201)])
    ticket = make_ticket(UploadMethod.PUT, required_headers={"x-upsert": "true", "cache-control": "3600"})

    await UploadExecutor(storage=storage).execute(ticket, payload)

    call = client.calls[0]
    assert call["method"] == "PUT"
    assert call["content"] == b"png-bytes"
    assert call["headers"] == {
        "x-upsert": "true",
        "cache-control": "3600",
        "Content-Type": "image/png",
    }


@pytest.mark.asyncio
async def test_non_2xx_raises_with_truncated_body(monkeypatch, storage, payload):
    install_client(monkeypatch, [DummyHTTPResponse(403, text="denied " * 100)])

    with pytest.raises(UploadStageError) as excinfo:
        await UploadExecutor(storage=storage).execute(make_ticket(UploadMethod.PUT), payload)

    error = excinfo.value
    assert error.stage == "upload"
    assert error.status_code == 403
    assert error.body_snippet is not None
    assert len(error.body_snippet) == 200
    assert error.reason.startswith("Upload failed: 403 denied")


@pytest.mark.asyncio
async def test_network_failure_raises_upload_stage_error_without_retry(monkeypatch, storage, payload):
    client = install_client(monkeypatch, [connect_error()])

    with pytest.raises(UploadStageError) as excinfo:
        await UploadExecutor(storage=storage).execute(make_ticket(UploadMethod.POST_MULTIPART), payload)

    assert excinfo.value.reason == "Upload failed: ConnectError"
    assert len(client.calls) == 1
