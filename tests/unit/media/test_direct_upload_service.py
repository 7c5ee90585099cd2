from __future__ import annotations

import base64

import pytest

from src.fortune_media.exceptions import StorageError, ValidationError
from src.fortune_media.media.direct_upload_service import (
    DirectUploadService,
    decode_image_base64,
    parse_direct_upload_body,
)
from src.fortune_media.media.finalize_service import FinalizeService
from tests.conftest import FORTUNE_ID, OWNER_ID

IMAGE = b"\x89PNG fake image bytes"
ENCODED = base64.b64encode(IMAGE).decode()
MAX_BYTES = 10 * 1024 * 1024


@pytest.fixture
def service(access, media_repo, storage) -> DirectUploadService:
    finalizer = FinalizeService(access=access, media_repo=media_repo, storage=storage)
    return DirectUploadService(access=access, storage=storage, finalizer=finalizer)


def test_decode_accepts_data_url_prefix():
    assert decode_image_base64(f"data:image/png;base64,{ENCODED}") == IMAGE
    assert decode_image_base64(ENCODED) == IMAGE


def test_decode_rejects_garbage():
    with pytest.raises(ValidationError, match="Invalid base64"):
        decode_image_base64("not base64!!")


def test_parse_defaults_mime_to_jpeg():
    request = parse_direct_upload_body({"fortune_id": FORTUNE_ID, "image_base64": ENCODED}, MAX_BYTES)

    assert request.mime == "image/jpeg"
    assert request.data == IMAGE


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"image_base64": ENCODED}, "fortune_id is required"),
        ({"fortune_id": FORTUNE_ID}, "image_base64 is required"),
        ({"fortune_id": FORTUNE_ID, "image_base64": ENCODED, "mime_type": "image/bmp"}, "Invalid mime_type"),
    ],
)
def test_parse_rejects_bad_bodies(body, message):
    with pytest.raises(ValidationError, match=message):
        parse_direct_upload_body(body, MAX_BYTES)


def test_parse_enforces_size_cap():
    big = base64.b64encode(b"x" * 2048).decode()

    with pytest.raises(ValidationError, match="File too large"):
        parse_direct_upload_body({"fortune_id": FORTUNE_ID, "image_base64": big}, 1024)


@pytest.mark.asyncio
async def test_upload_stores_object_and_record(service, storage, media_repo):
    request = parse_direct_upload_body(
        {"fortune_id": FORTUNE_ID, "image_base64": ENCODED, "mime_type": "image/png", "width": 3, "height": 4},
        MAX_BYTES,
    )

    outcome = await service.upload(user_id=OWNER_ID, request=request)

    path = storage.upload_object.await_args.args[1]
    assert path.startswith(f"{OWNER_ID}/{FORTUNE_ID}-") and path.endswith(".png")
    assert outcome.replaced is False
    assert outcome.signed_url is not None
    record = media_repo.get_by_fortune(FORTUNE_ID)
    assert record.path == path
    assert record.size_bytes == len(IMAGE)
    assert (record.width, record.height) == (3, 4)


@pytest.mark.asyncio
async def test_signing_failure_still_reports_success(service, storage):
    storage.create_signed_url.side_effect = StorageError("Object not found")
    request = parse_direct_upload_body({"fortune_id": FORTUNE_ID, "image_base64": ENCODED}, MAX_BYTES)

    outcome = await service.upload(user_id=OWNER_ID, request=request)

    assert outcome.signed_url is None
    assert outcome.record.fortune_id == FORTUNE_ID


@pytest.mark.asyncio
async def test_storage_upload_failure(service, storage, media_repo):
    storage.upload_object.side_effect = StorageError("Payload too large", storage_status=413)
    request = parse_direct_upload_body({"fortune_id": FORTUNE_ID, "image_base64": ENCODED}, MAX_BYTES)

    with pytest.raises(StorageError, match="Failed to upload image"):
        await service.upload(user_id=OWNER_ID, request=request)
    assert media_repo.get_by_fortune(FORTUNE_ID) is None
