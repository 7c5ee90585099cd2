from __future__ import annotations

import pytest
from fastapi import status

from tests.api.conftest import STORAGE_BASE
from tests.conftest import FORTUNE_ID, OWNER_ID, STRANGER_ID, build_token, seed_subscription
from tests.helpers.http import DummyHTTPResponse, install_client

FINALIZE_URL = "/functions/v1/finalize-fortune-photo"
FIRST_PATH = f"{OWNER_ID}/{FORTUNE_ID}-00000001.jpg"
SECOND_PATH = f"{OWNER_ID}/{FORTUNE_ID}-00000002.jpg"


def signed(path: str) -> DummyHTTPResponse:
    return DummyHTTPResponse(200, {"signedURL": f"/object/sign/photos/{path}?token=read"})


def finalize_body(path: str, **extra) -> dict:
    body = {
        "fortune_id": FORTUNE_ID,
        "bucket": "photos",
        "path": path,
        "width": 1200,
        "height": 900,
        "size_bytes": 4567,
        "mime": "image/jpeg",
    }
    body.update(extra)
    return body


@pytest.mark.integration
def test_finalize_twice_replaces_record(api_client, auth_headers, monkeypatch):
    install_client(monkeypatch, [signed(FIRST_PATH), signed(SECOND_PATH)])

    first = api_client.post(FINALIZE_URL, json=finalize_body(FIRST_PATH), headers=auth_headers)
    second = api_client.post(FINALIZE_URL, json=finalize_body(f"photos/{SECOND_PATH}"), headers=auth_headers)

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["replaced"] is False
    body = second.json()
    assert body["replaced"] is True
    assert body["signedUrl"] == f"{STORAGE_BASE}/object/sign/photos/{SECOND_PATH}?token=read"
    assert body["media"]["fortune_id"] == FORTUNE_ID
    assert body["media"]["bucket"] == "photos"
    assert body["media"]["path"] == SECOND_PATH
    assert body["media"]["updated_at"]


@pytest.mark.integration
def test_missing_fields_are_listed(api_client, auth_headers):
    response = api_client.post(FINALIZE_URL, json={"fortune_id": FORTUNE_ID}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "Missing required fields",
        "missingFields": ["path (or bucketRelativePath/dbPath/db_path)", "mime (or mime_type)"],
    }


@pytest.mark.integration
def test_signing_not_found_is_retriable(api_client, auth_headers, monkeypatch):
    install_client(
        monkeypatch,
        [DummyHTTPResponse(400, {"statusCode": "404", "error": "not_found", "message": "Object not found"})],
    )

    response = api_client.post(FINALIZE_URL, json=finalize_body(FIRST_PATH), headers=auth_headers)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Failed to create signed URL: Object not found", "retriable": True}


@pytest.mark.integration
def test_sign_only_returns_null_without_media(api_client, auth_headers, monkeypatch):
    http = install_client(monkeypatch, [])

    response = api_client.post(
        FINALIZE_URL, json={"action": "SIGN_ONLY", "fortune_id": FORTUNE_ID, "ttlSec": 60}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"signedUrl": None}
    assert http.calls == []


@pytest.mark.integration
def test_sign_only_clamps_ttl_and_skips_entitlement(api_client, app_config, auth_headers, monkeypatch):
    http = install_client(monkeypatch, [signed(FIRST_PATH), signed(FIRST_PATH)])
    api_client.post(FINALIZE_URL, json=finalize_body(FIRST_PATH), headers=auth_headers)
    seed_subscription(app_config.session_factory, status="canceled")

    response = api_client.post(
        FINALIZE_URL, json={"action": "SIGN_ONLY", "fortune_id": FORTUNE_ID, "ttlSec": 86400}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["signedUrl"].endswith("?token=read")
    assert http.calls[-1]["json"] == {"expiresIn": 3600}


@pytest.mark.integration
def test_sign_only_requires_ownership(api_client):
    response = api_client.post(
        FINALIZE_URL,
        json={"action": "SIGN_ONLY", "fortune_id": FORTUNE_ID},
        headers={"Authorization": f"Bearer {build_token(STRANGER_ID)}"},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"error": "Access denied"}


@pytest.mark.integration
def test_delete_action(api_client, auth_headers, monkeypatch):
    http = install_client(monkeypatch, [signed(FIRST_PATH), DummyHTTPResponse(200, [])])
    api_client.post(FINALIZE_URL, json=finalize_body(FIRST_PATH), headers=auth_headers)

    response = api_client.post(FINALIZE_URL, json={"action": "DELETE", "fortune_id": FORTUNE_ID}, headers=auth_headers)
    again = api_client.post(FINALIZE_URL, json={"action": "DELETE", "fortune_id": FORTUNE_ID}, headers=auth_headers)

    assert response.json() == {"deleted": True}
    assert again.json() == {"deleted": False}
    assert http.calls[-1]["method"] == "DELETE"


@pytest.mark.integration
def test_unknown_action(api_client, auth_headers):
    response = api_client.post(FINALIZE_URL, json={"action": "RENAME", "fortune_id": FORTUNE_ID}, headers=auth_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Unsupported action: RENAME"}
