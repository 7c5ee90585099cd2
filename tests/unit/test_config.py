from __future__ import annotations

from src.fortune_media.config import ALLOWED_MIME_TYPES, load_client_config, load_config


def test_client_config_derives_urls_from_project(monkeypatch):
    for name in ("FUNCTIONS_URL", "STORAGE_URL", "PHOTO_BUCKET", "SIGNED_URL_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FORTUNE_PROJECT_URL", "https://proj.test/")
    monkeypatch.setenv("FORTUNE_ANON_KEY", "anon")

    config = load_client_config()

    assert config.functions_url == "https://proj.test/functions/v1"
    assert config.storage_url == "https://proj.test/storage/v1"
    assert config.anon_key == "anon"
    assert config.photo_bucket == "photos"
    assert config.signed_url_ttl_seconds == 300


def test_client_config_overrides(monkeypatch):
    monkeypatch.setenv("FUNCTIONS_URL", "https://edge.test/fn/")
    monkeypatch.setenv("SIGNED_URL_TTL_SECONDS", "90")

    config = load_client_config()

    assert config.functions_url == "https://edge.test/fn"
    assert config.signed_url_ttl_seconds == 90


def test_server_mime_allow_list(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.delenv("UPLOAD_ALLOWED_MIME_TYPES", raising=False)
    assert load_config().upload_limits.allowed_mime_types == ALLOWED_MIME_TYPES

    monkeypatch.setenv("UPLOAD_ALLOWED_MIME_TYPES", "image/jpeg, image/png")
    assert load_config().upload_limits.allowed_mime_types == ("image/jpeg", "image/png")
