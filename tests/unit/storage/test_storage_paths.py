from __future__ import annotations

import pytest

from src.fortune_media.storage.paths import normalize_storage_path, strip_bucket_prefix


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("u1/f1.jpg", "u1/f1.jpg"),
        ("/photos/u1/f1.jpg", "u1/f1.jpg"),
        ("photos/u1/f1.jpg", "u1/f1.jpg"),
        ("photos:u1/f1.jpg", "u1/f1.jpg"),
        ("u1/f1.jpg?token=abc#frag", "u1/f1.jpg"),
        ("https://proj.test/storage/v1/object/photos/u1/f1.jpg", "u1/f1.jpg"),
        ("https://proj.test/storage/v1/object/public/photos/u1/f1.jpg?x=1", "u1/f1.jpg"),
        ("  //u1/nested/f1.webp  ", "u1/nested/f1.webp"),
    ],
)
def test_normalize_storage_path_accepts_legacy_shapes(raw, expected):
    assert normalize_storage_path("photos", raw) == expected


@pytest.mark.parametrize("raw", ["", None, "   ", "u1", "photos/f1.jpg", "u1/folder", "photos:"])
def test_normalize_storage_path_rejects_unusable_input(raw):
    assert normalize_storage_path("photos", raw) == ""


def test_strip_bucket_prefix_only_touches_leading_bucket():
    assert strip_bucket_prefix("photos", "photos/u1/a.jpg") == "u1/a.jpg"
    assert strip_bucket_prefix("photos", "/photos/u1/a.jpg") == "u1/a.jpg"
    assert strip_bucket_prefix("photos", "u1/photos/a.jpg") == "u1/photos/a.jpg"
