"""Bucket-relative path helpers shared by server handlers and the client cache."""

from __future__ import annotations


def strip_bucket_prefix(bucket: str, path: str) -> str:
    """Remove a leading ``bucket/`` or ``/bucket/`` from ``path``."""
    if path.startswith(f"{bucket}/"):
        return path[len(bucket) + 1 :]
    if path.startswith(f"/{bucket}/"):
        return path[len(bucket) + 2 :]
    return path


def normalize_storage_path(bucket: str, raw_path: str | None) -> str:
    """Return a bucket-relative object key, or ``""`` when the input is unusable.

    Accepts legacy shapes: ``photos/<key>``, ``photos:<key>``, full storage URLs
    (``.../object/<bucket>/<key>`` or ``.../object/public/<bucket>/<key>``) and
    keys carrying a query string or fragment. A valid key has at least one
    ``/`` and a file extension on its last segment.
    """
    path = str(raw_path or "").strip()
    if not path:
        return ""

    path = path.lstrip("/")
    for separator in ("?", "#"):
        index = path.find(separator)
        if index != -1:
            path = path[:index]

    for marker in (f"/object/{bucket}/", f"/object/public/{bucket}/"):
        index = path.find(marker)
        if index != -1:
            path = path[index + len(marker) :]
            break

    if path.startswith(f"{bucket}:"):
        path = f"{bucket}/" + path[len(bucket) + 1 :]
    if path.startswith(f"{bucket}/"):
        path = path[len(bucket) + 1 :]

    path = path.lstrip("/")

    filename = path.rsplit("/", 1)[-1]
    if "/" not in path or "." not in filename:
        return ""
    return path


__all__ = ["normalize_storage_path", "strip_bucket_prefix"]
