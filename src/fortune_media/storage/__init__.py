"""Object storage access."""

from .paths import normalize_storage_path, strip_bucket_prefix
from .storage_client import SignedUpload, StorageClient, TokenProvider

__all__ = [
    "SignedUpload",
    "StorageClient",
    "TokenProvider",
    "normalize_storage_path",
    "strip_bucket_prefix",
]
