"""Client-side photo upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from ..config import ClientConfig, load_client_config
from ..storage.storage_client import StorageClient, TokenProvider
from .edge_client import EdgeFunctionClient, EdgeResponse
from .orchestrator import UploadOrchestrator
from .signed_url_cache import SignedUrlCache
from .signers import EdgeUrlSigner, StorageUrlSigner
from .ticket_normalizer import normalize_ticket
from .upload_executor import UploadExecutor
from .upload_models import NormalizedTicket, PhotoPayload, TicketShapeError, UploadMethod, UploadResult


@dataclass(slots=True)
class PhotoClient:
    orchestrator: UploadOrchestrator
    signed_urls: SignedUrlCache


def build_photo_client(
    token_provider: TokenProvider, config: ClientConfig | None = None
) -> PhotoClient:
    """Wire edge, storage, orchestrator and cache; configuration defaults to the environment."""
    config = config or load_client_config()
    edge = EdgeFunctionClient(
        functions_url=config.functions_url,
        anon_key=config.anon_key,
        token_provider=token_provider,
        timeout_seconds=config.request_timeout_seconds,
    )
    storage = StorageClient(
        base_url=config.storage_url,
        api_key=config.anon_key,
        token_provider=token_provider,
        timeout_seconds=config.request_timeout_seconds,
    )
    orchestrator = UploadOrchestrator(
        edge=edge,
        executor=UploadExecutor(storage=storage, timeout_seconds=config.request_timeout_seconds),
        default_bucket=config.photo_bucket,
    )
    cache = SignedUrlCache(
        StorageUrlSigner(storage),
        EdgeUrlSigner(edge),
        default_ttl_seconds=config.signed_url_ttl_seconds,
    )
    return PhotoClient(orchestrator=orchestrator, signed_urls=cache)


__all__ = [
    "EdgeFunctionClient",
    "EdgeResponse",
    "NormalizedTicket",
    "PhotoClient",
    "PhotoPayload",
    "SignedUrlCache",
    "TicketShapeError",
    "UploadMethod",
    "UploadOrchestrator",
    "UploadResult",
    "build_photo_client",
    "normalize_ticket",
]
