"""Signed read URL cache with request coalescing and not-found retry.

A freshly finalized object can briefly be invisible to the signing endpoint,
so "not found" answers are retried with a short backoff. Concurrent lookups
for the same key share one fetch. Each cache is an ordinary object; tests and
callers create their own instead of sharing module state.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import structlog

from ..exceptions import AppError, NotFoundTransient, StorageError, TransportError, is_transient_not_found
from ..storage.paths import normalize_storage_path
from .signers import UrlSigner

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 300
RETRY_DELAYS_SECONDS: tuple[float, ...] = (0.3, 0.6)
EXPIRY_SAFETY_MARGIN_SECONDS = 5.0
STALE_IN_FLIGHT_SECONDS = 30.0


@dataclass(slots=True)
class CacheEntry:
    url: str
    expires_at: float


@dataclass(slots=True)
class InFlightRequest:
    started_at: float
    task: asyncio.Future[str | None] | None = field(default=None)


def is_transient(exc: Exception) -> bool:
    """Not-found answers may clear up once a concurrent write lands."""
    if isinstance(exc, NotFoundTransient):
        return True
    if isinstance(exc, StorageError) and exc.is_not_found:
        return True
    if isinstance(exc, TransportError) and exc.response_status == 404:
        return True
    message = exc.message if isinstance(exc, AppError) else str(exc)
    return is_transient_not_found(message)


class SignedUrlCache:
    def __init__(
        self,
        storage_signer: UrlSigner,
        edge_signer: UrlSigner | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        retry_delays: Sequence[float] = RETRY_DELAYS_SECONDS,
        safety_margin_seconds: float = EXPIRY_SAFETY_MARGIN_SECONDS,
        stale_after_seconds: float = STALE_IN_FLIGHT_SECONDS,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._storage_signer = storage_signer
        self._edge_signer = edge_signer
        self._clock = clock
        self._sleep = sleep
        self._retry_delays = tuple(retry_delays)
        self._safety_margin = safety_margin_seconds
        self._stale_after = stale_after_seconds
        self._default_ttl = default_ttl_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, InFlightRequest] = {}

    async def get_signed_url(
        self,
        bucket: str,
        raw_path: str | None,
        ttl_seconds: int | None = None,
        version: str | None = None,
        fortune_id: str | None = None,
    ) -> str | None:
        """Return a usable signed URL, or ``None`` when none could be obtained."""
        if ttl_seconds is None:
            ttl_seconds = self._default_ttl
        path = normalize_storage_path(bucket, raw_path)
        if not path:
            logger.warning("signed_url.invalid_path", bucket=bucket, raw_path=str(raw_path)[:100])
            return None

        base_key = f"{bucket}:{path}"
        key = f"{base_key}:{version}" if version else base_key
        if version:
            self._evict_entries(base_key, keep=key)

        entry = self._entries.get(key)
        if entry is not None and entry.expires_at > self._clock():
            return entry.url

        self._sweep_stale_in_flight()
        flight = self._in_flight.get(key)
        if flight is None:
            flight = InFlightRequest(started_at=self._clock())
            flight.task = asyncio.ensure_future(
                self._fetch(key, flight, bucket, path, ttl_seconds, fortune_id)
            )
            self._in_flight[key] = flight
            flight.task.add_done_callback(lambda _task: self._release(key, flight))
        else:
            logger.debug("signed_url.coalesced", key=key)

        assert flight.task is not None
        # A cancelled caller must not cancel the fetch other callers are awaiting.
        return await asyncio.shield(flight.task)

    def clear_all(self) -> None:
        self._entries.clear()
        self._in_flight.clear()

    def clear_for(self, bucket: str, raw_path: str | None) -> None:
        path = normalize_storage_path(bucket, raw_path)
        if not path:
            return
        base_key = f"{bucket}:{path}"
        self._evict_entries(base_key)
        for key in [key for key in self._in_flight if _matches(key, base_key)]:
            del self._in_flight[key]

    def _signer_for(self, fortune_id: str | None) -> UrlSigner:
        if fortune_id and self._edge_signer is not None:
            return self._edge_signer
        return self._storage_signer

    async def _fetch(
        self,
        key: str,
        flight: InFlightRequest,
        bucket: str,
        path: str,
        ttl_seconds: int,
        fortune_id: str | None,
    ) -> str | None:
        signer = self._signer_for(fortune_id)
        attempts = len(self._retry_delays) + 1
        for attempt in range(attempts):
            try:
                url = await signer.sign(bucket, path, ttl_seconds, fortune_id)
            except AppError as exc:
                transient = is_transient(exc)
                if not transient or attempt == attempts - 1:
                    logger.error(
                        "signed_url.give_up",
                        key=key,
                        attempts=attempt + 1,
                        transient=transient,
                        error=exc.message,
                    )
                    return None
                delay = self._retry_delays[attempt]
                logger.info(
                    "signed_url.retry",
                    key=key,
                    attempt=attempt + 1,
                    backoff_ms=int(delay * 1000),
                    error=exc.message,
                )
                await self._sleep(delay)
                continue

            logger.info("signed_url.fetched", key=key, attempt=attempt + 1, has_url=url is not None)
            if url and self._in_flight.get(key) is flight:
                expires_at = self._clock() + ttl_seconds - self._safety_margin
                self._entries[key] = CacheEntry(url=url, expires_at=expires_at)
            return url
        return None

    def _release(self, key: str, flight: InFlightRequest) -> None:
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]

    def _evict_entries(self, base_key: str, keep: str | None = None) -> None:
        for key in [key for key in self._entries if _matches(key, base_key) and key != keep]:
            del self._entries[key]

    def _sweep_stale_in_flight(self) -> None:
        now = self._clock()
        stale = [
            key
            for key, flight in self._in_flight.items()
            if now - flight.started_at > self._stale_after
        ]
        for key in stale:
            logger.warning("signed_url.in_flight_stale", key=key)
            del self._in_flight[key]


def _matches(key: str, base_key: str) -> bool:
    return key == base_key or key.startswith(f"{base_key}:")


__all__ = ["CacheEntry", "InFlightRequest", "SignedUrlCache", "is_transient"]
