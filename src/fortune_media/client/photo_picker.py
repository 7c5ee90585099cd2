"""Photo selection as an awaitable with an explicit cancellation variant."""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .orchestrator import UploadOrchestrator
from .upload_models import DEFAULT_MIME, PhotoPayload, UploadResult


@dataclass(slots=True)
class PickedPhoto:
    payload: PhotoPayload


@dataclass(slots=True)
class PickCancelled:
    """The user dismissed the picker without choosing a file."""

    reason: str = "Picker closed"


PickOutcome = PickedPhoto | PickCancelled


class PhotoPicker(Protocol):
    async def pick(self) -> PickOutcome: ...


class CallbackPhotoPicker:
    """Adapt a callback-style picker to a single awaited outcome.

    ``launch`` starts the native dialog and is handed two callbacks; whichever
    fires first settles the pick and later calls are ignored.
    """

    def __init__(
        self,
        launch: Callable[[Callable[[PhotoPayload], None], Callable[[], None]], None],
    ) -> None:
        self._launch = launch

    async def pick(self) -> PickOutcome:
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[PickOutcome] = loop.create_future()

        def settle(value: PickOutcome) -> None:
            if not outcome.done():
                outcome.set_result(value)

        self._launch(
            lambda payload: loop.call_soon_threadsafe(settle, PickedPhoto(payload)),
            lambda: loop.call_soon_threadsafe(settle, PickCancelled()),
        )
        return await outcome


class FilePhotoPicker:
    """Pick from a path chooser; a ``None`` path means the user cancelled."""

    def __init__(self, choose_path: Callable[[], Awaitable[str | Path | None]]) -> None:
        self._choose_path = choose_path

    async def pick(self) -> PickOutcome:
        chosen = await self._choose_path()
        if chosen is None:
            return PickCancelled()
        path = Path(chosen)
        data = await asyncio.to_thread(path.read_bytes)
        mime = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME
        return PickedPhoto(PhotoPayload(data=data, mime=mime, filename=path.name))


async def pick_and_upload(
    picker: PhotoPicker, orchestrator: UploadOrchestrator, fortune_id: str
) -> UploadResult:
    """Pick a photo and upload it; cancelling the picker never reaches the orchestrator."""
    outcome = await picker.pick()
    if isinstance(outcome, PickCancelled):
        return UploadResult.cancelled_result(reason=outcome.reason)
    return await orchestrator.upload(fortune_id, outcome.payload)


__all__ = [
    "CallbackPhotoPicker",
    "FilePhotoPicker",
    "PhotoPicker",
    "PickCancelled",
    "PickOutcome",
    "PickedPhoto",
    "pick_and_upload",
]
