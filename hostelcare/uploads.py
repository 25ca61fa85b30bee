"""Storage for images attached to tickets and updates."""

from __future__ import annotations

import asyncio
import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol, Sequence

from hostelcare.errors import UploadError, ValidationError

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic"})


@dataclass(slots=True)
class IncomingFile:
    """An uploaded file that has not been stored yet."""

    filename: str
    stream: BinaryIO
    content_type: str | None = None


class UploadStore(Protocol):
    async def save_all(self, files: Sequence[IncomingFile]) -> list[str]:
        ...

    async def discard(self, paths: Sequence[str]) -> None:
        ...


class LocalUploadStore:
    """Write uploads into a directory and hand back their relative paths.

    Either every file of a batch is stored or none is.
    """

    def __init__(self, directory: str | Path, *, allowed_suffixes: frozenset[str] = IMAGE_SUFFIXES) -> None:
        self._directory = Path(directory)
        self._allowed_suffixes = allowed_suffixes

    @property
    def directory(self) -> Path:
        return self._directory

    async def save_all(self, files: Sequence[IncomingFile]) -> list[str]:
        if not files:
            return []
        for incoming in files:
            suffix = Path(incoming.filename or "").suffix.lower()
            if suffix not in self._allowed_suffixes:
                raise ValidationError(f"Unsupported image type: {incoming.filename!r}", field="images")
        return await asyncio.to_thread(self._write_batch, list(files))

    async def discard(self, paths: Sequence[str]) -> None:
        if paths:
            await asyncio.to_thread(self._remove, list(paths))

    def _write_batch(self, files: list[IncomingFile]) -> list[str]:
        written: list[str] = []
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            for incoming in files:
                suffix = Path(incoming.filename).suffix.lower()
                target = self._directory / f"{uuid.uuid4().hex}{suffix}"
                with target.open("wb") as buffer:
                    shutil.copyfileobj(incoming.stream, buffer)
                written.append(target.as_posix())
        except OSError as exc:
            self._remove(written)
            raise UploadError(f"Could not store uploaded files: {exc}") from exc
        return written

    @staticmethod
    def _remove(paths: list[str]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove stored upload %s", path, exc_info=True)
