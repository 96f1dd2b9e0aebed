"""Upload orchestration: validate, check capacity, stream to disk, report a public URL."""

import asyncio
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, TypeVar

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException

from portfolio.core.config import Settings
from portfolio.core.errors import (
    MissingFile,
    PortfolioError,
    UploadTimeout,
    WriteFailure,
    WriteFailureReason,
    format_mb,
)
from portfolio.core.logging import bind_upload_context, get_logger, unbind_upload_context
from portfolio.services.classifier import FileKind, SizeLimits, check_upload
from portfolio.services.disk_space import SpaceEstimator, ensure_capacity, estimate_free_space
from portfolio.services.naming import generate_filename, public_url, resolve_under
from portfolio.services.writer import ChunkedDiskWriter, part_path, remove_quietly

log = get_logger(__name__)

T = TypeVar("T")

THUMBNAIL_DIR = "thumbnails"


@dataclass
class StoredUpload:
    url: str
    filename: str
    size: int
    content_type: str
    path: Path

    @property
    def size_mb(self) -> str:
        return format_mb(self.size)


def extract_file(form: FormData, field: str = "file") -> UploadFile:
    value = form.get(field)
    if not isinstance(value, UploadFile):
        raise MissingFile()
    return value


def measure(upload: UploadFile) -> int:
    """Byte size of a parsed multipart file, falling back to seeking its spool."""
    if upload.size is not None:
        return upload.size
    position = upload.file.tell()
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


class UploadOrchestrator:
    def __init__(
        self,
        settings: Settings,
        writer: ChunkedDiskWriter | None = None,
        space_estimator: SpaceEstimator = estimate_free_space,
    ):
        self.settings = settings
        self.writer = writer or ChunkedDiskWriter(settings.WRITE_CHUNK_SIZE)
        self.space_estimator = space_estimator
        self.limits = SizeLimits(image=settings.IMAGE_MAX_BYTES, video=settings.VIDEO_MAX_BYTES)

    @property
    def upload_root(self) -> Path:
        return self.settings.upload_root

    async def run(self, operation: Awaitable[T], timeout: float | None = None) -> T:
        """Apply the wall-clock ceiling and turn unexpected errors into a WriteFailure."""
        seconds = timeout if timeout is not None else self.settings.UPLOAD_TIMEOUT_SECONDS
        bind_upload_context(upload_request_id=uuid.uuid4().hex[:12])
        try:
            return await asyncio.wait_for(operation, seconds)
        except asyncio.TimeoutError:
            log.warning("upload_timed_out", timeout_seconds=seconds)
            raise UploadTimeout(seconds)
        except (PortfolioError, HTTPException):
            raise
        except Exception as e:
            log.exception("upload_failed")
            raise WriteFailure(WriteFailureReason.OTHER, str(e)) from e
        finally:
            unbind_upload_context("upload_request_id")

    def ensure_capacity(self, directory: Path, size: int) -> None:
        ensure_capacity(
            directory,
            size,
            factor=self.settings.DISK_SPACE_FACTOR,
            estimator=self.space_estimator,
        )

    async def save(self, upload: UploadFile) -> StoredUpload:
        """Validate and persist a single uploaded file under the upload root."""
        size = measure(upload)
        classification = check_upload(upload.content_type, size, self.limits)

        self.upload_root.mkdir(parents=True, exist_ok=True)
        self.ensure_capacity(self.upload_root, size)

        filename = generate_filename(upload.filename)
        destination = resolve_under(self.upload_root, filename)
        stored = await self._persist(upload, destination, classification.limit)

        log.info(
            "upload_saved",
            filename=filename,
            size_mb=format_mb(size),
            content_type=upload.content_type,
            kind=classification.kind.value,
        )
        return StoredUpload(
            url=public_url(self.settings.UPLOAD_URL_PREFIX, filename),
            filename=filename,
            size=stored,
            content_type=upload.content_type or "",
            path=destination,
        )

    async def save_thumbnail(self, upload: UploadFile) -> StoredUpload:
        size = measure(upload)
        check_upload(
            upload.content_type,
            size,
            self.limits,
            allowed_kinds=frozenset({FileKind.IMAGE}),
        )

        directory = resolve_under(self.upload_root, THUMBNAIL_DIR)
        directory.mkdir(parents=True, exist_ok=True)
        self.ensure_capacity(directory, size)

        filename = generate_filename(upload.filename, prefix="thumb")
        destination = resolve_under(directory, filename)
        stored = await self._persist(upload, destination, self.limits.image)

        log.info("thumbnail_saved", filename=filename, size_mb=format_mb(size))
        return StoredUpload(
            url=public_url(self.settings.UPLOAD_URL_PREFIX, THUMBNAIL_DIR, filename),
            filename=filename,
            size=stored,
            content_type=upload.content_type or "",
            path=destination,
        )

    async def _persist(self, upload: UploadFile, destination: Path, limit: int) -> int:
        await upload.seek(0)
        try:
            result = await self.writer.write_stream(upload, destination, max_bytes=limit)
        except BaseException:
            remove_quietly(part_path(destination))
            raise
        return result.bytes_written
