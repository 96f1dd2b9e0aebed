"""Client-driven chunked uploads.

The browser slices a file and posts the pieces one by one. Each piece is parked
as ``chunk_<index>`` in a per-upload temporary directory; the final piece
triggers assembly into ``<upload root>/<upload id>/<file name>``. Chunk files are
deleted as soon as their bytes have been copied into the final file.
"""

import mimetypes
import shutil
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os
from starlette.datastructures import UploadFile

from portfolio.core.errors import InvalidChunk, TooLarge
from portfolio.core.logging import get_logger
from portfolio.services.classifier import check_upload, classify
from portfolio.services.naming import (
    UnsafePath,
    generate_upload_id,
    is_valid_upload_id,
    public_url,
    resolve_under,
    sanitize_filename,
)
from portfolio.services.uploads import StoredUpload, UploadOrchestrator, measure
from portfolio.services.writer import part_path, remove_quietly

log = get_logger(__name__)


@dataclass
class ChunkRequest:
    index: int
    total: int
    file_name: str
    upload_id: str

    @property
    def is_final(self) -> bool:
        return self.index == self.total - 1


@dataclass
class ChunkReceipt:
    request: ChunkRequest
    stored: StoredUpload | None = None

    @property
    def complete(self) -> bool:
        return self.stored is not None


def parse_chunk_fields(
    chunk_index: str | None,
    total_chunks: str | None,
    file_name: str | None,
    upload_id: str | None,
) -> ChunkRequest:
    if chunk_index in (None, "") or total_chunks in (None, "") or not file_name:
        raise InvalidChunk("Missing required fields")
    try:
        index = int(chunk_index)
        total = int(total_chunks)
    except ValueError:
        raise InvalidChunk("chunkIndex and totalChunks must be integers")
    if total < 1 or not 0 <= index < total:
        raise InvalidChunk(f"Chunk index {index} is out of range for {total} chunks")

    if not upload_id:
        if index != 0:
            raise InvalidChunk("uploadId is required for every chunk after the first")
        upload_id = generate_upload_id()
    elif not is_valid_upload_id(upload_id):
        raise InvalidChunk(f'Invalid uploadId: "{upload_id}"')

    return ChunkRequest(index=index, total=total, file_name=file_name, upload_id=upload_id)


def guess_content_type(file_name: str) -> str:
    content_type, _ = mimetypes.guess_type(file_name)
    return content_type or "application/octet-stream"


class ChunkSequence:
    """Reads chunk files back to back, deleting each one once it is exhausted."""

    def __init__(self, paths: list[Path]):
        self._paths = list(paths)
        self._current = None
        self._current_path: Path | None = None

    async def read(self, size: int = -1) -> bytes:
        while True:
            if self._current is None:
                if not self._paths:
                    return b""
                self._current_path = self._paths.pop(0)
                self._current = await aiofiles.open(self._current_path, "rb")
            data = await self._current.read(size)
            if data:
                return data
            await self._current.close()
            await aiofiles.os.remove(self._current_path)
            self._current = None

    async def aclose(self) -> None:
        if self._current is not None:
            await self._current.close()
            self._current = None


class ChunkAssembler:
    def __init__(self, orchestrator: UploadOrchestrator):
        self.orchestrator = orchestrator
        self.settings = orchestrator.settings

    @property
    def chunk_root(self) -> Path:
        return self.settings.chunk_root

    def chunk_dir(self, upload_id: str) -> Path:
        return resolve_under(self.chunk_root, upload_id)

    def chunk_path(self, upload_id: str, index: int) -> Path:
        return resolve_under(self.chunk_root, upload_id, f"chunk_{index}")

    async def receive(self, chunk: UploadFile, request: ChunkRequest) -> ChunkReceipt:
        content_type = guess_content_type(request.file_name)
        size = measure(chunk)
        check_upload(content_type, size, self.orchestrator.limits)

        directory = self.chunk_dir(request.upload_id)
        directory.mkdir(parents=True, exist_ok=True)
        self.orchestrator.ensure_capacity(directory, size)

        destination = self.chunk_path(request.upload_id, request.index)
        # A retried chunk replaces the earlier attempt.
        remove_quietly(destination)
        remove_quietly(part_path(destination))
        await chunk.seek(0)
        try:
            await self.orchestrator.writer.write_stream(chunk, destination)
        except BaseException:
            remove_quietly(part_path(destination))
            raise

        log.info(
            "chunk_received",
            upload_id=request.upload_id,
            chunk_index=request.index,
            total_chunks=request.total,
            size=size,
        )
        if not request.is_final:
            return ChunkReceipt(request=request)
        return ChunkReceipt(request=request, stored=await self.assemble(request, content_type))

    async def assemble(self, request: ChunkRequest, content_type: str) -> StoredUpload:
        paths = [self.chunk_path(request.upload_id, i) for i in range(request.total)]
        missing = [i for i, path in enumerate(paths) if not path.is_file()]
        if missing:
            raise InvalidChunk(
                f"Missing chunk {missing[0]} of {request.total} for upload {request.upload_id}"
            )

        total_size = sum(path.stat().st_size for path in paths)
        try:
            check_upload(content_type, total_size, self.orchestrator.limits)
        except TooLarge:
            self.discard(request.upload_id)
            raise

        upload_root = self.orchestrator.upload_root
        file_name = sanitize_filename(request.file_name)
        try:
            target_dir = resolve_under(upload_root, request.upload_id)
            destination = resolve_under(target_dir, file_name)
        except UnsafePath:
            raise InvalidChunk(f'Invalid fileName: "{request.file_name}"')
        target_dir.mkdir(parents=True, exist_ok=True)
        self.orchestrator.ensure_capacity(target_dir, total_size)

        sequence = ChunkSequence(paths)
        try:
            result = await self.orchestrator.writer.write_stream(sequence, destination)
        except BaseException:
            remove_quietly(part_path(destination))
            raise
        finally:
            await sequence.aclose()
        self.discard(request.upload_id)

        log.info(
            "chunked_upload_complete",
            upload_id=request.upload_id,
            file_name=file_name,
            size=result.bytes_written,
            kind=classify(content_type).value,
        )
        return StoredUpload(
            url=public_url(self.settings.UPLOAD_URL_PREFIX, request.upload_id, file_name),
            filename=file_name,
            size=result.bytes_written,
            content_type=content_type,
            path=destination,
        )

    def discard(self, upload_id: str) -> None:
        shutil.rmtree(self.chunk_dir(upload_id), ignore_errors=True)
