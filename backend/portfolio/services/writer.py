"""Sequential chunked writes to local disk.

Bytes land in ``<name>.part`` and are renamed to the final name once the file
has been flushed and closed, so a reader never sees a half-written upload under
its public name. The writer performs no rollback: on failure the ``.part`` file
stays behind and the caller decides whether to remove it.
"""

import errno
import math
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os

from portfolio.core.config import MIB
from portfolio.core.errors import WriteFailure, WriteFailureReason
from portfolio.core.logging import get_logger

log = get_logger(__name__)

PART_SUFFIX = ".part"


class WriteState(str, Enum):
    IDLE = "idle"
    WRITING = "writing"
    DRAINING = "draining"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


@dataclass
class WriteResult:
    path: Path
    bytes_written: int = 0
    chunks_written: int = 0
    state: WriteState = WriteState.IDLE
    transitions: list[WriteState] = field(default_factory=list)

    def enter(self, state: WriteState) -> None:
        self.state = state
        if not self.transitions or self.transitions[-1] is not state:
            self.transitions.append(state)


def part_path(destination: Path) -> Path:
    return destination.with_name(destination.name + PART_SUFFIX)


def reason_for_os_error(exc: OSError) -> WriteFailureReason:
    if exc.errno == errno.ENOSPC:
        return WriteFailureReason.DISK_FULL
    if exc.errno in (errno.EACCES, errno.EPERM) or isinstance(exc, PermissionError):
        return WriteFailureReason.PERMISSION
    if exc.errno == errno.EFBIG:
        return WriteFailureReason.TOO_LARGE
    return WriteFailureReason.OTHER


class ChunkedDiskWriter:
    def __init__(self, chunk_size: int = MIB):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def expected_chunks(self, size: int) -> int:
        return math.ceil(size / self.chunk_size)

    async def write(self, data: bytes, destination: Path) -> WriteResult:
        """Write an in-memory buffer in fixed-size slices."""
        view = memoryview(data)

        async def _slices():
            for offset in range(0, len(view), self.chunk_size):
                yield view[offset:offset + self.chunk_size]

        return await self._write_chunks(_slices(), Path(destination))

    async def write_stream(
        self,
        source: AsyncReadable,
        destination: Path,
        max_bytes: int | None = None,
    ) -> WriteResult:
        """Copy an async readable (e.g. an UploadFile) holding at most one chunk in memory."""

        async def _reads():
            total = 0
            while True:
                chunk = await source.read(self.chunk_size)
                if not chunk:
                    return
                total += len(chunk)
                if max_bytes is not None and total > max_bytes:
                    raise WriteFailure(
                        WriteFailureReason.TOO_LARGE,
                        f"stream exceeded {max_bytes} bytes",
                    )
                yield chunk

        return await self._write_chunks(_reads(), Path(destination))

    async def _write_chunks(self, chunks, destination: Path) -> WriteResult:
        result = WriteResult(path=destination)
        result.enter(WriteState.IDLE)
        temp = part_path(destination)
        try:
            async with aiofiles.open(temp, "xb") as out:
                async for chunk in chunks:
                    result.enter(WriteState.WRITING)
                    await out.write(chunk)
                    result.bytes_written += len(chunk)
                    result.chunks_written += 1
                    # Wait for the sink to take the chunk before slicing the next one.
                    result.enter(WriteState.DRAINING)
                    await out.flush()
                result.enter(WriteState.FINALIZING)
                await out.flush()
            if await aiofiles.os.path.exists(destination):
                raise FileExistsError(errno.EEXIST, "Destination already exists", str(destination))
            await aiofiles.os.replace(temp, destination)
        except WriteFailure:
            result.enter(WriteState.FAILED)
            raise
        except OSError as e:
            result.enter(WriteState.FAILED)
            reason = reason_for_os_error(e)
            log.error(
                "chunked_write_failed",
                path=str(destination),
                reason=reason.value,
                bytes_written=result.bytes_written,
                error=str(e),
            )
            raise WriteFailure(reason, e.strerror or str(e)) from e

        result.enter(WriteState.DONE)
        log.debug(
            "chunked_write_complete",
            path=str(destination),
            bytes_written=result.bytes_written,
            chunks=result.chunks_written,
        )
        return result


def remove_quietly(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
