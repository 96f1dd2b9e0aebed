import errno
import io
import os

import pytest

from portfolio.core.errors import WriteFailure, WriteFailureReason
from portfolio.services import writer as writer_module
from portfolio.services.writer import (
    ChunkedDiskWriter,
    WriteState,
    part_path,
    reason_for_os_error,
)

CHUNK = 64 * 1024


class AsyncBytes:
    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)


@pytest.mark.parametrize("size", [0, 1, CHUNK - 1, CHUNK, CHUNK + 1, 5 * CHUNK + 7])
async def test_buffer_round_trip(tmp_path, size):
    data = os.urandom(size)
    destination = tmp_path / "out.bin"
    result = await ChunkedDiskWriter(CHUNK).write(data, destination)

    assert destination.read_bytes() == data
    assert result.bytes_written == size
    assert result.chunks_written == ChunkedDiskWriter(CHUNK).expected_chunks(size)
    assert result.state is WriteState.DONE
    assert not part_path(destination).exists()


async def test_state_machine_transitions(tmp_path):
    result = await ChunkedDiskWriter(CHUNK).write(b"x" * (2 * CHUNK + 1), tmp_path / "f.bin")
    assert result.transitions[0] is WriteState.IDLE
    assert result.transitions[-2:] == [WriteState.FINALIZING, WriteState.DONE]
    assert result.transitions.count(WriteState.WRITING) == 3
    assert result.transitions.count(WriteState.DRAINING) == 3


async def test_empty_buffer_skips_writing_states(tmp_path):
    result = await ChunkedDiskWriter(CHUNK).write(b"", tmp_path / "empty.bin")
    assert result.transitions == [WriteState.IDLE, WriteState.FINALIZING, WriteState.DONE]
    assert (tmp_path / "empty.bin").stat().st_size == 0


async def test_stream_round_trip(tmp_path):
    data = os.urandom(3 * CHUNK + 11)
    result = await ChunkedDiskWriter(CHUNK).write_stream(AsyncBytes(data), tmp_path / "s.bin")
    assert (tmp_path / "s.bin").read_bytes() == data
    assert result.chunks_written == 4


async def test_stream_over_limit_fails_and_leaves_part(tmp_path):
    destination = tmp_path / "big.bin"
    with pytest.raises(WriteFailure) as exc:
        await ChunkedDiskWriter(CHUNK).write_stream(
            AsyncBytes(b"y" * (2 * CHUNK)), destination, max_bytes=CHUNK
        )
    assert exc.value.reason is WriteFailureReason.TOO_LARGE
    assert not destination.exists()
    # No rollback: the caller owns cleanup of the partial file.
    assert part_path(destination).exists()


async def test_existing_destination_is_never_overwritten(tmp_path):
    destination = tmp_path / "taken.bin"
    destination.write_bytes(b"original")
    with pytest.raises(WriteFailure) as exc:
        await ChunkedDiskWriter(CHUNK).write(b"new", destination)
    assert exc.value.reason is WriteFailureReason.OTHER
    assert destination.read_bytes() == b"original"


async def test_os_error_mapped_to_reason(tmp_path, monkeypatch):
    def no_space(*args, **kwargs):
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(writer_module.aiofiles, "open", no_space)
    with pytest.raises(WriteFailure) as exc:
        await ChunkedDiskWriter(CHUNK).write(b"data", tmp_path / "x.bin")
    assert exc.value.reason is WriteFailureReason.DISK_FULL
    assert "disk space" in exc.value.message


@pytest.mark.parametrize(
    "error, reason",
    [
        (OSError(errno.ENOSPC, "full"), WriteFailureReason.DISK_FULL),
        (PermissionError(errno.EACCES, "denied"), WriteFailureReason.PERMISSION),
        (OSError(errno.EPERM, "not permitted"), WriteFailureReason.PERMISSION),
        (OSError(errno.EFBIG, "too big"), WriteFailureReason.TOO_LARGE),
        (OSError(errno.EIO, "io"), WriteFailureReason.OTHER),
    ],
)
def test_reason_for_os_error(error, reason):
    assert reason_for_os_error(error) is reason


def test_generic_failure_message_includes_detail():
    failure = WriteFailure(WriteFailureReason.OTHER, "Input/output error")
    assert failure.message == "Upload failed: Input/output error"
    assert failure.status_code == 500


def test_chunk_size_must_be_positive():
    with pytest.raises(ValueError):
        ChunkedDiskWriter(0)
