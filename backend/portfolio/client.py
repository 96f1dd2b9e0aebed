"""HTTP client for the admin upload endpoints.

Mirrors what the admin UI does in the browser: single-shot uploads for images
and small videos, and a chunked mode that slices a file, posts the slices in
order and retries each one with exponential backoff.
"""

import math
import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import httpx

from portfolio.core.config import MIB
from portfolio.core.errors import GIB, InvalidResponse
from portfolio.core.logging import get_logger
from portfolio.services.classifier import (
    ALLOWED_IMAGE_TYPES,
    ALLOWED_VIDEO_TYPES,
    FileKind,
    classify,
)

log = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 5 * MIB
DEFAULT_MAX_RETRIES = 3
IMAGE_LIMIT = 10 * MIB
VIDEO_LIMIT = 500 * MIB


class UploadFailed(Exception):
    pass


@dataclass
class UploadProgress:
    file_name: str
    bytes_uploaded: int
    total_bytes: int
    percent_complete: int
    upload_speed: float
    time_remaining: float
    status: str  # pending | uploading | complete | error
    error: str | None = None


def validate_file_before_upload(size: int, content_type: str, is_video: bool) -> str | None:
    """Return an error message when the file would be refused, else None."""
    limit = VIDEO_LIMIT if is_video else IMAGE_LIMIT
    if size > limit:
        return f"File too large ({size / GIB:.2f}GB). Maximum is {limit / GIB:.1f}GB."

    allowed = ALLOWED_VIDEO_TYPES if is_video else ALLOWED_IMAGE_TYPES
    expected = FileKind.VIDEO if is_video else FileKind.IMAGE
    if content_type not in allowed and classify(content_type) is not expected:
        return "Unsupported file type. Allowed: " + ("MP4, WebM, MOV" if is_video else "JPG, PNG, GIF, WebP")
    return None


def _progress(
    name: str, done: int, total: int, started: float, status: str, error: str | None = None
) -> UploadProgress:
    elapsed = max(time.monotonic() - started, 1e-6)
    speed = done / elapsed
    remaining = (total - done) / speed if speed else 0.0
    percent = 100 if total == 0 else round(done / total * 100)
    return UploadProgress(name, done, total, percent, speed, remaining, status, error)


class UploadClient:
    def __init__(
        self,
        http: httpx.Client,
        upload_path: str = "/api/upload",
        streaming_path: str = "/api/upload/streaming",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http = http
        self.upload_path = upload_path
        self.streaming_path = streaming_path
        self.sleep = sleep

    @classmethod
    def connect(cls, base_url: str, session_cookie: str, cookie_name: str = "admin_session", timeout: float = 120.0):
        http = httpx.Client(base_url=base_url, cookies={cookie_name: session_cookie}, timeout=timeout)
        return cls(http)

    def _json(self, response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            raise InvalidResponse(response.status_code, response.text)
        if not isinstance(body, dict):
            raise InvalidResponse(response.status_code, response.text)
        return body

    def upload_file(self, path: Path, content_type: str | None = None) -> dict[str, Any]:
        path = Path(path)
        content_type = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        with path.open("rb") as fh:
            response = self.http.post(self.upload_path, files={"file": (path.name, fh, content_type)})
        body = self._json(response)
        if not response.is_success or not body.get("success"):
            raise UploadFailed(body.get("message") or f"HTTP {response.status_code}")
        return body

    def _post_chunk(self, data: bytes, fields: dict[str, str]) -> dict[str, Any]:
        response = self.http.post(
            self.streaming_path,
            data=fields,
            files={"file": ("blob", data, "application/octet-stream")},
        )
        body = self._json(response)
        if not response.is_success or not body.get("success"):
            raise UploadFailed(body.get("message") or f"HTTP {response.status_code}")
        return body

    def upload_file_chunked(
        self,
        path: Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        on_progress: Callable[[UploadProgress], None] | None = None,
    ) -> dict[str, Any]:
        path = Path(path)
        total_bytes = path.stat().st_size
        total_chunks = max(1, math.ceil(total_bytes / chunk_size))
        report = on_progress or (lambda progress: None)
        started = time.monotonic()
        uploaded = 0
        upload_id: str | None = None
        body: dict[str, Any] = {}

        with path.open("rb") as fh:
            for index in range(total_chunks):
                data = fh.read(chunk_size)
                fields = {
                    "chunkIndex": str(index),
                    "totalChunks": str(total_chunks),
                    "fileName": path.name,
                }
                if upload_id:
                    fields["uploadId"] = upload_id

                for attempt in range(max_retries):
                    try:
                        body = self._post_chunk(data, fields)
                        break
                    except (httpx.TransportError, UploadFailed) as e:
                        log.warning(
                            "chunk_upload_retry",
                            chunk_index=index,
                            attempt=attempt + 1,
                            error=str(e),
                        )
                        if attempt == max_retries - 1:
                            message = f"Failed to upload chunk {index + 1}/{total_chunks}"
                            report(_progress(path.name, uploaded, total_bytes, started, "error", message))
                            raise UploadFailed(message) from e
                        self.sleep(2 ** attempt)

                upload_id = body.get("uploadId", upload_id)
                uploaded += len(data)
                report(_progress(path.name, uploaded, total_bytes, started, "uploading"))

        report(_progress(path.name, total_bytes, total_bytes, started, "complete"))
        return body
