"""Error taxonomy shared by the upload pipeline, the content API and the upload client.

Every server-side error carries the HTTP status it maps to and a message that is
shown to the admin verbatim, so messages name the concrete offending value.
"""

from enum import Enum

from portfolio.core.config import MIB

GIB = 1024 * MIB


def format_mb(size: int) -> str:
    return f"{size / MIB:.1f}"


def format_gb(size: int) -> str:
    return f"{size / GIB:.1f}"


def format_limit(limit: int) -> str:
    """Render a ceiling the way the admin UI states it: 10MB, 500MB."""
    if limit % MIB == 0:
        return f"{limit // MIB}MB"
    return f"{format_mb(limit)}MB"


class PortfolioError(Exception):
    status_code: int = 500
    message: str = "Request failed. Please try again."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthorized(PortfolioError):
    status_code = 401
    message = "Unauthorized"


class MissingFile(PortfolioError):
    status_code = 400
    message = "No file uploaded. Please select a file."


class UnsupportedType(PortfolioError):
    status_code = 400

    def __init__(self, content_type: str, allowed: str):
        self.content_type = content_type
        super().__init__(f'Unsupported file type: "{content_type}". Allowed: {allowed}.')


class TooLarge(PortfolioError):
    status_code = 400

    def __init__(self, size: int, limit: int, kind_label: str):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large ({format_mb(size)}MB). Maximum for {kind_label} is {format_limit(limit)}."
        )


class InsufficientStorage(PortfolioError):
    status_code = 507

    def __init__(self, free: int, required: int):
        self.free = free
        self.required = required
        super().__init__(
            f"Not enough disk space. Only {format_gb(free)}GB free. "
            f"Need at least {format_gb(required)}GB."
        )


class WriteFailureReason(str, Enum):
    TOO_LARGE = "too_large"
    DISK_FULL = "disk_full"
    PERMISSION = "permission"
    OTHER = "other"


_WRITE_FAILURE_MESSAGES = {
    WriteFailureReason.TOO_LARGE: (
        "File is too large for the server to process. "
        "Try a smaller file or compress the video first."
    ),
    WriteFailureReason.DISK_FULL: "Server ran out of disk space. Please contact the administrator.",
    WriteFailureReason.PERMISSION: (
        "Server does not have permission to save files. Please contact the administrator."
    ),
}


class WriteFailure(PortfolioError):
    status_code = 500

    def __init__(self, reason: WriteFailureReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = _WRITE_FAILURE_MESSAGES.get(reason)
        if message is None:
            message = f"Upload failed: {detail}" if detail else "Upload failed. Please try again."
        super().__init__(message)


class UploadTimeout(PortfolioError):
    status_code = 408

    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(
            f"Upload timed out after {seconds:g} seconds. Try a smaller file."
        )


class InvalidChunk(PortfolioError):
    status_code = 400


class InvalidContent(PortfolioError):
    status_code = 400
    message = "Invalid data format"


class InvalidResponse(PortfolioError):
    """Raised client-side when the server answers with something other than JSON."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        snippet = body[:200]
        super().__init__(f"Server returned an invalid response (HTTP {status_code}): {snippet}")
