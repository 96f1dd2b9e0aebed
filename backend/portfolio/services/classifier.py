"""Decide how an upload is handled from its declared MIME type alone.

Classification never touches the disk, so it runs before anything else in the
pipeline and rejects the common failures (wrong type, oversized file) early.
"""

from dataclasses import dataclass
from enum import Enum

from portfolio.core.errors import TooLarge, UnsupportedType

ALLOWED_IMAGE_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/avif",
})
ALLOWED_VIDEO_TYPES = frozenset({
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/quicktime",
    "video/x-msvideo",
})

ALLOWED_DESCRIPTION = "images (jpg, png, gif, webp) and videos (mp4, webm, mov)"


class FileKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return {"image": "images", "video": "videos"}.get(self.value, "files")


@dataclass(frozen=True)
class SizeLimits:
    image: int
    video: int

    def for_kind(self, kind: FileKind) -> int:
        if kind is FileKind.IMAGE:
            return self.image
        if kind is FileKind.VIDEO:
            return self.video
        return 0


@dataclass(frozen=True)
class Classification:
    kind: FileKind
    content_type: str
    size: int
    limit: int


def classify(content_type: str | None) -> FileKind:
    mime = (content_type or "").strip().lower()
    if mime in ALLOWED_IMAGE_TYPES or mime.startswith("image/"):
        return FileKind.IMAGE
    if mime in ALLOWED_VIDEO_TYPES or mime.startswith("video/"):
        return FileKind.VIDEO
    return FileKind.REJECTED


def check_upload(
    content_type: str | None,
    size: int,
    limits: SizeLimits,
    allowed_kinds: frozenset[FileKind] = frozenset({FileKind.IMAGE, FileKind.VIDEO}),
) -> Classification:
    """Classify and enforce the per-kind ceiling. Raises UnsupportedType or TooLarge."""
    kind = classify(content_type)
    if kind not in allowed_kinds:
        allowed = ALLOWED_DESCRIPTION if FileKind.VIDEO in allowed_kinds else "images only"
        raise UnsupportedType(content_type or "unknown", allowed)

    limit = limits.for_kind(kind)
    if size > limit:
        raise TooLarge(size, limit, kind.label)
    return Classification(kind=kind, content_type=content_type or "", size=size, limit=limit)
