import pytest

from portfolio.core.config import MIB
from portfolio.core.errors import TooLarge, UnsupportedType
from portfolio.services.classifier import FileKind, SizeLimits, check_upload, classify

LIMITS = SizeLimits(image=10 * MIB, video=500 * MIB)


@pytest.mark.parametrize("mime", ["image/jpeg", "image/png", "image/svg+xml", "image/avif", "image/x-icon"])
def test_images_classified(mime):
    assert classify(mime) is FileKind.IMAGE


@pytest.mark.parametrize("mime", ["video/mp4", "video/quicktime", "video/x-msvideo", "video/x-matroska"])
def test_videos_classified(mime):
    assert classify(mime) is FileKind.VIDEO


@pytest.mark.parametrize("mime", ["application/pdf", "text/plain", "", None, "imagex/png", "audio/mpeg"])
def test_everything_else_rejected(mime):
    assert classify(mime) is FileKind.REJECTED


def test_pdf_upload_is_unsupported():
    with pytest.raises(UnsupportedType) as exc:
        check_upload("application/pdf", 5 * MIB, LIMITS)
    assert '"application/pdf"' in exc.value.message
    assert exc.value.status_code == 400


def test_oversized_video_names_size_and_limit():
    with pytest.raises(TooLarge) as exc:
        check_upload("video/mp4", 501 * MIB, LIMITS)
    assert "501.0MB" in exc.value.message
    assert "500MB" in exc.value.message


def test_image_ceiling_is_inclusive():
    result = check_upload("image/png", 10 * MIB, LIMITS)
    assert result.kind is FileKind.IMAGE
    assert result.limit == 10 * MIB
    with pytest.raises(TooLarge):
        check_upload("image/png", 10 * MIB + 1, LIMITS)


def test_video_fits_where_image_would_not():
    assert check_upload("video/webm", 200 * MIB, LIMITS).kind is FileKind.VIDEO


def test_classification_is_stable():
    pairs = [("video/mp4", 3 * MIB), ("image/gif", 1024), ("image/webp", 9 * MIB)]
    for mime, size in pairs:
        assert check_upload(mime, size, LIMITS) == check_upload(mime, size, LIMITS)
    assert classify("application/zip") is classify("application/zip")


def test_thumbnail_restricts_to_images():
    with pytest.raises(UnsupportedType):
        check_upload("video/mp4", 1024, LIMITS, allowed_kinds=frozenset({FileKind.IMAGE}))
