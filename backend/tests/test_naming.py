from pathlib import Path

import pytest

from portfolio.services import naming
from portfolio.services.naming import (
    UnsafePath,
    generate_filename,
    is_valid_upload_id,
    resolve_under,
    sanitize_filename,
)


@pytest.mark.parametrize(
    "original, expected",
    [
        ("holiday reel.mp4", "holiday_reel.mp4"),
        ("photo(1).JPG", "photo_1_.JPG"),
        ("../../etc/passwd", "passwd"),
        ("..\\..\\boot.ini", "boot.ini"),
        ("..", "file"),
        ("", "file"),
        (None, "file"),
        (".env", "env"),
        ("résumé.png", "r_sum_.png"),
    ],
)
def test_sanitize_filename(original, expected):
    assert sanitize_filename(original) == expected


def test_sanitized_names_only_use_safe_characters():
    hostile = "a/b\\c:d*e?f\"g<h>i|j k\x00l..m"
    cleaned = sanitize_filename(hostile)
    assert all(c.isalnum() or c in "._-" for c in cleaned)
    assert "/" not in cleaned and "\\" not in cleaned


def test_generated_names_unique_under_identical_timestamps():
    names = {generate_filename("clip.mp4", timestamp_ms=1700000000000) for _ in range(1000)}
    assert len(names) == 1000
    assert all(name.startswith("upload-1700000000000-") for name in names)
    assert all(name.endswith("-clip.mp4") for name in names)


def test_generated_name_uses_random_suffix(monkeypatch):
    monkeypatch.setattr(naming, "random_suffix", lambda: "abc123")
    assert generate_filename("my file.png", timestamp_ms=42) == "upload-42-abc123-my_file.png"


def test_resolve_under_refuses_escape(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    assert resolve_under(root, "a.png") == (root / "a.png").resolve()
    for parts in (("..", "x"), ("../x",), ("/etc/passwd",), (".",)):
        with pytest.raises(UnsafePath):
            resolve_under(root, *parts)


def test_every_generated_name_stays_under_root(tmp_path):
    root = Path(tmp_path)
    for original in ["../../x.png", "/abs/path.mp4", "..", "a/../../b.gif"]:
        target = resolve_under(root, generate_filename(original))
        assert target.parent == root.resolve()


@pytest.mark.parametrize("value, ok", [("1700_ab12", True), ("abc-DEF_1", True), ("../x", False), ("", False), (None, False), ("a" * 65, False)])
def test_upload_id_validation(value, ok):
    assert is_valid_upload_id(value) is ok
