import re
import secrets
import time
from pathlib import Path

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_UPLOAD_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class UnsafePath(ValueError):
    pass


def sanitize_filename(name: str | None, fallback: str = "file") -> str:
    """Replace every character outside [a-zA-Z0-9.-] and neutralise dot-only names."""
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base)
    if not cleaned.strip("."):
        return fallback
    # A leading dot would produce a hidden file or a ".." segment.
    return cleaned.lstrip(".") or fallback


def random_suffix() -> str:
    return secrets.token_hex(6)


def generate_filename(
    original_name: str | None,
    timestamp_ms: int | None = None,
    prefix: str = "upload",
) -> str:
    """Collision-resistant name: <prefix>-<epoch ms>-<random>-<sanitized original>."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}-{timestamp_ms}-{random_suffix()}-{sanitize_filename(original_name)}"


def generate_upload_id() -> str:
    return f"{int(time.time() * 1000)}_{secrets.token_hex(5)}"


def is_valid_upload_id(upload_id: str | None) -> bool:
    return bool(upload_id) and bool(_UPLOAD_ID.match(upload_id))


def resolve_under(root: Path, *parts: str) -> Path:
    """Join `parts` onto `root`, refusing any result that escapes `root`."""
    root = Path(root).resolve()
    candidate = root.joinpath(*parts).resolve()
    if candidate == root or root not in candidate.parents:
        raise UnsafePath(f"{'/'.join(parts)!r} escapes {root}")
    return candidate


def public_url(prefix: str, *parts: str) -> str:
    return "/".join([prefix.rstrip("/"), *parts])
