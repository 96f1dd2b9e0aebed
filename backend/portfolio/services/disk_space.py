import shutil
from pathlib import Path
from typing import Callable

from portfolio.core.errors import InsufficientStorage
from portfolio.core.logging import get_logger

log = get_logger(__name__)

SpaceEstimator = Callable[[Path], int | None]


def estimate_free_space(path: Path) -> int | None:
    """Free bytes on the filesystem holding `path`, or None when it cannot be determined."""
    probe = Path(path)
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent
    try:
        return shutil.disk_usage(probe).free
    except (OSError, AttributeError) as e:
        log.warning("disk_space_probe_failed", path=str(path), error=str(e))
        return None


def ensure_capacity(
    path: Path,
    incoming_size: int,
    factor: int = 2,
    estimator: SpaceEstimator = estimate_free_space,
) -> int | None:
    """Require `factor` times the incoming size to be free near `path`.

    Fails open: an unavailable estimate only logs a warning.
    """
    free = estimator(path)
    if free is None:
        log.warning("disk_space_unavailable", path=str(path), incoming_bytes=incoming_size)
        return None

    required = incoming_size * factor
    if free < required:
        log.warning("insufficient_storage", path=str(path), free_bytes=free, required_bytes=required)
        raise InsufficientStorage(free, required)
    return free
