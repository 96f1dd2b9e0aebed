import pytest

from portfolio.core.config import MIB
from portfolio.core.errors import GIB, InsufficientStorage
from portfolio.services.disk_space import ensure_capacity, estimate_free_space


def test_estimate_reports_free_bytes(tmp_path):
    free = estimate_free_space(tmp_path)
    assert free is None or free > 0


def test_estimate_walks_up_to_existing_parent(tmp_path):
    assert estimate_free_space(tmp_path / "not" / "yet" / "created") == estimate_free_space(tmp_path)


def test_requires_twice_the_file_size(tmp_path):
    assert ensure_capacity(tmp_path, 5 * MIB, estimator=lambda path: 10 * MIB) == 10 * MIB
    with pytest.raises(InsufficientStorage) as exc:
        ensure_capacity(tmp_path, 5 * MIB, estimator=lambda path: 10 * MIB - 1)
    assert exc.value.status_code == 507
    assert exc.value.required == 10 * MIB


def test_message_cites_free_and_required_gigabytes(tmp_path):
    with pytest.raises(InsufficientStorage) as exc:
        ensure_capacity(tmp_path, 2 * GIB, estimator=lambda path: GIB // 2)
    assert "Only 0.5GB free" in exc.value.message
    assert "at least 4.0GB" in exc.value.message


def test_unavailable_estimate_fails_open(tmp_path):
    assert ensure_capacity(tmp_path, 400 * MIB, estimator=lambda path: None) is None
