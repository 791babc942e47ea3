import os

import pytest

from patch_runner.lib.instance import SingleInstanceGuard


def test_acquire_and_release(tmp_path):
    guard = SingleInstanceGuard(tmp_path / "runner.guard")
    assert guard.acquire() is True
    assert guard.held
    guard.release()
    assert not guard.held


@pytest.mark.skipif(os.name == "nt", reason="flock semantics")
def test_second_guard_is_refused(tmp_path):
    first = SingleInstanceGuard(tmp_path / "runner.guard")
    second = SingleInstanceGuard(tmp_path / "runner.guard")
    assert first.acquire() is True
    try:
        assert second.acquire() is False
    finally:
        first.release()
    assert second.acquire() is True
    second.release()


def test_context_manager(tmp_path):
    with SingleInstanceGuard(tmp_path / "runner.guard") as guard:
        assert guard.held
    assert not guard.held
