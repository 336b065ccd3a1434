"""Tests for the run-level lock shared by the scheduler and manual trigger."""

import os
import stat

import pytest

from discussion_mirror.errors import RunLockedError
from discussion_mirror.run_lock import RunLock


def test_acquire_and_release(tmp_path):
    lock = RunLock(tmp_path / "run.lock")
    lock.acquire()
    assert lock.locked
    assert (tmp_path / "run.lock").read_text() == str(os.getpid())
    lock.release()
    assert not lock.locked


def test_second_holder_refused(tmp_path):
    path = tmp_path / "run.lock"
    with RunLock(path):
        with pytest.raises(RunLockedError):
            RunLock(path).acquire()


def test_reacquire_after_release(tmp_path):
    path = tmp_path / "run.lock"
    with RunLock(path):
        pass
    with RunLock(path) as lock:
        assert lock.locked


def test_creates_parent_directory_with_private_file(tmp_path):
    path = tmp_path / "state" / "run.lock"
    with RunLock(path):
        mode = stat.S_IMODE(path.stat().st_mode)
    assert mode & 0o077 == 0


def test_release_without_acquire_is_noop(tmp_path):
    RunLock(tmp_path / "run.lock").release()
