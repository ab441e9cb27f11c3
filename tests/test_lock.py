"""Tests for the provisioning run lock."""
import fcntl
import os

import pytest

from labprep.core.lock import LockError, PrepLock


class TestPrepLock:
    """Test file-based locking mechanism."""

    def test_acquire_and_release(self, tmp_path):
        """Can acquire and release lock."""
        lock_file = tmp_path / "prep.lock"
        lock = PrepLock(lock_file=lock_file)

        assert lock.acquire() is True
        assert lock_file.exists()

        lock.release()
        assert lock_file.read_text() == ""

    def test_concurrent_lock_fails(self, tmp_path):
        """Second run fails immediately while the first holds the lock."""
        lock_file = tmp_path / "prep.lock"

        lock1 = PrepLock(lock_file=lock_file)
        lock1.acquire()

        lock2 = PrepLock(lock_file=lock_file)
        with pytest.raises(LockError) as exc_info:
            lock2.acquire()

        assert "Another provisioning run is in progress" in str(exc_info.value)
        assert f"PID {os.getpid()}" in str(exc_info.value)

        # Failed attempt must not clobber the holder's info
        assert lock_file.read_text().splitlines()[0] == str(os.getpid())

        lock1.release()

    def test_context_manager(self, tmp_path):
        """Lock works as context manager."""
        lock_file = tmp_path / "prep.lock"

        with PrepLock(lock_file=lock_file):
            assert lock_file.exists()

        assert lock_file.read_text() == ""

    def test_released_on_exception(self, tmp_path):
        lock_file = tmp_path / "prep.lock"

        with pytest.raises(RuntimeError):
            with PrepLock(lock_file=lock_file):
                raise RuntimeError("step failed")

        assert lock_file.read_text() == ""
        with PrepLock(lock_file=lock_file):
            pass

    def test_lock_info_written(self, tmp_path):
        """Lock file contains PID and timestamp."""
        lock_file = tmp_path / "prep.lock"
        lock = PrepLock(lock_file=lock_file)

        lock.acquire()

        lines = lock_file.read_text().splitlines()
        assert len(lines) >= 2
        assert str(os.getpid()) in lines[0]
        assert '-' in lines[1]  # YYYY-MM-DD format

        lock.release()

    def test_lock_directory_creation(self, tmp_path):
        """Lock directory is created if missing."""
        lock_dir = tmp_path / "run" / "labprep"
        lock_file = lock_dir / "prep.lock"

        lock = PrepLock(lock_file=lock_file)
        lock.acquire()

        assert lock_dir.exists()
        assert lock_file.exists()

        lock.release()

    def test_release_without_acquire(self, tmp_path):
        PrepLock(lock_file=tmp_path / "prep.lock").release()

    def test_stale_file_is_reused(self, tmp_path):
        """A leftover lock file nobody holds does not block a new run."""
        lock_file = tmp_path / "prep.lock"
        lock_file.write_text("12345\n2025-01-01 00:00:00\n")

        with PrepLock(lock_file=lock_file):
            assert lock_file.read_text().splitlines()[0] == str(os.getpid())

    def test_waiting_opener_and_new_run_share_one_lock(self, tmp_path):
        """A run that opened the file before release still excludes later runs."""
        lock_file = tmp_path / "prep.lock"
        first = PrepLock(lock_file=lock_file)
        first.acquire()

        waiting = open(lock_file, "a+")
        first.release()
        fcntl.flock(waiting.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

        try:
            with pytest.raises(LockError):
                PrepLock(lock_file=lock_file).acquire()
        finally:
            fcntl.flock(waiting.fileno(), fcntl.LOCK_UN)
            waiting.close()
