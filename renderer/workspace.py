import logging
import os
import shutil
from pathlib import Path

from .errors import DeleteError, DuplicateJobError

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


class JobLock:
    """
    Exclusive per-user-video lock, held for the lifetime of one job.

    The lock is an OS file lock on ``lock_path``, so it is released when the
    holder closes it or when its process dies for any reason. The lock file
    itself is left on disk; only the lock on it matters.
    """

    def __init__(self, lock_path):
        self.path = Path(lock_path)
        self._fh = None

    def acquire(self) -> "JobLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(self.path, "a+b")
        try:
            if os.name == "nt":
                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
            else:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            fh.close()
            raise DuplicateJobError(self.path) from exc
        self._fh = fh
        logger.debug("Locked %s", self.path)
        return self

    def release(self) -> None:
        if self._fh is None:
            return
        try:
            if os.name == "nt":
                self._fh.seek(0)
                msvcrt.locking(self._fh.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
        finally:
            self._fh.close()
            self._fh = None
        logger.debug("Unlocked %s", self.path)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.release()


def acquire_job_lock(lock_path) -> JobLock:
    """Take the job lock or raise :class:`DuplicateJobError` if another job holds it."""
    return JobLock(lock_path).acquire()


def prepare_workdir(local_work_dir) -> Path:
    """
    Give the job an empty working directory.

    Only called under the job lock, so anything already there was left
    behind by an earlier job (failed cleanup, killed worker) and is removed.
    """
    path = Path(local_work_dir)
    if path.exists():
        logger.warning("Removing leftover working directory %s", path)
        cleanup_workdir(path)
    path.mkdir(parents=True)
    return path


def cleanup_workdir(local_work_dir) -> None:
    """Recursively remove the working directory. Missing is fine."""
    path = Path(local_work_dir)
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise DeleteError(path, exc) from exc
    logger.debug("Removed %s", path)
