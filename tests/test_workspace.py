import shutil

import pytest

from renderer.errors import DeleteError, DuplicateJobError
from renderer.workspace import acquire_job_lock, cleanup_workdir, prepare_workdir


def test_prepare_creates_missing_parents(tmp_path):
    work_dir = tmp_path / "templates" / "U1"

    assert prepare_workdir(work_dir) == work_dir
    assert work_dir.is_dir()


def test_prepare_replaces_leftover_directory(tmp_path):
    work_dir = tmp_path / "templates" / "U1"
    (work_dir / "footage").mkdir(parents=True)
    (work_dir / "result.mov").write_bytes(b"stale render")

    prepare_workdir(work_dir)

    assert work_dir.is_dir()
    assert list(work_dir.iterdir()) == []


def test_second_lock_for_same_job_is_a_duplicate(tmp_path):
    lock_path = tmp_path / "templates" / "U1.lock"

    with acquire_job_lock(lock_path):
        with pytest.raises(DuplicateJobError) as info:
            acquire_job_lock(lock_path)

    assert info.value.path == lock_path


def test_released_lock_can_be_taken_again(tmp_path):
    lock_path = tmp_path / "U1.lock"
    acquire_job_lock(lock_path).release()

    with acquire_job_lock(lock_path):
        assert lock_path.exists()


def test_locks_for_different_jobs_are_independent(tmp_path):
    with acquire_job_lock(tmp_path / "U1.lock"), acquire_job_lock(tmp_path / "U2.lock"):
        pass


def test_cleanup_removes_everything(tmp_path):
    work_dir = tmp_path / "U1"
    (work_dir / "footage" / "nested").mkdir(parents=True)
    (work_dir / "render.aepx").write_text("project")
    (work_dir / "footage" / "nested" / "clip.mov").write_bytes(b"clip")

    cleanup_workdir(work_dir)

    assert not work_dir.exists()


def test_cleanup_of_missing_dir_is_a_no_op(tmp_path):
    cleanup_workdir(tmp_path / "never-created")


def test_cleanup_failure_is_a_delete_error(tmp_path, monkeypatch):
    work_dir = tmp_path / "U1"
    work_dir.mkdir()

    def boom(path, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(shutil, "rmtree", boom)

    with pytest.raises(DeleteError) as info:
        cleanup_workdir(work_dir)

    assert info.value.path == work_dir
