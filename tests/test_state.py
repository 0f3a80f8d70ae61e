"""Tests for haitask.state: best-effort idempotency store."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from haitask.models import IdempotencyRecord
from haitask.state import FileStateStore, read_state, state_path, write_state

_HASH = "b" * 40


@pytest.fixture
def git_dir(tmp_path: Path) -> Path:
    path = tmp_path / ".git"
    path.mkdir()
    return path


def _record(commit_hash: str = _HASH) -> IdempotencyRecord:
    return IdempotencyRecord(commit_hash=commit_hash, task_key="PROJ-1", task_url="https://acme/browse/PROJ-1")


class TestReadWrite:
    def test_round_trip(self, git_dir: Path) -> None:
        write_state(git_dir, _record())
        assert read_state(git_dir) == _record()

    def test_file_lives_in_git_dir(self, git_dir: Path) -> None:
        write_state(git_dir, _record())
        data = json.loads(state_path(git_dir).read_text())
        assert state_path(git_dir).parent == git_dir
        assert data == {"commitHash": _HASH, "taskKey": "PROJ-1", "taskUrl": "https://acme/browse/PROJ-1"}

    def test_missing_file_is_no_record(self, git_dir: Path) -> None:
        assert read_state(git_dir) is None

    def test_corrupt_file_is_no_record(self, git_dir: Path) -> None:
        state_path(git_dir).write_text("{oops")
        assert read_state(git_dir) is None

    def test_wrong_shape_is_no_record(self, git_dir: Path) -> None:
        state_path(git_dir).write_text(json.dumps(["not", "an", "object"]))
        assert read_state(git_dir) is None

    def test_blank_root_is_no_record(self) -> None:
        assert read_state("") is None
        write_state("", _record())  # no-op

    def test_write_failure_is_swallowed(self, tmp_path: Path) -> None:
        missing = tmp_path / "no-such-dir"
        write_state(missing, _record())
        assert read_state(missing) is None

    def test_os_error_on_write_is_swallowed(self, git_dir: Path) -> None:
        with patch.object(Path, "write_text", side_effect=PermissionError("read-only")):
            write_state(git_dir, _record())


class TestFileStateStore:
    def test_get_matching_hash(self, git_dir: Path) -> None:
        store = FileStateStore(git_dir)
        store.put(_record())
        assert store.get(_HASH) == _record()

    def test_get_other_hash_is_none(self, git_dir: Path) -> None:
        store = FileStateStore(git_dir)
        store.put(_record())
        assert store.get("c" * 40) is None

    def test_put_replaces_previous_record(self, git_dir: Path) -> None:
        store = FileStateStore(git_dir)
        store.put(_record("c" * 40))
        store.put(_record())
        assert store.get("c" * 40) is None
        assert store.get(_HASH) is not None
