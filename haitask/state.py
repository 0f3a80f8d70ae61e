"""Idempotency store: remember the last created task per commit hash.

State lives in the repository's git directory (`git rev-parse --absolute-git-dir`)
as haitask-state.json, so it is never committed. Linked worktrees get their own.
Best-effort: unreadable state counts as "no record" and write failures are
ignored. Two concurrent runs may both miss the record; that race is accepted.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from haitask.models import IdempotencyRecord

logger = logging.getLogger(__name__)

STATE_FILENAME = "haitask-state.json"


class StateStore(ABC):
    @abstractmethod
    def get(self, commit_hash: str) -> IdempotencyRecord | None: ...

    @abstractmethod
    def put(self, record: IdempotencyRecord) -> None: ...


def state_path(git_dir: str | Path) -> Path:
    return Path(git_dir) / STATE_FILENAME


def read_state(git_dir: str | Path | None) -> IdempotencyRecord | None:
    if not git_dir or not str(git_dir).strip():
        return None
    path = state_path(git_dir)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return IdempotencyRecord(
            commit_hash=data["commitHash"],
            task_key=data["taskKey"],
            task_url=data.get("taskUrl"),
        )
    except FileNotFoundError:
        return None
    except (OSError, ValueError, KeyError, TypeError, ValidationError) as exc:
        logger.debug("Ignoring unreadable state file %s: %s", path, exc)
        return None


def write_state(git_dir: str | Path | None, record: IdempotencyRecord) -> None:
    if not git_dir or not str(git_dir).strip():
        return
    path = state_path(git_dir)
    try:
        path.write_text(json.dumps(record.model_dump(by_alias=True)), encoding="utf-8")
    except OSError as exc:
        # e.g. read-only or missing git directory
        logger.debug("Could not write state file %s: %s", path, exc)


class FileStateStore(StateStore):
    """Single-record store backed by the state file in one git directory."""

    def __init__(self, git_dir: str | Path) -> None:
        self._git_dir = git_dir

    def get(self, commit_hash: str) -> IdempotencyRecord | None:
        record = read_state(self._git_dir)
        if record is None or record.commit_hash != commit_hash:
            return None
        return record

    def put(self, record: IdempotencyRecord) -> None:
        write_state(self._git_dir, record)
