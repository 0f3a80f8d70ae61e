"""Pipeline: git -> rules -> idempotency -> AI -> tracker -> state.

Never raises: every failure comes back as RunResult(ok=False, error=...).
No console output; the CLI decides how to show the result.
"""

import logging
import time
from collections.abc import Callable

from haitask.ai.providers import AiProvider, get_ai_provider
from haitask.backends.base import TaskBackend
from haitask.dispatch import add_comment, create_task
from haitask.errors import HaitaskError
from haitask.git import get_commits
from haitask.models import CommitData, IdempotencyRecord, RunResult, TaskPayload
from haitask.references import extract_issue_key
from haitask.retry import with_retry
from haitask.rules import validate_rules
from haitask.settings import Credentials, HaitaskConfig
from haitask.state import FileStateStore, StateStore

logger = logging.getLogger(__name__)


def build_comment(payload: TaskPayload, commit_data: CommitData) -> str:
    parts = [payload.title, payload.description, f"Commit {commit_data.short_hash} on {commit_data.branch}"]
    return "\n\n".join(part.strip() for part in parts if part.strip())


def run_pipeline(
    config: HaitaskConfig,
    dry: bool = False,
    commits: int = 1,
    credentials: Credentials | None = None,
    commit_source: Callable[[int], CommitData] = get_commits,
    state_store: StateStore | None = None,
    ai_provider: AiProvider | None = None,
    backend: TaskBackend | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunResult:
    """Run one commit-to-task pass.

    dry stops after the AI step: no tracker call, no state read or write.
    A stored record for the current HEAD short-circuits to skipped=True
    without calling the AI or the tracker. A reference to an existing task in
    the commit message turns the create into a comment.
    """
    try:
        return _run(config, dry, commits, credentials, commit_source, state_store, ai_provider, backend, sleep)
    except HaitaskError as exc:
        logger.debug("Pipeline failed: %s", exc)
        return RunResult(ok=False, error=str(exc))
    except Exception as exc:
        logger.exception("Unexpected pipeline failure")
        return RunResult(ok=False, error=str(exc) or type(exc).__name__)


def _run(
    config: HaitaskConfig,
    dry: bool,
    commits: int,
    credentials: Credentials | None,
    commit_source: Callable[[int], CommitData],
    state_store: StateStore | None,
    ai_provider: AiProvider | None,
    backend: TaskBackend | None,
    sleep: Callable[[float], None],
) -> RunResult:
    credentials = credentials or Credentials()
    ai = ai_provider or get_ai_provider(config, credentials)

    commit_data = commit_source(commits)
    validate_rules(commit_data, config)

    def generate() -> TaskPayload:
        return with_retry(lambda: ai.generate(commit_data, config), sleep=sleep)

    if dry:
        return RunResult(ok=True, dry=True, payload=generate(), commit_data=commit_data)

    store = state_store or FileStateStore(commit_data.git_dir)
    record = store.get(commit_data.commit_hash)
    if record is not None:
        logger.info("Commit %s already has task %s; skipping", commit_data.short_hash, record.task_key)
        return RunResult(ok=True, skipped=True, key=record.task_key, url=record.task_url, commit_data=commit_data)

    payload = generate()

    existing_key = extract_issue_key(commit_data.message, config)
    if existing_key:
        logger.info("Commit references %s; adding a comment instead of creating a task", existing_key)
        result = add_comment(
            build_comment(payload, commit_data), existing_key, config, credentials, backend=backend, sleep=sleep
        )
        return RunResult(
            ok=True, commented=True, key=result.key, url=result.url, payload=payload, commit_data=commit_data
        )

    result = create_task(payload, config, credentials, backend=backend, sleep=sleep)
    store.put(IdempotencyRecord(commit_hash=commit_data.commit_hash, task_key=result.key, task_url=result.url))
    return RunResult(ok=True, key=result.key, url=result.url, payload=payload, commit_data=commit_data)
