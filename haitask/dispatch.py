"""Route payloads and comments to the configured tracker, with retry."""

import time
from collections.abc import Callable

from haitask.backends.base import TaskBackend
from haitask.backends.jira import JiraBackend
from haitask.backends.linear import LinearBackend
from haitask.backends.trello import TrelloBackend
from haitask.errors import ConfigError
from haitask.models import TaskPayload, TaskResult
from haitask.retry import with_retry
from haitask.settings import VALID_TARGETS, Credentials, HaitaskConfig


def get_backend(
    config: HaitaskConfig,
    credentials: Credentials,
    sleep: Callable[[float], None] = time.sleep,
) -> TaskBackend:
    match config.target:
        case "jira":
            return JiraBackend(config, credentials, sleep=sleep)
        case "trello":
            return TrelloBackend(config, credentials)
        case "linear":
            return LinearBackend(config, credentials)
        case _:
            raise ConfigError(f"Unknown target '{config.target}'. Supported: {', '.join(VALID_TARGETS)}.")


def create_task(
    payload: TaskPayload,
    config: HaitaskConfig,
    credentials: Credentials,
    backend: TaskBackend | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> TaskResult:
    backend = backend or get_backend(config, credentials, sleep=sleep)
    return with_retry(lambda: backend.create_task(payload), sleep=sleep)


def add_comment(
    message: str,
    key: str,
    config: HaitaskConfig,
    credentials: Credentials,
    backend: TaskBackend | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> TaskResult:
    backend = backend or get_backend(config, credentials, sleep=sleep)
    return with_retry(lambda: backend.add_comment(message, key), sleep=sleep)
