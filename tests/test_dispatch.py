"""Tests for haitask.dispatch: target selection and retry wrapping."""

from unittest.mock import MagicMock

import pytest
from pytest_httpx import HTTPXMock

from haitask.backends.jira import JiraBackend
from haitask.backends.linear import ENDPOINT, LinearBackend
from haitask.backends.trello import TrelloBackend
from haitask.dispatch import add_comment, create_task, get_backend
from haitask.errors import ConfigError, HttpError, PartialTaskError
from haitask.models import TaskPayload, TaskResult


class TestGetBackend:
    @pytest.mark.parametrize(
        ("target", "cls"),
        [("jira", JiraBackend), ("trello", TrelloBackend), ("linear", LinearBackend)],
    )
    def test_selects_backend(self, target: str, cls: type, make_config, credentials) -> None:
        assert isinstance(get_backend(make_config(target), credentials), cls)

    def test_unknown_target(self, make_config, credentials) -> None:
        config = make_config().model_copy(update={"target": "asana"})
        with pytest.raises(ConfigError, match="Unknown target 'asana'"):
            get_backend(config, credentials)


class TestRetry:
    def test_create_retries_503_then_succeeds(self, make_config, credentials, payload: TaskPayload) -> None:
        backend = MagicMock()
        backend.create_task.side_effect = [
            HttpError(503, "busy", "Jira"),
            HttpError(503, "busy", "Jira"),
            TaskResult(key="PROJ-1"),
        ]
        delays: list[float] = []
        result = create_task(payload, make_config(), credentials, backend=backend, sleep=delays.append)
        assert result.key == "PROJ-1"
        assert backend.create_task.call_count == 3
        assert delays == [1.0, 2.0]

    def test_create_404_not_retried(self, make_config, credentials, payload) -> None:
        backend = MagicMock()
        backend.create_task.side_effect = HttpError(404, "no project", "Jira", "jira")
        with pytest.raises(HttpError, match="Check JIRA_BASE_URL"):
            create_task(payload, make_config(), credentials, backend=backend, sleep=lambda _: None)
        assert backend.create_task.call_count == 1

    def test_partial_task_not_retried(self, make_config, credentials, payload) -> None:
        backend = MagicMock()
        backend.create_task.side_effect = PartialTaskError("PROJ-3", None, "assign failed.")
        with pytest.raises(PartialTaskError):
            create_task(payload, make_config(), credentials, backend=backend, sleep=lambda _: None)
        assert backend.create_task.call_count == 1

    def test_comment_retried_over_http(self, httpx_mock: HTTPXMock, make_config, credentials) -> None:
        httpx_mock.add_response(url=ENDPOINT, status_code=502, text="bad gateway")
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"issue": {"id": "uuid-1", "url": None}}})
        httpx_mock.add_response(url=ENDPOINT, json={"data": {"commentCreate": {"success": True}}})
        result = add_comment("note", "ENG-1", make_config("linear"), credentials, sleep=lambda _: None)
        assert result.key == "ENG-1"
        assert result.url == "https://linear.app/issue/ENG-1"
        assert result.commented
