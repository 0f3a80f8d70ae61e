"""Shared test fixtures."""

import pytest

from haitask.models import BATCH_SEPARATOR, CommitData, TaskPayload
from haitask.settings import Credentials, HaitaskConfig

_BLANK_CREDENTIALS = {
    "openai_api_key": "",
    "deepseek_api_key": "",
    "groq_api_key": "",
    "jira_base_url": "",
    "jira_email": "",
    "jira_api_token": "",
    "jira_account_id": "",
    "trello_api_key": "",
    "trello_token": "",
    "trello_member_id": "",
    "linear_api_key": "",
}


def _make_credentials(**values: str) -> Credentials:
    """Credentials independent of the real environment and any .env file."""
    return Credentials(_env_file=None, **{**_BLANK_CREDENTIALS, **values})  # type: ignore[call-arg]


def _make_config(target: str = "jira", **sections: dict) -> HaitaskConfig:
    raw: dict = {
        "target": target,
        "ai": {"provider": "groq"},
        "rules": {},
        "jira": {"baseUrl": "https://acme.atlassian.net", "projectKey": "PROJ", "settleSeconds": 0},
        "trello": {"listId": "a" * 24},
        "linear": {"teamId": "team_1"},
    }
    raw.update(sections)
    return HaitaskConfig.model_validate(raw)


@pytest.fixture
def credentials() -> Credentials:
    return _make_credentials(
        groq_api_key="gsk_test",
        openai_api_key="sk_test",
        deepseek_api_key="ds_test",
        jira_email="dev@acme.io",
        jira_api_token="jira_token",
        trello_api_key="trello_key",
        trello_token="trello_token",
        linear_api_key="lin_api_test",
    )


@pytest.fixture
def commit_data() -> CommitData:
    return CommitData(
        message="feat: add login",
        branch="main",
        repo_name="webapp",
        repo_root="/tmp/webapp",
        commit_hash="3f2c1a9b8d7e6f5a4b3c2d1e0f9a8b7c6d5e4f3a",
        count=1,
    )


@pytest.fixture
def batch_commit_data() -> CommitData:
    return CommitData(
        message=BATCH_SEPARATOR.join(["feat: add login", "fix: handle empty password"]),
        branch="main",
        repo_name="webapp",
        repo_root="/tmp/webapp",
        commit_hash="3f2c1a9b8d7e6f5a4b3c2d1e0f9a8b7c6d5e4f3a",
        count=2,
    )


@pytest.fixture
def payload() -> TaskPayload:
    return TaskPayload(
        title="Add login form",
        description="Users can sign in with email and password.",
        labels=["auth", "frontend"],
        priority="High",
    )


@pytest.fixture
def make_config():
    """Factory: make_config("trello", rules={...}) -> HaitaskConfig."""
    return _make_config


@pytest.fixture
def make_credentials():
    """Factory for hermetic Credentials; unspecified values are blank."""
    return _make_credentials
