"""Tests for haitask.ai.prompt: prompt building and strict payload parsing."""

import json

import pytest

from haitask.ai.prompt import build_prompt, parse_task_payload, strip_conventional_prefix
from haitask.errors import AiResponseError
from haitask.models import CommitData


def _raw(**fields: object) -> str:
    data = {"title": "Add login form", "description": "Details.", "labels": ["auth"]}
    data.update(fields)
    return json.dumps(data)


class TestBuildPrompt:
    def test_user_message_carries_commit_context(self, commit_data: CommitData) -> None:
        _, user = build_prompt(commit_data, "jira")
        assert "Repo: webapp" in user
        assert "Branch: main" in user
        assert "feat: add login" in user

    def test_system_requires_json_and_priority(self, commit_data: CommitData) -> None:
        system, _ = build_prompt(commit_data, "jira")
        assert "single JSON object only" in system
        assert "Highest, High, Medium, Low, Lowest" in system
        assert "urgent" in system and "hotfix" in system and "minor" in system

    def test_vocabulary_follows_target(self, commit_data: CommitData) -> None:
        jira_system, _ = build_prompt(commit_data, "jira")
        trello_system, _ = build_prompt(commit_data, "trello")
        assert "Jira issue" in jira_system
        assert "Trello card" in trello_system
        assert "no native priority field" in trello_system
        assert "native priority field" in jira_system and "no native" not in jira_system

    def test_single_commit_has_no_batch_instruction(self, commit_data: CommitData) -> None:
        system, _ = build_prompt(commit_data, "linear")
        assert "summarizes all of the included commits" not in system

    def test_batch_instruction(self, batch_commit_data: CommitData) -> None:
        system, user = build_prompt(batch_commit_data, "jira")
        assert "summarizes all of the included commits" in system
        assert "Commit messages:" in user
        assert "fix: handle empty password" in user


class TestParseTaskPayload:
    def test_valid(self) -> None:
        payload = parse_task_payload(_raw(priority="High"))
        assert payload.title == "Add login form"
        assert payload.description == "Details."
        assert payload.labels == ["auth"]
        assert payload.priority == "High"

    @pytest.mark.parametrize("prefix", ["feat:", "fix: ", "CHORE:", "docs:", "style:", "refactor:", "test:", "build:", "ci:"])
    def test_strips_conventional_prefix(self, prefix: str) -> None:
        payload = parse_task_payload(_raw(title=f"  {prefix} Add login form "))
        assert payload.title == "Add login form"

    def test_prefix_only_title_kept(self) -> None:
        assert parse_task_payload(_raw(title="feat:")).title == "feat:"
        assert strip_conventional_prefix("  fix:  ") == "fix:"

    @pytest.mark.parametrize("priority", [None, "Urgent", 3, "", "p1"])
    def test_unknown_priority_is_medium(self, priority: object) -> None:
        assert parse_task_payload(_raw(priority=priority)).priority == "Medium"

    def test_absent_priority_is_medium(self) -> None:
        assert parse_task_payload(_raw()).priority == "Medium"

    def test_priority_case_insensitive(self) -> None:
        assert parse_task_payload(_raw(priority="lowest")).priority == "Lowest"

    def test_non_string_labels_dropped_in_order(self) -> None:
        payload = parse_task_payload(_raw(labels=["a", 1, None, "b", {"x": 1}, "c"]))
        assert payload.labels == ["a", "b", "c"]

    def test_invalid_json(self) -> None:
        with pytest.raises(AiResponseError, match="not valid JSON"):
            parse_task_payload("Sure! Here is your task: {")

    def test_not_an_object(self) -> None:
        with pytest.raises(AiResponseError, match="JSON object"):
            parse_task_payload("[1, 2]")

    def test_missing_title(self) -> None:
        with pytest.raises(AiResponseError, match="title/description"):
            parse_task_payload(json.dumps({"description": "d", "labels": []}))

    def test_mistyped_description(self) -> None:
        with pytest.raises(AiResponseError, match="title/description"):
            parse_task_payload(_raw(description=42))

    def test_labels_must_be_array(self) -> None:
        with pytest.raises(AiResponseError, match="labels must be an array"):
            parse_task_payload(_raw(labels="auth"))
