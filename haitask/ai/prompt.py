"""Prompt construction and strict parsing of the model's JSON answer."""

import json
import re

from haitask.errors import AiResponseError
from haitask.models import PRIORITIES, CommitData, TaskPayload

CONVENTIONAL_PREFIX_RE = re.compile(r"^(feat|fix|chore|docs|style|refactor|test|build|ci):\s*", re.IGNORECASE)

_TARGET_WORDING = {
    "jira": ("Jira", "issue", True),
    "trello": ("Trello", "card", False),
    "linear": ("Linear", "issue", True),
}


def build_prompt(commit_data: CommitData, target: str = "jira") -> tuple[str, str]:
    """Return (system, user) messages for a chat-completion request."""
    tracker, noun, native_priority = _TARGET_WORDING.get(target, _TARGET_WORDING["jira"])
    priority_note = (
        f"{tracker} has a native priority field, so pick the priority carefully."
        if native_priority
        else f"{tracker} has no native priority field; the priority is shown in the {noun} description."
    )

    lines = [
        f"You turn Git commits into a formal {tracker} {noun}.",
        "Reply with a single JSON object only. No markdown, no code fences, no text before or after it.",
        "Keys:",
        f'- "title": a short, formal {noun} title rewritten in plain language. Do NOT copy the commit '
        "message verbatim and NEVER include prefixes like feat:, fix:, chore:, docs:, style:, refactor:, "
        "test:, build:, ci:.",
        '- "description": a detailed, formal description of the work, expanded from the commit.',
        '- "labels": an array of short lowercase strings, e.g. ["backend", "auth"].',
        f'- "priority": one of {", ".join(PRIORITIES)}. Use High when the commit mentions urgent, '
        "critical, hotfix, security or a production outage; Low for minor, tweak, typo or cosmetic "
        "changes; otherwise Medium.",
        priority_note,
    ]
    if commit_data.is_batch:
        lines.append(
            f"The message contains several commits separated by lines of '---'. Write ONE {noun} "
            "that summarizes all of the included commits together."
        )
    system = "\n".join(lines)

    label = "Commit messages" if commit_data.is_batch else "Commit message"
    user = (
        f"Repo: {commit_data.repo_name}\n"
        f"Branch: {commit_data.branch}\n"
        f"{label}:\n{commit_data.message}\n\n"
        "Generate the JSON object."
    )
    return system, user


def strip_conventional_prefix(title: str) -> str:
    trimmed = title.strip()
    stripped = CONVENTIONAL_PREFIX_RE.sub("", trimmed, count=1).strip()
    return stripped or trimmed


def normalize_priority(value: object) -> str:
    if isinstance(value, str):
        for priority in PRIORITIES:
            if value.strip().lower() == priority.lower():
                return priority
    return "Medium"


def parse_task_payload(raw: str) -> TaskPayload:
    """Validate the model output and normalize it into a TaskPayload.

    Raises AiResponseError for invalid JSON or missing/mistyped title,
    description or labels. Non-string labels are dropped; unknown priorities
    become Medium.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AiResponseError(f"AI response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise AiResponseError("AI response must be a JSON object.")
    if not isinstance(data.get("title"), str) or not isinstance(data.get("description"), str):
        raise AiResponseError("AI response missing or invalid title/description (must be strings).")
    if not isinstance(data.get("labels"), list):
        raise AiResponseError("AI response labels must be an array of strings.")

    return TaskPayload(
        title=strip_conventional_prefix(data["title"]),
        description=data["description"].strip(),
        labels=[label for label in data["labels"] if isinstance(label, str)],
        priority=normalize_priority(data.get("priority")),
    )
