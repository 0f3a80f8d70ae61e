"""Detect a reference to an existing task inside a commit message."""

import re

from haitask.settings import HaitaskConfig

# PROJ-123, EM-1. Linear identifiers (ENG-42) share the format.
ISSUE_KEY_RE = re.compile(r"\b([A-Z][A-Z0-9]+-\d+)\b")
TRELLO_URL_RE = re.compile(r"trello\.com/c/([a-zA-Z0-9]+)")
TRELLO_SHORTLINK_RE = re.compile(r"\b([a-zA-Z0-9]{8})\b")


def _looks_like_shortlink(token: str) -> bool:
    # Plain 8-letter words ("password") are not short links.
    return any(c.isdigit() for c in token) and any(c.isalpha() for c in token)


def extract_issue_key(message: str, config: HaitaskConfig) -> str | None:
    """Return the first existing-task reference for config.target, or None."""
    text = (message or "").strip()
    if not text:
        return None

    match config.target:
        case "jira":
            project_key = (config.jira.project_key if config.jira else "").strip().upper()
            for found in ISSUE_KEY_RE.finditer(text):
                key = found.group(1)
                if not project_key or key.upper().startswith(f"{project_key}-"):
                    return key
            return None
        case "trello":
            url_match = TRELLO_URL_RE.search(text)
            if url_match:
                return url_match.group(1)
            for found in TRELLO_SHORTLINK_RE.finditer(text):
                if _looks_like_shortlink(found.group(1)):
                    return found.group(1)
            return None
        case "linear":
            found = ISSUE_KEY_RE.search(text)
            return found.group(1) if found else None
        case _:
            return None
