"""Short hints appended to tracker HTTP errors so users know what to fix."""

_HINTS: dict[str, dict[int, str]] = {
    "jira": {
        401: "Check JIRA_EMAIL and JIRA_API_TOKEN in .env.",
        403: "Check project permissions and that the user is an assignable user.",
        404: "Check JIRA_BASE_URL and jira.projectKey in .haitaskrc.",
    },
    "trello": {
        401: "Check TRELLO_API_KEY and TRELLO_TOKEN in .env. Get them at https://trello.com/app-key",
        403: "Check board and list access (token may not have write permission).",
        404: "Check trello.listId (list where cards go) or the card ID.",
    },
    "linear": {
        401: "Check LINEAR_API_KEY in .env. Get a key at https://linear.app/settings/api",
        403: "Check team permissions and API key scope.",
        404: "Check linear.teamId in .haitaskrc or the issue identifier.",
    },
}


def http_hint(target: str | None, status: int) -> str:
    """Return a hint for target/status, or "" when there is none."""
    if not target or status < 400:
        return ""
    return _HINTS.get(target, {}).get(status, "")
