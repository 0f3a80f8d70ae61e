"""Linear GraphQL API backend."""

import logging

from haitask.backends.base import TaskBackend
from haitask.errors import BackendError, ConfigError, HaitaskError
from haitask.models import TaskPayload, TaskResult

logger = logging.getLogger(__name__)

ENDPOINT = "https://api.linear.app/graphql"

# Linear: 1 Urgent, 2 High, 3 Medium, 4 Low.
PRIORITY_MAP = {"Highest": 1, "High": 2, "Medium": 3, "Low": 4, "Lowest": 4}

_TEAM_LABELS = """
query TeamLabels($teamId: String!) {
  team(id: $teamId) {
    labels { nodes { id name } }
  }
}
"""

_CREATE_ISSUE = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      url
    }
  }
}
"""

_GET_ISSUE = """
query GetIssue($id: String!) {
  issue(id: $id) {
    id
    identifier
    url
  }
}
"""

_CREATE_COMMENT = """
mutation CreateComment($input: CommentCreateInput!) {
  commentCreate(input: $input) {
    success
    comment { id }
  }
}
"""


def issue_url(identifier: str) -> str:
    return f"https://linear.app/issue/{identifier}"


class LinearBackend(TaskBackend):
    target = "linear"
    service = "Linear"

    def _gql(self, query: str, variables: dict | None = None) -> dict:
        api_key = self._credentials.require("LINEAR_API_KEY", "Get a key at https://linear.app/settings/api")
        response = self._request(
            "POST",
            ENDPOINT,
            json={"query": query, "variables": variables or {}},
            headers={"Authorization": api_key, "Content-Type": "application/json"},
        )
        data = self._json(response)
        if data.get("errors"):
            raise BackendError(f"Linear API error: {data['errors'][0].get('message', data['errors'])}")
        return data.get("data") or {}

    def _team_id(self) -> str:
        team_id = ((self._config.linear.team_id if self._config.linear else None) or "").strip()
        if not team_id:
            raise ConfigError("Linear team ID missing. Set linear.teamId in .haitaskrc.")
        return team_id

    def resolve_label_ids(self, names: list[str], team_id: str) -> list[str]:
        """Best-effort name -> id lookup against the team's labels; [] on any failure."""
        wanted = {name.strip().lower() for name in names if name.strip()}
        if not wanted:
            return []
        try:
            data = self._gql(_TEAM_LABELS, {"teamId": team_id})
            nodes = ((data.get("team") or {}).get("labels") or {}).get("nodes") or []
            nodes = [n for n in nodes if isinstance(n, dict)]
        except (HaitaskError, AttributeError, TypeError) as exc:
            logger.debug("Linear label lookup failed, creating issue without AI labels: %s", exc)
            return []
        return [n["id"] for n in nodes if n.get("id") and str(n.get("name") or "").strip().lower() in wanted]

    def create_task(self, payload: TaskPayload) -> TaskResult:
        team_id = self._team_id()
        issue_input: dict = {
            "teamId": team_id,
            "title": payload.title.strip() or "Untitled",
            "priority": PRIORITY_MAP.get(payload.priority, 3),
        }
        if payload.description.strip():
            issue_input["description"] = payload.description.strip()

        extra = self._config.linear.label_ids if self._config.linear else []
        label_ids: list[str] = []
        for label_id in [*extra, *self.resolve_label_ids(payload.labels, team_id)]:
            if label_id and label_id not in label_ids:
                label_ids.append(label_id)
        if label_ids:
            issue_input["labelIds"] = label_ids

        result = self._gql(_CREATE_ISSUE, {"input": issue_input}).get("issueCreate") or {}
        issue = result.get("issue")
        if not result.get("success") or not issue:
            raise BackendError("Linear issueCreate returned success=false")
        key = issue.get("identifier") or issue["id"]
        logger.info("Created Linear issue %s", key)
        return TaskResult(key=key, url=issue.get("url") or issue_url(key))

    def add_comment(self, message: str, key: str) -> TaskResult:
        identifier = key.strip()
        if not identifier:
            raise ConfigError("Linear issue identifier missing.")
        issue = self._gql(_GET_ISSUE, {"id": identifier}).get("issue")
        if not issue or not issue.get("id"):
            raise BackendError(f"Issue '{identifier}' not found in Linear")

        result = self._gql(
            _CREATE_COMMENT,
            {"input": {"issueId": issue["id"], "body": message.strip() or "(no message)"}},
        ).get("commentCreate") or {}
        if not result.get("success"):
            raise BackendError("Linear commentCreate returned success=false")
        logger.info("Commented on Linear issue %s", identifier)
        return TaskResult(key=identifier, url=issue.get("url") or issue_url(identifier), commented=True)
