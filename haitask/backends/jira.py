"""Jira Cloud REST API v3 backend: create, assign, transition, comment."""

import logging
import re
import time
from collections.abc import Callable

from haitask.backends.base import TaskBackend
from haitask.errors import BackendError, ConfigError, HaitaskError, HttpError, PartialTaskError
from haitask.models import TaskPayload, TaskResult
from haitask.retry import with_retry
from haitask.settings import Credentials, HaitaskConfig, JiraConfig

logger = logging.getLogger(__name__)

# Fields the create call can live without when the instance rejects them.
_DROPPABLE_FIELDS = ("assignee", "priority")


def to_adf(text: str) -> dict:
    """Wrap plain text in an Atlassian Document Format doc, one paragraph per line."""
    paragraphs = [p for p in re.split(r"\n+", (text or "").strip()) if p]
    content = [{"type": "paragraph", "content": [{"type": "text", "text": p}]} for p in paragraphs]
    return {"type": "doc", "version": 1, "content": content or [{"type": "paragraph", "content": []}]}


def browse_url(base_url: str, key: str) -> str:
    return f"{base_url.rstrip('/')}/browse/{key}"


class JiraBackend(TaskBackend):
    target = "jira"
    service = "Jira"

    def __init__(
        self,
        config: HaitaskConfig,
        credentials: Credentials,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, credentials)
        self._jira = config.jira or JiraConfig()
        self._sleep = sleep

    def _base_url(self) -> str:
        base_url = (self._jira.base_url or self._credentials.get("JIRA_BASE_URL") or "").rstrip("/")
        if not base_url:
            raise ConfigError("Jira base URL missing. Set jira.baseUrl in .haitaskrc or JIRA_BASE_URL in .env.")
        return base_url

    def _auth(self) -> tuple[str, str]:
        return (self._credentials.require("JIRA_EMAIL"), self._credentials.require("JIRA_API_TOKEN"))

    def _resolve_account_id(self, base_url: str, auth: tuple[str, str]) -> str | None:
        """Explicit id first (a compound "number:uuid" id wins), else the token owner."""
        candidates = [
            value
            for value in ((self._jira.assignee_account_id or "").strip(), self._credentials.get("JIRA_ACCOUNT_ID"))
            if value
        ]
        for candidate in candidates:
            if ":" in candidate:
                return candidate
        if candidates:
            return candidates[0]
        if not self._jira.assign_to_self:
            return None
        try:
            me = self._json(self._request("GET", f"{base_url}/rest/api/3/myself", auth=auth))
        except HaitaskError as exc:
            logger.warning("Could not look up the Jira token owner; leaving issue unassigned: %s", exc)
            return None
        return me.get("accountId") or None

    def _create(self, base_url: str, auth: tuple[str, str], fields: dict) -> dict:
        url = f"{base_url}/rest/api/3/issue"
        try:
            return self._json(self._request("POST", url, json={"fields": fields}, auth=auth))
        except HttpError as exc:
            if exc.status != 400:
                raise
            body = exc.body.lower()
            dropped = [name for name in _DROPPABLE_FIELDS if name in fields and name in body]
            if not dropped:
                raise
            logger.warning("Jira rejected %s; retrying create without it", ", ".join(dropped))
            reduced = {name: value for name, value in fields.items() if name not in dropped}
            return self._json(self._request("POST", url, json={"fields": reduced}, auth=auth))

    def _assign(self, base_url: str, auth: tuple[str, str], key: str, account_id: str) -> None:
        """Assign via the assignee endpoint, falling back to an issue field update.

        Compound "number:uuid" ids are also tried as the bare uuid.
        """
        ids = [account_id]
        if ":" in account_id:
            ids.append(account_id.rsplit(":", 1)[-1])

        attempts: list[tuple[str, dict]] = []
        for candidate in ids:
            attempts.append((f"{base_url}/rest/api/3/issue/{key}/assignee", {"accountId": candidate}))
            attempts.append((f"{base_url}/rest/api/3/issue/{key}", {"fields": {"assignee": {"accountId": candidate}}}))
        for i, (url, body) in enumerate(attempts):
            try:
                self._request("PUT", url, json=body, auth=auth)
                return
            except HttpError as exc:
                if exc.status not in (400, 404) or i == len(attempts) - 1:
                    raise

    def _transition(self, base_url: str, auth: tuple[str, str], key: str, status_name: str) -> None:
        url = f"{base_url}/rest/api/3/issue/{key}/transitions"
        transitions = self._json(self._request("GET", url, auth=auth)).get("transitions") or []
        wanted = status_name.strip().lower()
        match = next(
            (
                t
                for t in transitions
                if isinstance(t, dict)
                and t.get("id")
                and str((t.get("to") or {}).get("name") or "").strip().lower() == wanted
            ),
            None,
        )
        if match is None:
            logger.info("No transition to '%s' available for %s; leaving status unchanged", status_name, key)
            return
        self._request("POST", url, json={"transition": {"id": match["id"]}}, auth=auth)

    def create_task(self, payload: TaskPayload) -> TaskResult:
        base_url = self._base_url()
        auth = self._auth()

        fields: dict = {
            "project": {"key": self._jira.project_key},
            "summary": payload.title.strip() or "Untitled",
            "description": to_adf(payload.description),
            "issuetype": {"name": self._jira.issue_type},
            "labels": list(payload.labels),
        }
        if self._jira.set_priority:
            fields["priority"] = {"name": payload.priority}
        account_id = self._resolve_account_id(base_url, auth)
        if account_id:
            fields["assignee"] = {"accountId": account_id}

        data = self._create(base_url, auth, fields)
        key = data.get("key")
        if not key:
            raise BackendError("Jira API response missing issue key.")
        url = browse_url(base_url, key)
        logger.info("Created Jira issue %s", key)

        if account_id:
            # Jira needs a moment to index a new issue before it accepts an assignee.
            self._sleep(self._jira.settle_seconds)
            try:
                with_retry(lambda: self._assign(base_url, auth, key, account_id), sleep=self._sleep)
            except Exception as exc:
                raise PartialTaskError(
                    key,
                    url,
                    f"assign failed. {exc} Check JIRA_ACCOUNT_ID (Jira profile -> Account ID); "
                    'quote values containing a colon in .env: JIRA_ACCOUNT_ID="...".',
                ) from exc

        if self._jira.transition_to:
            try:
                self._transition(base_url, auth, key, self._jira.transition_to)
            except Exception as exc:
                raise PartialTaskError(key, url, f"transition to '{self._jira.transition_to}' failed. {exc}") from exc

        return TaskResult(key=key, url=url)

    def add_comment(self, message: str, key: str) -> TaskResult:
        base_url = self._base_url()
        self._request(
            "POST",
            f"{base_url}/rest/api/3/issue/{key}/comment",
            json={"body": to_adf(message.strip() or "(no message)")},
            auth=self._auth(),
        )
        logger.info("Commented on Jira issue %s", key)
        return TaskResult(key=key, url=browse_url(base_url, key), commented=True)
