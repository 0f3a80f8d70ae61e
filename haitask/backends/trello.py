"""Trello REST API v1 backend (key + token in the query string)."""

import logging
import re

from haitask.backends.base import TaskBackend
from haitask.errors import BackendError, ConfigError, HaitaskError
from haitask.models import TaskPayload, TaskResult
from haitask.settings import TrelloConfig

logger = logging.getLogger(__name__)

BASE_URL = "https://api.trello.com/1"

# List, board, member and label ids are 24-char hex.
TRELLO_ID_RE = re.compile(r"^[a-fA-F0-9]{24}$")


def card_url(key: str) -> str:
    return f"https://trello.com/c/{key}"


class TrelloBackend(TaskBackend):
    target = "trello"
    service = "Trello"

    def _section(self) -> TrelloConfig:
        return self._config.trello or TrelloConfig()

    def _auth_params(self) -> dict[str, str]:
        hint = "Get them at https://trello.com/app-key"
        return {
            "key": self._credentials.require("TRELLO_API_KEY", hint),
            "token": self._credentials.require("TRELLO_TOKEN", hint),
        }

    def _list_id(self) -> str:
        list_id = (self._section().list_id or "").strip()
        if not list_id:
            raise ConfigError("Trello list ID missing. Set trello.listId in .haitaskrc (the list where cards go).")
        if not TRELLO_ID_RE.match(list_id):
            raise ConfigError(f"Invalid trello.listId '{list_id}': expected a 24-character hex id.")
        return list_id

    def _board_labels(self, list_id: str, params: dict[str, str]) -> list[dict]:
        board_id = (self._section().board_id or "").strip()
        if not board_id:
            board = self._request("GET", f"{BASE_URL}/lists/{list_id}", params={**params, "fields": "idBoard"})
            board_id = self._json(board).get("idBoard") or ""
        if not board_id:
            return []
        labels = self._request("GET", f"{BASE_URL}/boards/{board_id}/labels", params=params)
        return self._json(labels, list)

    def resolve_label_ids(self, names: list[str], list_id: str, params: dict[str, str]) -> list[str]:
        """Map label names to the board's label ids.

        Best-effort: any lookup failure yields [] so card creation never
        depends on it.
        """
        wanted = {name.strip().lower() for name in names if name.strip()}
        if not wanted:
            return []
        try:
            labels = self._board_labels(list_id, params)
        except HaitaskError as exc:
            logger.debug("Trello label lookup failed, creating card without AI labels: %s", exc)
            return []
        return [
            label["id"]
            for label in labels
            if isinstance(label, dict) and label.get("id") and (label.get("name") or "").strip().lower() in wanted
        ]

    def create_task(self, payload: TaskPayload) -> TaskResult:
        list_id = self._list_id()
        params = self._auth_params()
        section = self._section()

        description = payload.description.strip()
        # Trello has no priority field; keep it visible at the top of the card.
        desc = f"Priority: {payload.priority}\n\n{description}" if description else f"Priority: {payload.priority}"
        body: dict = {"idList": list_id, "name": payload.title.strip() or "Untitled", "desc": desc}

        member_id = (section.member_id or "").strip() or self._credentials.get("TRELLO_MEMBER_ID")
        if member_id:
            body["idMembers"] = [member_id]

        suggested = self.resolve_label_ids(payload.labels, list_id, params)
        label_ids: list[str] = []
        for label_id in (i.strip() for i in [*section.label_ids, *suggested]):
            if label_id and label_id not in label_ids:
                label_ids.append(label_id)
        if label_ids:
            body["idLabels"] = label_ids

        card = self._json(self._request("POST", f"{BASE_URL}/cards", params=params, json=body))
        key = card.get("shortLink") or card.get("id")
        if not key:
            raise BackendError("Trello API response missing card id.")
        logger.info("Created Trello card %s", key)
        return TaskResult(key=key, url=card.get("shortUrl") or card.get("url") or card_url(key))

    def add_comment(self, message: str, key: str) -> TaskResult:
        params = {**self._auth_params(), "text": message.strip() or "(no message)"}
        self._request("POST", f"{BASE_URL}/cards/{key}/actions/comments", params=params)
        logger.info("Commented on Trello card %s", key)
        return TaskResult(key=key, url=card_url(key), commented=True)
