"""Abstract base class for task trackers."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from haitask.errors import BackendError, HttpError, NetworkError
from haitask.models import TaskPayload, TaskResult
from haitask.settings import Credentials, HaitaskConfig

logger = logging.getLogger(__name__)


class TaskBackend(ABC):
    target: str
    service: str

    def __init__(self, config: HaitaskConfig, credentials: Credentials) -> None:
        self._config = config
        self._credentials = credentials

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send one request; map transport failures and non-2xx to haitask errors."""
        kwargs.setdefault("timeout", 30)
        logger.debug("%s %s %s", self.service, method, url.split("?", 1)[0])
        try:
            response = httpx.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(f"{self.service} request failed: {exc}") from exc
        if response.is_error:
            raise HttpError(response.status_code, response.text, self.service, self.target)
        return response

    def _json(self, response: httpx.Response, expected: type = dict) -> Any:
        """Decode a JSON body of the expected type; anything else is a BackendError."""
        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(f"{self.service} returned a non-JSON response: {response.text[:200]}") from exc
        if not isinstance(data, expected):
            kind = type(data).__name__
            raise BackendError(f"{self.service} returned unexpected JSON: expected {expected.__name__}, got {kind}.")
        return data

    @abstractmethod
    def create_task(self, payload: TaskPayload) -> TaskResult: ...

    @abstractmethod
    def add_comment(self, message: str, key: str) -> TaskResult: ...
