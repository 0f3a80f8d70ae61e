"""Error taxonomy shared by every stage of the pipeline."""

from haitask.hints import http_hint


class HaitaskError(Exception):
    """Base exception for user-facing haitask errors."""


class ConfigError(HaitaskError):
    """Missing or invalid configuration or credentials."""


class RepositoryError(HaitaskError):
    """The working directory is not a git repository or git failed."""


class RuleViolation(HaitaskError):
    """A branch or commit-prefix rule from .haitaskrc rejected the commit."""


class AiResponseError(HaitaskError):
    """The model answered, but not with a usable task payload."""


class BackendError(HaitaskError):
    """The tracker answered 2xx but the response cannot be used."""


class NetworkError(HaitaskError):
    """Connection-level failure (DNS, refused, timeout)."""


class HttpError(HaitaskError):
    def __init__(self, status: int, body: str, service: str, target: str | None = None) -> None:
        self.status = status
        self.body = body
        self.service = service
        message = f"{service} API error {status}: {body or '(empty body)'}"
        hint = http_hint(target, status) if target else ""
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class AiHttpError(HttpError):
    """Non-success status from an AI provider."""


class PartialTaskError(HaitaskError):
    """Task was created, but a follow-up step (assign, transition) failed.

    Carries the created key so the operator can find the task. Never retried:
    retrying would create a second task.
    """

    def __init__(self, key: str, url: str | None, reason: str) -> None:
        self.key = key
        self.url = url
        super().__init__(f"Issue {key} created but {reason}")
