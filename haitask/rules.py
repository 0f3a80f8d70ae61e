"""Offline policy gate: branch allow-list and required commit prefixes."""

from haitask.errors import RuleViolation
from haitask.models import CommitData
from haitask.settings import HaitaskConfig


def has_allowed_prefix(message: str, prefixes: list[str]) -> bool:
    """True if message starts with a prefix followed by ':' or a space."""
    text = message.lstrip()
    return any(text.startswith(f"{prefix}:") or text.startswith(f"{prefix} ") for prefix in prefixes)


def validate_rules(commit_data: CommitData, config: HaitaskConfig) -> None:
    """Raise RuleViolation if the commit breaks a configured rule.

    Empty rule lists disable the corresponding check. For a batch only the
    newest commit is checked against the prefixes.
    """
    allowed = config.rules.allowed_branches
    if allowed and commit_data.branch not in allowed:
        raise RuleViolation(f'Branch "{commit_data.branch}" is not allowed. Allowed: {", ".join(allowed)}.')

    prefixes = config.rules.commit_prefixes
    if prefixes and not has_allowed_prefix(commit_data.messages[0], prefixes):
        raise RuleViolation(
            f'Commit message must start with one of: {", ".join(prefixes)} (followed by ":" or a space).'
        )
