"""Shared pydantic models: the contract between pipeline stages."""

from typing import Literal

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Joins commit messages when several commits are batched into one task.
BATCH_SEPARATOR = "\n\n---\n\n"

Priority = Literal["Highest", "High", "Medium", "Low", "Lowest"]
PRIORITIES: tuple[str, ...] = ("Highest", "High", "Medium", "Low", "Lowest")

_FROZEN_CAMEL = ConfigDict(
    frozen=True,
    alias_generator=AliasGenerator(serialization_alias=to_camel),
)


class CommitData(BaseModel):
    model_config = _FROZEN_CAMEL

    message: str  # one message, or several joined by BATCH_SEPARATOR
    branch: str
    repo_name: str
    repo_root: str
    commit_hash: str
    count: int = Field(default=1, ge=1)
    # Absolute metadata dir; differs from repo_root/.git in worktrees and submodules.
    git_dir: str = ""

    @property
    def messages(self) -> list[str]:
        return self.message.split(BATCH_SEPARATOR)

    @property
    def is_batch(self) -> bool:
        return BATCH_SEPARATOR in self.message

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]


class TaskPayload(BaseModel):
    """What the AI produced, normalized and ready for any tracker."""

    model_config = _FROZEN_CAMEL

    title: str
    description: str
    labels: list[str] = []
    priority: Priority = "Medium"


class TaskResult(BaseModel):
    """Returned by every backend."""

    model_config = _FROZEN_CAMEL

    key: str  # PROJ-123, Trello short link, or ENG-123
    url: str | None = None
    commented: bool = False
    skipped: bool = False


class IdempotencyRecord(BaseModel):
    model_config = _FROZEN_CAMEL

    commit_hash: str
    task_key: str
    task_url: str | None = None


class RunResult(BaseModel):
    """Outcome of one pipeline run, stable across targets and providers."""

    model_config = _FROZEN_CAMEL

    ok: bool
    dry: bool | None = None
    skipped: bool | None = None
    commented: bool | None = None
    key: str | None = None
    url: str | None = None
    payload: TaskPayload | None = None
    commit_data: CommitData | None = None
    error: str | None = None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
