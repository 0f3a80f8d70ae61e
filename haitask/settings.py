"""Configuration: .haitaskrc models and loader, plus env-backed credentials."""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from haitask.errors import ConfigError

CONFIG_FILENAME = ".haitaskrc"

Target = Literal["jira", "trello", "linear"]
Provider = Literal["openai", "deepseek", "groq"]

VALID_TARGETS: tuple[str, ...] = ("jira", "trello", "linear")
VALID_PROVIDERS: tuple[str, ...] = ("openai", "deepseek", "groq")

AI_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "groq": "GROQ_API_KEY",
}

_SECTION = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore", frozen=True)


class AiConfig(BaseModel):
    model_config = _SECTION

    provider: Provider = "groq"
    model: str | None = None  # provider default when unset

    @field_validator("provider", mode="before")
    @classmethod
    def _lower(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class RulesConfig(BaseModel):
    model_config = _SECTION

    allowed_branches: list[str] = []
    commit_prefixes: list[str] = []

    @field_validator("allowed_branches", "commit_prefixes", mode="before")
    @classmethod
    def _none_is_empty(cls, value: object) -> object:
        return [] if value is None else value


class JiraConfig(BaseModel):
    model_config = _SECTION

    base_url: str | None = None  # falls back to JIRA_BASE_URL
    project_key: str = "PROJ"
    issue_type: str = "Task"
    assignee_account_id: str | None = None
    assign_to_self: bool = True
    transition_to: str | None = None  # status name, e.g. "In Progress"
    set_priority: bool = True
    settle_seconds: float = 2.0


class TrelloConfig(BaseModel):
    model_config = _SECTION

    list_id: str | None = None
    board_id: str | None = None
    member_id: str | None = None
    label_ids: list[str] = []


class LinearConfig(BaseModel):
    model_config = _SECTION

    team_id: str | None = None
    label_ids: list[str] = []


class HaitaskConfig(BaseModel):
    model_config = _SECTION

    target: Target = "jira"
    ai: AiConfig
    rules: RulesConfig
    jira: JiraConfig | None = None
    trello: TrelloConfig | None = None
    linear: LinearConfig | None = None

    @field_validator("target", mode="before")
    @classmethod
    def _lower_target(cls, value: object) -> object:
        if value is None:
            return "jira"
        return value.strip().lower() if isinstance(value, str) else value


class Credentials(BaseSettings):
    """API keys and tracker accounts, read from the environment and .env.

    Field names match the env var names case-insensitively
    (groq_api_key <- GROQ_API_KEY).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = None
    deepseek_api_key: SecretStr | None = None
    groq_api_key: SecretStr | None = None

    jira_base_url: str | None = None
    jira_email: str | None = None
    jira_api_token: SecretStr | None = None
    jira_account_id: str | None = None

    trello_api_key: SecretStr | None = None
    trello_token: SecretStr | None = None
    trello_member_id: str | None = None

    linear_api_key: SecretStr | None = None

    def get(self, env_name: str) -> str | None:
        """Return the stripped value for env_name, or None if unset/blank."""
        value = getattr(self, env_name.lower(), None)
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    def require(self, env_name: str, hint: str = "") -> str:
        value = self.get(env_name)
        if value is None:
            message = f"{env_name} is not set. Add it to .env."
            raise ConfigError(f"{message} {hint}" if hint else message)
        return value


def load_config(path: Path | None = None) -> HaitaskConfig:
    """Load and validate .haitaskrc (cwd by default).

    The file must exist, be a JSON object, carry "ai" and "rules" sections and a
    section for the selected target.
    """
    file_path = (path or Path.cwd() / CONFIG_FILENAME).resolve()
    if not file_path.exists():
        raise ConfigError(f'Config not found: {file_path}. Run "haitask init" first.')

    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {file_path}. {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config: {file_path}. {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config in {file_path}: expected a JSON object.")

    missing = [key for key in ("ai", "rules") if not isinstance(raw.get(key), dict)]
    if missing:
        raise ConfigError(f"Config missing required sections: {', '.join(missing)}. Check {CONFIG_FILENAME}.")

    try:
        config = HaitaskConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {file_path}: {exc}") from exc

    if getattr(config, config.target) is None:
        raise ConfigError(
            f'Config missing section for target "{config.target}". '
            f'Add a "{config.target}" object in {CONFIG_FILENAME}.'
        )
    return config


def missing_credentials(config: HaitaskConfig, credentials: Credentials) -> list[str]:
    """Env names the selected target and AI provider need but are unset."""
    required = [AI_KEY_ENV[config.ai.provider]]
    match config.target:
        case "jira":
            if not (config.jira and config.jira.base_url):
                required.append("JIRA_BASE_URL")
            required += ["JIRA_EMAIL", "JIRA_API_TOKEN"]
        case "trello":
            required += ["TRELLO_API_KEY", "TRELLO_TOKEN"]
        case "linear":
            required.append("LINEAR_API_KEY")
    return [name for name in required if credentials.get(name) is None]


DEFAULT_RC = {
    "target": "jira",
    "jira": {
        "baseUrl": "https://your-domain.atlassian.net",
        "projectKey": "PROJ",
        "issueType": "Task",
    },
    "ai": {"provider": "groq", "model": "llama-3.1-8b-instant"},
    "rules": {
        "allowedBranches": ["main", "develop", "master"],
        "commitPrefixes": ["feat", "fix", "chore"],
    },
}


def write_default_config(directory: Path, force: bool = False) -> bool:
    """Write a template .haitaskrc. Returns False if one exists and force is off."""
    file_path = directory / CONFIG_FILENAME
    if file_path.exists() and not force:
        return False
    file_path.write_text(json.dumps(DEFAULT_RC, indent=2) + "\n", encoding="utf-8")
    return True
