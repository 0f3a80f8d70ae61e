"""AI providers behind one generate(commit_data, config) -> TaskPayload contract.

All three speak the OpenAI chat-completions wire format; they differ only in
endpoint, credential and default model.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from haitask.ai.prompt import build_prompt, parse_task_payload
from haitask.errors import AiHttpError, AiResponseError, ConfigError, NetworkError
from haitask.models import CommitData, TaskPayload
from haitask.settings import AI_KEY_ENV, VALID_PROVIDERS, Credentials, HaitaskConfig

logger = logging.getLogger(__name__)


class AiProvider(ABC):
    name: str

    @abstractmethod
    def generate(self, commit_data: CommitData, config: HaitaskConfig) -> TaskPayload: ...


class ChatCompletionProvider(AiProvider):
    api_url: str
    default_model: str
    key_hint: str = ""

    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials

    @property
    def env_key(self) -> str:
        return AI_KEY_ENV[self.name]

    def _post(self, api_key: str, body: dict) -> dict:
        try:
            response = httpx.post(
                self.api_url,
                json=body,
                headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
                timeout=60,
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"{self.label} request failed: {exc}") from exc
        if response.is_error:
            raise AiHttpError(response.status_code, response.text, self.label)
        try:
            return response.json()
        except ValueError as exc:
            raise AiResponseError(f"{self.label} returned a non-JSON body: {exc}") from exc

    @property
    def label(self) -> str:
        return {"openai": "OpenAI", "deepseek": "Deepseek", "groq": "Groq"}[self.name]

    def generate(self, commit_data: CommitData, config: HaitaskConfig) -> TaskPayload:
        api_key = self._credentials.require(self.env_key, self.key_hint)
        model = config.ai.model or self.default_model
        system, user = build_prompt(commit_data, config.target)

        logger.debug("Requesting task payload from %s (%s)", self.label, model)
        data = self._post(
            api_key,
            {
                "model": model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                "response_format": {"type": "json_object"},
            },
        )

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not isinstance(content, str):
            raise AiResponseError(f"{self.label} response missing choices[0].message.content")
        return parse_task_payload(content.strip())


class OpenAIProvider(ChatCompletionProvider):
    name = "openai"
    api_url = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-4o-mini"


class DeepseekProvider(ChatCompletionProvider):
    name = "deepseek"
    api_url = "https://api.deepseek.com/v1/chat/completions"
    default_model = "deepseek-chat"
    key_hint = "Get a key at https://platform.deepseek.com/"


class GroqProvider(ChatCompletionProvider):
    name = "groq"
    api_url = "https://api.groq.com/openai/v1/chat/completions"
    default_model = "llama-3.1-8b-instant"
    key_hint = "Get a free key at https://console.groq.com/keys"


def get_ai_provider(config: HaitaskConfig, credentials: Credentials) -> AiProvider:
    match config.ai.provider:
        case "openai":
            return OpenAIProvider(credentials)
        case "deepseek":
            return DeepseekProvider(credentials)
        case "groq":
            return GroqProvider(credentials)
        case _:
            raise ConfigError(
                f"Unknown AI provider '{config.ai.provider}'. Supported: {', '.join(VALID_PROVIDERS)}"
            )
