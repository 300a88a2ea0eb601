"""LLM provider abstraction and implementations.

The script agent and the image-prompt stage both talk to an LLM. Gemini is
called over its REST API; OpenAI and OpenRouter go through the openai SDK
(OpenRouter is OpenAI-compatible and only needs a different base URL).
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from ..config import Config, LLMConfig
from .http import ProviderError, raise_for_provider


@dataclass
class ChatMessage:
    """One turn of a conversation."""

    role: Literal["user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(role=data["role"], content=data["content"])


_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> dict[str, Any]:
    """Parse the first {...} block out of a model reply.

    Raises:
        ProviderError: If the reply holds no parseable JSON object.
    """
    match = _JSON_BLOCK.search(text)
    if not match:
        raise ProviderError("llm", "Invalid AI response: no JSON object found")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ProviderError("llm", f"Invalid AI response: {e}") from e


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, config: LLMConfig):
        self.config = config

    @abstractmethod
    async def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        system_prompt: str | None = None,
    ) -> str:
        """Send a message with prior conversation and return the reply text.

        Args:
            message: The new user message
            history: Earlier turns, oldest first
            system_prompt: Optional system prompt

        Returns:
            The generated text response
        """

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Single-turn generation."""
        return await self.chat(prompt, history=None, system_prompt=system_prompt)

    async def generate_json(
        self, prompt: str, system_prompt: str | None = None
    ) -> dict[str, Any]:
        """Single-turn generation parsed as a JSON object."""
        return extract_json(await self.generate(prompt, system_prompt))


class GeminiProvider(LLMProvider):
    """Google Gemini via the generateContent REST endpoint."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(
        self,
        config: LLMConfig,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config)
        if not api_key:
            raise ValueError(
                "Gemini API key required. Set GEMINI_API_KEY environment variable."
            )
        self.api_key = api_key
        self._client = client

    def _build_contents(
        self,
        message: str,
        history: list[ChatMessage] | None,
        system_prompt: str | None,
    ) -> list[dict[str, Any]]:
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in history or []
        ]
        text = f"{system_prompt}\n\n{message}" if system_prompt else message
        contents.append({"role": "user", "parts": [{"text": text}]})
        return contents

    async def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        system_prompt: str | None = None,
    ) -> str:
        url = f"{self.BASE_URL}/{self.config.model}:generateContent"
        payload = {
            "contents": self._build_contents(message, history, system_prompt),
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
            },
        }

        client = self._client or httpx.AsyncClient(timeout=120.0)
        try:
            response = await client.post(url, params={"key": self.api_key}, json=payload)
        finally:
            if self._client is None:
                await client.aclose()

        raise_for_provider(response, "gemini")
        data = response.json()
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise ProviderError("gemini", "Invalid Gemini response")


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions, also used for OpenRouter."""

    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        config: LLMConfig,
        api_key: str | None,
        base_url: str | None = None,
    ):
        super().__init__(config)
        if not api_key:
            raise ValueError(
                "API key required. Set OPENAI_API_KEY or OPENROUTER_API_KEY."
            )
        from openai import AsyncOpenAI

        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        system_prompt: str | None = None,
    ) -> str:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(m.to_dict() for m in history or [])
        messages.append({"role": "user", "content": message})

        response = await self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("openai", "Empty completion returned")
        return content


class MockLLMProvider(LLMProvider):
    """Mock LLM provider that returns canned studio responses for testing."""

    def __init__(self, config: LLMConfig | None = None, prompt_count: int = 12):
        super().__init__(config or LLMConfig(provider="mock"))
        self.prompt_count = prompt_count
        self.calls: list[str] = []

    async def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        system_prompt: str | None = None,
    ) -> str:
        self.calls.append(message)
        text = f"{system_prompt or ''}\n{message}".lower()

        if '"prompts"' in text:
            prompts = [
                f"Cinematic vertical shot of scene {i + 1}, dramatic lighting, 8k"
                for i in range(self.prompt_count)
            ]
            return json.dumps({"prompts": prompts})

        return _mock_script(message)


def _mock_script(brief: str) -> str:
    topic = brief.strip().splitlines()[-1][:60] if brief.strip() else "Untitled"
    return (
        f"SCRIPT: {topic}\n\n"
        "Duration: ~60 seconds\n\n"
        "SCENES:\n\n"
        "[Scene 1 - 0:00-0:05]\n"
        'Narration: "Stop scrolling, this changes everything."\n'
        "Visual: close-up of a phone screen lighting up\n\n"
        "[Scene 2 - 0:05-0:10]\n"
        'Narration: "Here is what nobody tells you."\n'
        "Visual: person walking through a busy street\n\n"
        "FULL NARRATION TEXT:\n"
        "Stop scrolling, this changes everything. Here is what nobody tells you."
    )


def get_llm_provider(config: Config) -> LLMProvider:
    """Build the LLM provider named in config.llm.provider."""
    provider = config.llm.provider
    if provider == "mock":
        return MockLLMProvider(config.llm, prompt_count=config.generation.prompt_count)
    if provider == "gemini":
        return GeminiProvider(config.llm, config.api_keys.gemini)
    if provider == "openai":
        return OpenAIProvider(config.llm, config.api_keys.openai)
    if provider == "openrouter":
        return OpenAIProvider(
            config.llm,
            config.api_keys.openrouter,
            base_url=OpenAIProvider.OPENROUTER_BASE_URL,
        )
    raise ValueError(f"Unknown LLM provider: {provider}")
