"""Text-to-speech providers for the narration stage."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from ..config import Config, TTSConfig
from .http import raise_for_provider


@dataclass
class Voice:
    """A selectable narration voice."""

    voice_id: str
    name: str
    category: str | None = None

    def to_dict(self) -> dict:
        return {"voice_id": self.voice_id, "name": self.name, "category": self.category}


DEFAULT_VOICES = [
    Voice("onwK4e9ZLuTAKqWW03F9", "Daniel", "premade"),
    Voice("pFZP5JQG7iQjIQuC4Bku", "Lily", "premade"),
    Voice("TX3LPaxmHKxFdv7VOQHJ", "Liam", "premade"),
    Voice("XB0fDUnXU5powFXDhCwa", "Charlotte", "premade"),
    Voice("Xb7hH8MSUJpSbSDYk0k2", "Alice", "premade"),
    Voice("iP95p4xoKVk53GoZ742B", "Chris", "premade"),
    Voice("nPczCjzI2devNBz1zQrb", "Brian", "premade"),
    Voice("pqHfZKP75CvOlQylNhV4", "Bill", "premade"),
]


class TTSProvider(ABC):
    """Abstract base class for speech synthesis."""

    def __init__(self, config: TTSConfig):
        self.config = config

    @abstractmethod
    async def synthesize(self, text: str, voice_id: str | None = None) -> bytes:
        """Synthesize speech and return MP3 bytes."""

    @abstractmethod
    async def list_voices(self) -> list[Voice]:
        """List voices available to this account."""


class ElevenLabsTTS(TTSProvider):
    """ElevenLabs text-to-speech over REST."""

    BASE_URL = "https://api.elevenlabs.io/v1"

    def __init__(
        self,
        config: TTSConfig,
        api_key: str | None,
        client: httpx.AsyncClient | None = None,
        stability: float = 0.5,
        similarity_boost: float = 0.75,
    ):
        super().__init__(config)
        if not api_key:
            raise ValueError(
                "ElevenLabs API key required. Set ELEVENLABS_API_KEY environment variable."
            )
        self.api_key = api_key
        self.stability = stability
        self.similarity_boost = similarity_boost
        self._client = client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        client = self._client or httpx.AsyncClient(timeout=120.0)
        headers = {"xi-api-key": self.api_key, **kwargs.pop("headers", {})}
        try:
            response = await client.request(
                method, f"{self.BASE_URL}{path}", headers=headers, **kwargs
            )
        finally:
            if self._client is None:
                await client.aclose()
        raise_for_provider(response, "elevenlabs")
        return response

    async def synthesize(self, text: str, voice_id: str | None = None) -> bytes:
        voice_id = voice_id or self.config.voice_id
        response = await self._request(
            "POST",
            f"/text-to-speech/{voice_id}",
            headers={"Accept": "audio/mpeg"},
            json={
                "text": text,
                "model_id": self.config.model,
                "voice_settings": {
                    "stability": self.stability,
                    "similarity_boost": self.similarity_boost,
                    "style": 0,
                    "use_speaker_boost": True,
                },
            },
        )
        return response.content

    async def list_voices(self) -> list[Voice]:
        response = await self._request("GET", "/voices")
        return [
            Voice(v["voice_id"], v.get("name", v["voice_id"]), v.get("category"))
            for v in response.json().get("voices", [])
        ]


class MockTTS(TTSProvider):
    """Returns a fixed byte payload instead of real audio."""

    AUDIO = b"ID3mock-narration"

    def __init__(self, config: TTSConfig | None = None):
        super().__init__(config or TTSConfig(provider="mock"))
        self.texts: list[str] = []

    async def synthesize(self, text: str, voice_id: str | None = None) -> bytes:
        self.texts.append(text)
        return self.AUDIO

    async def list_voices(self) -> list[Voice]:
        return list(DEFAULT_VOICES)


def get_tts_provider(config: Config) -> TTSProvider:
    """Build the TTS provider named in config.tts.provider."""
    if config.tts.provider == "mock":
        return MockTTS(config.tts)
    if config.tts.provider == "elevenlabs":
        return ElevenLabsTTS(config.tts, config.api_keys.elevenlabs)
    raise ValueError(f"Unknown TTS provider: {config.tts.provider}")
