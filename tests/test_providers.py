"""Tests for provider clients, with httpx.MockTransport standing in for the APIs."""

import json

import httpx
import pytest

from creator_studio.config import Config, LLMConfig, MediaConfig, TTSConfig
from creator_studio.providers import (
    ChatMessage,
    MockLLMProvider,
    MockMediaProvider,
    MockTTS,
    ProviderError,
    ProviderSet,
    get_llm_provider,
    get_media_provider,
    get_tts_provider,
)
from creator_studio.providers.fal import FalClient
from creator_studio.providers.llm import GeminiProvider, OpenAIProvider, extract_json
from creator_studio.providers.tts import ElevenLabsTTS


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestExtractJson:
    """Tests for JSON extraction from model replies."""

    def test_extracts_embedded_object(self) -> None:
        assert extract_json('Sure!\n```json\n{"prompts": ["a"]}\n```') == {"prompts": ["a"]}

    def test_no_object(self) -> None:
        with pytest.raises(ProviderError, match="no JSON object"):
            extract_json("nothing here")

    def test_broken_object(self) -> None:
        with pytest.raises(ProviderError, match="Invalid AI response"):
            extract_json("{not json}")


class TestGeminiProvider:
    """Tests for the Gemini REST client."""

    @pytest.mark.asyncio
    async def test_chat_sends_history_as_model_turns(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = request.url
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"candidates": [{"content": {"parts": [{"text": "reply"}]}}]}
            )

        provider = GeminiProvider(LLMConfig(), api_key="g-key", client=mock_client(handler))
        history = [ChatMessage("user", "hi"), ChatMessage("assistant", "hello")]

        reply = await provider.chat("write it", history=history, system_prompt="be brief")

        assert reply == "reply"
        assert captured["url"].params["key"] == "g-key"
        assert captured["url"].path.endswith("/gemini-2.0-flash-exp:generateContent")
        contents = captured["body"]["contents"]
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[-1]["parts"][0]["text"] == "be brief\n\nwrite it"
        assert captured["body"]["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 4096}

    @pytest.mark.asyncio
    async def test_error_message_from_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "API key not valid"}})

        provider = GeminiProvider(LLMConfig(), api_key="bad", client=mock_client(handler))

        with pytest.raises(ProviderError, match="API key not valid") as exc_info:
            await provider.chat("hi")
        assert exc_info.value.status_code == 400
        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    async def test_malformed_response(self) -> None:
        provider = GeminiProvider(
            LLMConfig(),
            api_key="k",
            client=mock_client(lambda request: httpx.Response(200, json={"candidates": []})),
        )
        with pytest.raises(ProviderError, match="Invalid Gemini response"):
            await provider.chat("hi")

    def test_requires_key(self) -> None:
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiProvider(LLMConfig(), api_key=None)


class TestElevenLabsTTS:
    """Tests for the ElevenLabs client."""

    @pytest.mark.asyncio
    async def test_synthesize(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(200, content=b"mp3-bytes")

        tts = ElevenLabsTTS(TTSConfig(), api_key="e-key", client=mock_client(handler))

        audio = await tts.synthesize("hello there")

        request = captured["request"]
        assert audio == b"mp3-bytes"
        assert request.url.path == "/v1/text-to-speech/onwK4e9ZLuTAKqWW03F9"
        assert request.headers["xi-api-key"] == "e-key"
        body = json.loads(request.content)
        assert body["model_id"] == "eleven_multilingual_v2"
        assert body["voice_settings"]["stability"] == 0.5

    @pytest.mark.asyncio
    async def test_list_voices(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"voices": [{"voice_id": "v1", "name": "Ana", "category": "cloned"}]}
            )

        tts = ElevenLabsTTS(TTSConfig(), api_key="k", client=mock_client(handler))

        voices = await tts.list_voices()

        assert [v.to_dict() for v in voices] == [
            {"voice_id": "v1", "name": "Ana", "category": "cloned"}
        ]

    @pytest.mark.asyncio
    async def test_detail_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": {"message": "Invalid API key"}})

        tts = ElevenLabsTTS(TTSConfig(), api_key="k", client=mock_client(handler))
        with pytest.raises(ProviderError, match="Invalid API key"):
            await tts.synthesize("x")


class TestFalClient:
    """Tests for the fal.ai client."""

    @pytest.mark.asyncio
    async def test_generate_image(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["request"] = request
            return httpx.Response(200, json={"images": [{"url": "https://fal.media/a.png"}]})

        fal = FalClient(MediaConfig(), api_key="f-key", client=mock_client(handler))

        result = await fal.generate_image("a cat", aspect_ratio="16:9")

        request = captured["request"]
        assert result.url == "https://fal.media/a.png"
        assert result.model == "fal-ai/flux/dev"
        assert str(request.url) == "https://fal.run/fal-ai/flux/dev"
        assert request.headers["Authorization"] == "Key f-key"
        assert json.loads(request.content)["image_size"] == "landscape_16_9"

    @pytest.mark.asyncio
    async def test_generate_image_without_result(self) -> None:
        fal = FalClient(
            MediaConfig(),
            api_key="k",
            client=mock_client(lambda request: httpx.Response(200, json={"images": []})),
        )
        with pytest.raises(ProviderError, match="No image returned"):
            await fal.generate_image("a cat")

    @pytest.mark.asyncio
    async def test_generate_video_polls_queue(self) -> None:
        statuses = iter(["IN_QUEUE", "IN_PROGRESS", "COMPLETED"])
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(f"{request.method} {request.url.path}")
            if request.method == "POST":
                return httpx.Response(200, json={"request_id": "req-1"})
            if request.url.path.endswith("/status"):
                return httpx.Response(200, json={"status": next(statuses)})
            return httpx.Response(200, json={"video": {"url": "https://fal.media/clip.mp4"}})

        fal = FalClient(MediaConfig(), api_key="k", client=mock_client(handler), poll_interval=0)

        result = await fal.generate_video("https://fal.media/a.png", "slow zoom in, a cat")

        assert result.url == "https://fal.media/clip.mp4"
        assert result.request_id == "req-1"
        assert seen[0] == "POST /fal-ai/kling-video/v1.5/pro/image-to-video"
        assert seen[1] == "GET /fal-ai/kling-video/requests/req-1/status"
        assert seen[-1] == "GET /fal-ai/kling-video/requests/req-1"

    @pytest.mark.asyncio
    async def test_generate_video_failed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"request_id": "req-2"})
            return httpx.Response(200, json={"status": "FAILED", "error": "NSFW"})

        fal = FalClient(MediaConfig(), api_key="k", client=mock_client(handler), poll_interval=0)

        with pytest.raises(ProviderError, match="NSFW"):
            await fal.generate_video("https://fal.media/a.png", "pan")

    @pytest.mark.asyncio
    async def test_generate_video_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"request_id": "req-3"})
            return httpx.Response(200, json={"status": "IN_QUEUE"})

        fal = FalClient(
            MediaConfig(),
            api_key="k",
            client=mock_client(handler),
            poll_interval=0.01,
            max_wait_seconds=0.03,
        )

        with pytest.raises(TimeoutError):
            await fal.generate_video("https://fal.media/a.png", "pan")


class TestFactories:
    """Tests for provider selection."""

    def test_mock_providers(self) -> None:
        config = Config().use_mock_providers()
        assert isinstance(get_llm_provider(config), MockLLMProvider)
        assert isinstance(get_tts_provider(config), MockTTS)
        assert isinstance(get_media_provider(config), MockMediaProvider)

    def test_openrouter_uses_openai_client(self) -> None:
        config = Config()
        config.llm.provider = "openrouter"
        config.api_keys.openrouter = "or-key"
        assert isinstance(get_llm_provider(config), OpenAIProvider)

    def test_unknown_provider(self) -> None:
        config = Config()
        config.llm.provider = "nope"
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm_provider(config)

    def test_missing_key(self, monkeypatch) -> None:
        monkeypatch.delenv("FAL_KEY", raising=False)
        with pytest.raises(ValueError, match="FAL_KEY"):
            get_media_provider(Config())

    def test_provider_set_is_lazy(self, monkeypatch) -> None:
        """A missing key only matters once that provider is used."""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        providers = ProviderSet(Config(), tts=MockTTS())

        assert isinstance(providers.tts, MockTTS)
        with pytest.raises(ValueError):
            providers.llm


class TestMockLLM:
    """Tests for the offline LLM."""

    @pytest.mark.asyncio
    async def test_script_and_prompts(self) -> None:
        llm = MockLLMProvider(prompt_count=3)

        script = await llm.chat("a video about tea")
        prompts = await llm.generate_json('Return {"prompts": [...]}')

        assert script.startswith("SCRIPT: a video about tea")
        assert "FULL NARRATION TEXT:" in script
        assert len(prompts["prompts"]) == 3
        assert llm.calls[0] == "a video about tea"
