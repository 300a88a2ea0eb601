"""Generation providers used by the stage runners."""

from .http import ProviderError
from .llm import ChatMessage, LLMProvider, MockLLMProvider, get_llm_provider
from .tts import DEFAULT_VOICES, MockTTS, TTSProvider, Voice, get_tts_provider
from .fal import AspectRatio, MediaProvider, MediaResult, MockMediaProvider, get_media_provider
from .registry import ProviderSet

__all__ = [
    "ProviderError",
    "ChatMessage",
    "LLMProvider",
    "MockLLMProvider",
    "get_llm_provider",
    "DEFAULT_VOICES",
    "MockTTS",
    "TTSProvider",
    "Voice",
    "get_tts_provider",
    "AspectRatio",
    "MediaProvider",
    "MediaResult",
    "MockMediaProvider",
    "get_media_provider",
    "ProviderSet",
]
