"""Lazily built provider instances for one studio project."""

from ..config import Config
from .fal import MediaProvider, get_media_provider
from .llm import LLMProvider, get_llm_provider
from .tts import TTSProvider, get_tts_provider


class ProviderSet:
    """Builds each provider on first use.

    Construction is deferred so that a missing API key surfaces as a stage
    error when that stage runs, not when the project is opened.
    """

    def __init__(
        self,
        config: Config,
        llm: LLMProvider | None = None,
        tts: TTSProvider | None = None,
        media: MediaProvider | None = None,
    ):
        self.config = config
        self._llm = llm
        self._tts = tts
        self._media = media

    @property
    def llm(self) -> LLMProvider:
        if self._llm is None:
            self._llm = get_llm_provider(self.config)
        return self._llm

    @property
    def tts(self) -> TTSProvider:
        if self._tts is None:
            self._tts = get_tts_provider(self.config)
        return self._tts

    @property
    def media(self) -> MediaProvider:
        if self._media is None:
            self._media = get_media_provider(self.config)
        return self._media
