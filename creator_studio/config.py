"""Configuration loading and management."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "gemini"
    model: str = "gemini-2.0-flash-exp"
    max_tokens: int = 4096
    temperature: float = 0.7


class TTSConfig(BaseModel):
    """Text-to-speech configuration."""

    provider: str = "elevenlabs"
    voice_id: str = "onwK4e9ZLuTAKqWW03F9"  # Daniel
    model: str = "eleven_multilingual_v2"


class MediaConfig(BaseModel):
    """Image and video generation configuration."""

    provider: str = "fal"
    image_model: str = "fal-ai/flux/dev"
    aspect_ratio: str = "9:16"
    video_model: str = "fal-ai/kling-video/v1.5/pro/image-to-video"
    video_duration: str = "5"


class GenerationConfig(BaseModel):
    """Knobs shared by the stage runners."""

    prompt_count: int = 12
    item_delay_seconds: float = 1.0
    narration_fallback_chars: int = 500


class PathsConfig(BaseModel):
    """Path configuration."""

    projects_dir: str = "projects"


class APIKeys(BaseModel):
    """Provider credentials, read from the environment by default."""

    gemini: str | None = Field(default_factory=lambda: os.environ.get("GEMINI_API_KEY"))
    openai: str | None = Field(default_factory=lambda: os.environ.get("OPENAI_API_KEY"))
    openrouter: str | None = Field(default_factory=lambda: os.environ.get("OPENROUTER_API_KEY"))
    elevenlabs: str | None = Field(default_factory=lambda: os.environ.get("ELEVENLABS_API_KEY"))
    fal: str | None = Field(default_factory=lambda: os.environ.get("FAL_KEY"))


class Config(BaseModel):
    """Main application configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    tts: TTSConfig = Field(default_factory=TTSConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    api_keys: APIKeys = Field(default_factory=APIKeys)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return cls()

        # Keys never live in the file
        data.pop("api_keys", None)

        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude={"api_keys"})
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)

    def use_mock_providers(self) -> "Config":
        """Return a copy wired to the offline mock providers."""
        config = self.model_copy(deep=True)
        config.llm.provider = "mock"
        config.tts.provider = "mock"
        config.media.provider = "mock"
        return config


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file or use defaults."""
    if config_path is None:
        # Look for config.yaml in current directory or project root
        candidates = [Path("config.yaml"), Path(__file__).parent.parent / "config.yaml"]
        for candidate in candidates:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is not None:
        return Config.from_yaml(config_path)

    return Config()
