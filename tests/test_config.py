"""Tests for configuration loading."""

from pathlib import Path

import yaml

from creator_studio.config import Config, load_config


class TestConfig:
    """Tests for the Config model."""

    def test_defaults(self) -> None:
        """Defaults match the studio's stock setup."""
        config = Config()
        assert config.llm.provider == "gemini"
        assert config.llm.temperature == 0.7
        assert config.llm.max_tokens == 4096
        assert config.tts.voice_id == "onwK4e9ZLuTAKqWW03F9"
        assert config.tts.model == "eleven_multilingual_v2"
        assert config.media.image_model == "fal-ai/flux/dev"
        assert config.media.aspect_ratio == "9:16"
        assert config.generation.prompt_count == 12
        assert config.generation.narration_fallback_chars == 500

    def test_from_yaml_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        config = Config.from_yaml(tmp_path / "nope.yaml")
        assert config == Config()

    def test_from_yaml_empty_file_returns_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Config.from_yaml(path).llm.provider == "gemini"

    def test_from_yaml_overrides_sections(self, tmp_path: Path) -> None:
        """Values in the file override defaults; keys in the file are ignored."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.dump(
                {
                    "llm": {"provider": "openrouter", "model": "anthropic/claude-3.5-sonnet"},
                    "generation": {"item_delay_seconds": 0.5},
                    "api_keys": {"fal": "leaked"},
                }
            )
        )

        config = Config.from_yaml(path)

        assert config.llm.provider == "openrouter"
        assert config.llm.model == "anthropic/claude-3.5-sonnet"
        assert config.generation.item_delay_seconds == 0.5
        assert config.generation.prompt_count == 12
        assert config.api_keys.fal != "leaked"

    def test_to_yaml_excludes_api_keys(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("FAL_KEY", "secret")
        path = tmp_path / "out" / "config.yaml"

        Config().to_yaml(path)

        data = yaml.safe_load(path.read_text())
        assert "api_keys" not in data
        assert data["media"]["provider"] == "fal"

    def test_api_keys_read_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.setenv("ELEVENLABS_API_KEY", "e-key")
        monkeypatch.delenv("FAL_KEY", raising=False)

        config = Config()

        assert config.api_keys.gemini == "g-key"
        assert config.api_keys.elevenlabs == "e-key"
        assert config.api_keys.fal is None

    def test_use_mock_providers_returns_copy(self) -> None:
        """The original config keeps its real providers."""
        config = Config()
        mocked = config.use_mock_providers()

        assert (mocked.llm.provider, mocked.tts.provider, mocked.media.provider) == (
            "mock",
            "mock",
            "mock",
        )
        assert config.llm.provider == "gemini"


class TestLoadConfig:
    """Tests for load_config."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.dump({"paths": {"projects_dir": "elsewhere"}}))

        assert load_config(path).paths.projects_dir == "elsewhere"

    def test_finds_config_in_working_directory(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "config.yaml").write_text(yaml.dump({"tts": {"provider": "mock"}}))
        monkeypatch.chdir(tmp_path)

        assert load_config().tts.provider == "mock"
