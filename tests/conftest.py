"""Shared test fixtures."""

from pathlib import Path

import pytest

from creator_studio.config import Config
from creator_studio.providers import MockLLMProvider, MockMediaProvider, MockTTS, ProviderSet
from creator_studio.studio import (
    ApprovalGate,
    ArtifactStatus,
    GeneratedImage,
    GeneratedVideo,
    ImagePrompt,
    Stage,
    StageStore,
)

SAMPLE_SCRIPT = """SCRIPT: Why cats knock things over

Duration: ~60 seconds

SCENES:

[Scene 1 - 0:00-0:05]
Narration: "Ever wondered why your cat does this?"
Visual: cat staring at a glass on the table edge

[Scene 2 - 0:05-0:10]
Narration: "It is not just chaos."
Visual: slow motion of the glass falling

FULL NARRATION TEXT:
Ever wondered why your cat does this? It is not just chaos."""


@pytest.fixture
def studio_config() -> Config:
    """Config wired to mock providers with no delay between items."""
    config = Config().use_mock_providers()
    config.generation.item_delay_seconds = 0
    return config


@pytest.fixture
def store(tmp_path: Path) -> StageStore:
    return StageStore(tmp_path / "project")


@pytest.fixture
def gate(store: StageStore) -> ApprovalGate:
    return ApprovalGate(store)


@pytest.fixture
def mock_media() -> MockMediaProvider:
    return MockMediaProvider()


@pytest.fixture
def providers(studio_config: Config, mock_media: MockMediaProvider) -> ProviderSet:
    return ProviderSet(
        studio_config,
        llm=MockLLMProvider(prompt_count=studio_config.generation.prompt_count),
        tts=MockTTS(),
        media=mock_media,
    )


@pytest.fixture
def approved_script(store: StageStore) -> StageStore:
    """Store with an approved script."""
    store.set_artifact(Stage.SCRIPT, {"text": SAMPLE_SCRIPT, "messages": []})
    store.set_approved(Stage.SCRIPT, True)
    return store


@pytest.fixture
def approved_prompts(approved_script: StageStore) -> StageStore:
    """Store with an approved script and three approved prompts."""
    prompts = [ImagePrompt(id=f"p{i}", text=f"prompt {i}") for i in range(1, 4)]
    approved_script.set_artifact(Stage.IMAGE_PROMPTS, {"prompts": [p.to_dict() for p in prompts]})
    approved_script.set_approved(Stage.IMAGE_PROMPTS, True)
    return approved_script


@pytest.fixture
def generated_images(approved_prompts: StageStore) -> StageStore:
    """Store with three completed images, img1 and img3 approved, stage approved."""
    images = [
        GeneratedImage(
            id=f"img{i}",
            prompt_id=f"p{i}",
            prompt=f"prompt {i}",
            url=f"https://cdn.example.com/images/{i}.png",
            status=ArtifactStatus.COMPLETED,
        )
        for i in range(1, 4)
    ]
    approved_prompts.set_artifact(Stage.IMAGES, {"items": [img.to_dict() for img in images]})
    approved_prompts.set_approved(Stage.IMAGES, True)
    approved_prompts.update_item(Stage.IMAGES, "img2", approved=False)
    return approved_prompts


@pytest.fixture
def generated_videos(generated_images: StageStore) -> StageStore:
    """Store with completed videos vid1 (approved) and vid3 (not), stage approved."""
    videos = [
        GeneratedVideo(
            id=f"vid{i}",
            image_id=f"img{i}",
            image_url=f"https://cdn.example.com/images/{i}.png",
            motion_prompt="slow zoom in, prompt",
            url=f"https://cdn.example.com/videos/{i}.mp4",
            status=ArtifactStatus.COMPLETED,
        )
        for i in (1, 3)
    ]
    generated_images.set_artifact(Stage.VIDEOS, {"items": [v.to_dict() for v in videos]})
    generated_images.set_approved(Stage.VIDEOS, True)
    generated_images.update_item(Stage.VIDEOS, "vid3", approved=False)
    return generated_images


@pytest.fixture
def sample_script() -> str:
    return SAMPLE_SCRIPT
