"""
Stage runners for the studio pipeline.

Every runner follows the same contract: check the approval gate, mark the
stage as generating, call a provider, and record the result as `completed`
or `error`. Provider failures never escape a runner; they are logged,
reported through the notifier and stored on the stage. Gate violations do
escape, as StageBlockedError.

Image and video runners work through their items one at a time, with a
fixed pause between items.
"""

import asyncio
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable
from uuid import uuid4

import httpx

from ..config import Config
from ..providers import DEFAULT_VOICES, ChatMessage, ProviderError, ProviderSet, Voice
from .approval_gate import ApprovalGate
from .export import ExportAggregator, ExportFormat
from .models import (
    ArtifactStatus,
    GeneratedImage,
    GeneratedVideo,
    ImagePrompt,
    Stage,
    StageState,
)
from .stage_store import StageStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]
ProgressCallback = Callable[[float, str], None]


SCRIPT_SYSTEM_PROMPT = """You are a scriptwriter for short vertical videos (Reels/TikTok/Shorts).

When the user describes a topic, write a COMPLETE script in this format:

SCRIPT: [Video title]

Duration: ~60 seconds

SCENES:

[Scene 1 - 0:00-0:05]
Narration: "narration text"
Visual: description of the scene/image

[Scene 2 - 0:05-0:10]
Narration: "narration text"
Visual: description of the scene/image

(continue up to 12 scenes)

FULL NARRATION TEXT:
[All narration joined together, used to generate the audio]

Write engaging scripts with a strong hook at the start and a call to action at the end."""

SCRIPT_MARKERS = ("SCRIPT:", "SCENES:")

IMAGE_PROMPTS_SYSTEM = """You write prompts for generative image models.

Based on the script below, write EXACTLY {count} image prompts in English, one for each scene of the video.

OUTPUT FORMAT (JSON):
{{
  "prompts": [
    "prompt 1 in english, detailed, cinematic, high quality",
    "prompt 2 in english...",
    ...up to {count} prompts
  ]
}}

RULES:
- Prompts in ENGLISH
- Each prompt 20-50 words
- Include visual style (cinematic, dramatic lighting, etc)
- Include quality (8k, high detail, professional)
- Keep the visual style consistent across scenes
- Vertical format (9:16) for social media

RETURN ONLY THE JSON, NO ADDITIONAL TEXT."""

MOTION_KEYWORDS = [
    "slow zoom in",
    "gentle camera movement",
    "subtle motion",
    "cinematic pan",
    "slight parallax effect",
]

_FULL_NARRATION = re.compile(r"FULL NARRATION TEXT:\**\s*([\s\S]*?)(?=\n\n\*\*|$)", re.IGNORECASE)
_NARRATION_LINE = re.compile(r'Narration:\s*"([^"]+)"', re.IGNORECASE)


def extract_narration(script: str, fallback_chars: int = 500) -> str:
    """Pull the text to be spoken out of a script.

    Prefers the FULL NARRATION TEXT section, then the quoted Narration lines
    joined with spaces, then the head of the script.
    """
    match = _FULL_NARRATION.search(script)
    if match and match.group(1).strip():
        return match.group(1).strip()

    lines = _NARRATION_LINE.findall(script)
    if lines:
        return " ".join(line.strip() for line in lines)

    return script[:fallback_chars]


def build_motion_prompt(image_prompt: str, rng: random.Random | None = None) -> str:
    """Camera-motion prompt for animating an image."""
    motion = (rng or random).choice(MOTION_KEYWORDS)
    return f"{motion}, {image_prompt[:100]}"


async def fetch_voices(providers: ProviderSet) -> list[Voice]:
    """Voices from the TTS provider, or the built-in list if that fails."""
    try:
        return await providers.tts.list_voices()
    except (ProviderError, httpx.HTTPError, ValueError, OSError) as e:
        logger.warning("Falling back to default voices: %s", e)
        return list(DEFAULT_VOICES)


def _error_message(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class StageRunner(ABC):
    """
    Base class for all stage runners.

    Subclasses implement `_execute`; `run` wraps it with the gate check,
    the generating flag, and error capture.
    """

    stage: Stage

    def __init__(
        self,
        store: StageStore,
        gate: ApprovalGate,
        providers: ProviderSet,
        config: Config,
        notify: Notifier | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.store = store
        self.gate = gate
        self.providers = providers
        self.config = config
        self._notify = notify
        self._progress = progress

    def notify(self, level: str, message: str) -> None:
        """Send a user-facing notice (success, error, info)."""
        if self._notify:
            self._notify(level, message)

    def report_progress(self, fraction: float, message: str) -> None:
        if self._progress:
            self._progress(fraction, message)

    async def run(self, **options: Any) -> StageState:
        """
        Execute the stage and record the outcome.

        Raises:
            StageBlockedError: If an upstream stage is not approved.
        """
        self.gate.require_upstream(self.stage)
        previous = self.store.get(self.stage)
        self.store.mark_generating(self.stage)
        logger.info("Running stage %s", self.stage.value)
        try:
            return await self._execute(**options)
        except Exception as e:
            message = _error_message(e)
            logger.error("Stage %s failed: %s", self.stage.value, message)
            self.notify("error", message)
            status = ArtifactStatus.ERROR
            # A completed artifact left untouched by the failed run stays completed
            if (
                previous.status == ArtifactStatus.COMPLETED
                and self.store.get(self.stage).artifact == previous.artifact
            ):
                status = ArtifactStatus.COMPLETED
            return self.store.mark_error(self.stage, message, status=status)

    @abstractmethod
    async def _execute(self, **options: Any) -> StageState:
        """Do the stage's work and write its artifact."""


class ScriptRunner(StageRunner):
    """Chat with the script agent; a reply carrying the script markers becomes the script."""

    stage = Stage.SCRIPT

    async def _execute(self, message: str = "", **_: Any) -> StageState:
        message = message.strip()
        if not message:
            raise ValueError("Message is required")

        current = self.store.get(self.stage)
        history = [ChatMessage.from_dict(m) for m in current.artifact.get("messages", [])]
        prompt = f"{SCRIPT_SYSTEM_PROMPT}\n\nUser: {message}" if not history else message

        reply = await self.providers.llm.chat(prompt, history=history)

        messages = [m.to_dict() for m in history]
        messages.append({"role": "user", "content": message})
        messages.append({"role": "assistant", "content": reply})

        if any(marker in reply for marker in SCRIPT_MARKERS):
            self.notify("success", "Script generated, review it in the script stage")
            return self.store.set_artifact(self.stage, {"text": reply, "messages": messages})

        # Plain chat turn: keep whatever script was there before
        self.store.update_artifact(self.stage, messages=messages)
        status = ArtifactStatus.COMPLETED if current.artifact.get("text") else ArtifactStatus.PENDING
        return self.store.set_status(self.stage, status)

    def set_script(self, text: str) -> StageState:
        """Store a hand-edited script. Approval is reset."""
        text = text.strip()
        if not text:
            raise ValueError("Script text is required")
        messages = self.store.get(self.stage).artifact.get("messages", [])
        return self.store.set_artifact(self.stage, {"text": text, "messages": messages})


class NarrationRunner(StageRunner):
    """Synthesize the script's narration with the selected voice."""

    stage = Stage.NARRATION

    async def _execute(self, voice_id: str | None = None, **_: Any) -> StageState:
        script = self.store.get(Stage.SCRIPT).artifact.get("text", "")
        if not script:
            raise ValueError("Wait for the script to be approved")

        voice_id = voice_id or self.config.tts.voice_id
        text = extract_narration(script, self.config.generation.narration_fallback_chars)

        audio = await self.providers.tts.synthesize(text, voice_id)
        audio_path = self.store.files_dir / "narration.mp3"
        audio_path.write_bytes(audio)

        self.notify("success", "Narration generated")
        return self.store.set_artifact(
            self.stage,
            {
                "text": text,
                "voice_id": voice_id,
                "audio_path": str(audio_path),
                "size_bytes": len(audio),
            },
        )

    async def list_voices(self) -> list[Voice]:
        return await fetch_voices(self.providers)


class ImagePromptsRunner(StageRunner):
    """Ask the LLM for one image prompt per scene."""

    stage = Stage.IMAGE_PROMPTS

    async def _execute(self, **_: Any) -> StageState:
        script = self.store.get(Stage.SCRIPT).artifact.get("text", "")
        if not script:
            raise ValueError("Wait for the script to be approved")

        count = self.config.generation.prompt_count
        system = IMAGE_PROMPTS_SYSTEM.format(count=count)
        data = await self.providers.llm.generate_json(f"{system}\n\nSCRIPT:\n{script}")

        texts = [str(t) for t in data.get("prompts") or []][:count]
        while len(texts) < count:
            texts.append(f"Scene {len(texts) + 1} - [Edit this prompt]")

        prompts = [ImagePrompt(id=uuid4().hex, text=t) for t in texts]
        self.notify("success", f"{count} prompts generated")
        return self.store.set_artifact(self.stage, {"prompts": [p.to_dict() for p in prompts]})

    def update_prompt(self, prompt_id: str, text: str) -> StageState:
        """
        Edit one prompt in place.

        Raises:
            ValueError: If the prompts are already approved.
            KeyError: If no prompt has that ID.
        """
        state = self.store.get(self.stage)
        if state.approved:
            raise ValueError("Cannot edit approved prompts; reject them first")

        prompts = state.artifact.get("prompts", [])
        for prompt in prompts:
            if prompt["id"] == prompt_id:
                prompt["text"] = text
                return self.store.update_artifact(self.stage, prompts=prompts)
        raise KeyError(f"Prompt {prompt_id} not found")


class ItemStageRunner(StageRunner):
    """Shared loop for stages that generate a list of items one by one."""

    async def _generate_items(
        self,
        items: list[dict[str, Any]],
        generate_one: Callable[[dict[str, Any]], Awaitable[str]],
        label: str,
    ) -> StageState:
        delay = self.config.generation.item_delay_seconds
        completed = 0

        for i, item in enumerate(items):
            if i > 0 and delay > 0:
                await asyncio.sleep(delay)

            self.report_progress(i / len(items), f"Generating {label} {i + 1}/{len(items)}")
            self.store.update_item(self.stage, item["id"], status=ArtifactStatus.GENERATING)
            try:
                url = await generate_one(item)
            except Exception as e:
                message = _error_message(e)
                logger.warning("%s %d failed: %s", label.capitalize(), i + 1, message)
                self.store.update_item(
                    self.stage, item["id"], status=ArtifactStatus.ERROR, error=message
                )
                self.notify("error", f"Error in {label} {i + 1}: {message}")
                continue

            self.store.update_item(
                self.stage, item["id"], status=ArtifactStatus.COMPLETED, url=url, error=None
            )
            completed += 1

        self.report_progress(1.0, f"{completed}/{len(items)} {label}s generated")
        if completed == 0:
            return self.store.mark_error(self.stage, f"No {label}s were generated")

        self.notify("success", f"{label.capitalize()} generation finished")
        return self.store.set_status(self.stage, ArtifactStatus.COMPLETED)

    async def regenerate_item(self, item_id: str) -> dict[str, Any]:
        """
        Re-run a single item.

        Raises:
            StageBlockedError: If an upstream stage is not approved.
            KeyError: If no item has that ID.
        """
        self.gate.require_upstream(self.stage)
        item = next((i for i in self.store.items(self.stage) if i["id"] == item_id), None)
        if item is None:
            raise KeyError(f"Item {item_id} not found in stage {self.stage.value}")

        self.store.update_item(
            self.stage, item_id, status=ArtifactStatus.GENERATING, approved=False, error=None
        )
        try:
            url = await self._generate_one(item)
        except Exception as e:
            message = _error_message(e)
            logger.warning("Regenerating %s failed: %s", item_id, message)
            self.notify("error", message)
            return self.store.update_item(
                self.stage, item_id, status=ArtifactStatus.ERROR, error=message
            )

        self.notify("success", "Regenerated")
        updated = self.store.update_item(
            self.stage, item_id, status=ArtifactStatus.COMPLETED, url=url
        )
        # One recovered item makes a failed stage approvable again
        if self.store.get(self.stage).status == ArtifactStatus.ERROR:
            self.store.set_status(self.stage, ArtifactStatus.COMPLETED)
        return updated

    @abstractmethod
    async def _generate_one(self, item: dict[str, Any]) -> str:
        """Generate one item and return its URL."""


class ImageRunner(ItemStageRunner):
    """Generate one image per approved prompt."""

    stage = Stage.IMAGES

    async def _execute(
        self,
        model: str | None = None,
        aspect_ratio: str | None = None,
        **_: Any,
    ) -> StageState:
        prompts = self.store.get(Stage.IMAGE_PROMPTS).artifact.get("prompts", [])
        if not prompts:
            raise ValueError("Generate the prompts first")

        images = [
            GeneratedImage(id=uuid4().hex, prompt_id=p["id"], prompt=p["text"])
            for p in prompts
        ]
        self.store.set_artifact(
            self.stage,
            {
                "model": model or self.config.media.image_model,
                "aspect_ratio": aspect_ratio or self.config.media.aspect_ratio,
                "items": [img.to_dict() for img in images],
            },
            status=ArtifactStatus.GENERATING,
        )
        return await self._generate_items([img.to_dict() for img in images], self._generate_one, "image")

    async def _generate_one(self, item: dict[str, Any]) -> str:
        artifact = self.store.get(self.stage).artifact
        result = await self.providers.media.generate_image(
            item["prompt"],
            model=artifact.get("model"),
            aspect_ratio=artifact.get("aspect_ratio"),
        )
        return result.url


class VideoRunner(ItemStageRunner):
    """Animate each approved image into a short clip."""

    stage = Stage.VIDEOS

    def __init__(self, *args: Any, rng: random.Random | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._rng = rng

    async def _execute(
        self,
        model: str | None = None,
        duration: str | None = None,
        **_: Any,
    ) -> StageState:
        approved = [
            img for img in self.store.items(Stage.IMAGES)
            if img.get("approved") and img.get("url")
        ]
        if not approved:
            raise ValueError("Approve the images first")

        videos = [
            GeneratedVideo(
                id=uuid4().hex,
                image_id=img["id"],
                image_url=img["url"],
                motion_prompt=build_motion_prompt(img["prompt"], self._rng),
            )
            for img in approved
        ]
        self.store.set_artifact(
            self.stage,
            {
                "model": model or self.config.media.video_model,
                "duration": str(duration or self.config.media.video_duration),
                "items": [v.to_dict() for v in videos],
            },
            status=ArtifactStatus.GENERATING,
        )
        return await self._generate_items([v.to_dict() for v in videos], self._generate_one, "video")

    async def _generate_one(self, item: dict[str, Any]) -> str:
        artifact = self.store.get(self.stage).artifact
        result = await self.providers.media.generate_video(
            item["image_url"],
            item["motion_prompt"],
            model=artifact.get("model"),
            duration=artifact.get("duration"),
        )
        return result.url


class ExportRunner(StageRunner):
    """Bundle approved artifacts and record the manifest."""

    stage = Stage.EXPORT

    def __init__(self, *args: Any, aggregator: ExportAggregator | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.aggregator = aggregator or ExportAggregator(self.store, notify=self.notify)

    async def _execute(
        self,
        format: ExportFormat = "zip",
        include_narration: bool = True,
        **_: Any,
    ) -> StageState:
        manifest = await self.aggregator.build(format=format, include_narration=include_narration)
        if not manifest["files"]:
            raise ValueError("Nothing approved to export")

        self.notify("success", f"Exported {len(manifest['files'])} file(s)")
        return self.store.set_artifact(self.stage, manifest)
